"""
Cadastro de notas fiscais de serviço.

Na criação buscamos fornecedor e serviço, calculamos as retenções
(calculator.py) e gravamos a nota já com o valor líquido. Se o fornecedor ou
o serviço não existir, nada é gravado.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from app.exceptions import ServiceNotFoundError, SupplierNotFoundError
from app.models import NotaFiscal
from app.services.base import RegistroBase
from app.services.calculator import RetencoesNota, calcular_retencoes
from app.services.fornecedores import RegistroFornecedores
from app.services.servicos import RegistroServicos

logger = logging.getLogger(__name__)

# Colunas preenchidas pelo cálculo; nunca vêm de quem chama.
CAMPOS_CALCULADOS = (
    "inss_centavos",
    "cs_centavos",
    "irrf_centavos",
    "issqn_centavos",
    "valor_liquido_centavos",
)

# Alterar qualquer um destes campos obriga a refazer o cálculo.
CAMPOS_DO_CALCULO = (
    "fornecedor_cnpj",
    "servico_codigo",
    "valor_centavos",
    "deducao_material_centavos",
)


def _campos_retencoes(retencoes: RetencoesNota) -> Dict[str, int]:
    return {
        "inss_centavos": retencoes.inss,
        "cs_centavos": retencoes.cs,
        "irrf_centavos": retencoes.irrf,
        "issqn_centavos": retencoes.issqn,
        "valor_liquido_centavos": retencoes.valor_liquido,
    }


class RegistroNotasFiscais(RegistroBase):
    modelo = NotaFiscal
    chave = "id"
    nome_registro = "Nota fiscal"

    def listar(
        self,
        data_vencimento: Optional[date] = None,
        data_emissao: Optional[date] = None,
        data_entrada: Optional[date] = None,
    ) -> List[NotaFiscal]:
        """Lista as notas, filtrando pelas datas informadas (igualdade)."""

        consulta = self.db.query(NotaFiscal)
        if data_vencimento is not None:
            consulta = consulta.filter(NotaFiscal.data_vencimento == data_vencimento)
        if data_emissao is not None:
            consulta = consulta.filter(NotaFiscal.data_emissao == data_emissao)
        if data_entrada is not None:
            consulta = consulta.filter(NotaFiscal.data_entrada == data_entrada)
        return consulta.order_by(NotaFiscal.id).all()

    def _calcular(
        self,
        fornecedor_cnpj: str,
        servico_codigo: str,
        valor_centavos: int,
        deducao_material_centavos: int,
    ) -> Dict[str, Any]:
        fornecedores = RegistroFornecedores(self.db)
        fornecedor = fornecedores.buscar(fornecedor_cnpj)
        if fornecedor is None:
            raise SupplierNotFoundError()

        servico = RegistroServicos(self.db).buscar(servico_codigo)
        if servico is None:
            raise ServiceNotFoundError()

        retencoes = calcular_retencoes(
            fornecedor, servico, valor_centavos, deducao_material_centavos
        )
        logger.debug(
            "Retenções calculadas (fornecedor %s, serviço %s): %s",
            fornecedor.cnpj,
            servico.codigo,
            retencoes,
        )
        campos = _campos_retencoes(retencoes)
        campos["fornecedor_cnpj"] = fornecedor.cnpj
        campos["servico_codigo"] = servico.codigo
        return campos

    def _preparar_criacao(self, dados: Dict[str, Any]) -> Dict[str, Any]:
        for campo in CAMPOS_CALCULADOS + ("id",):
            dados.pop(campo, None)
        if dados.get("deducao_material_centavos") is None:
            dados["deducao_material_centavos"] = 0
        if dados.get("data_entrada") is None:
            dados.pop("data_entrada", None)

        dados.update(
            self._calcular(
                dados.get("fornecedor_cnpj"),
                dados.get("servico_codigo"),
                dados.get("valor_centavos"),
                dados["deducao_material_centavos"],
            )
        )
        return dados

    def _preparar_atualizacao(self, registro: NotaFiscal, dados: Dict[str, Any]) -> Dict[str, Any]:
        for campo in CAMPOS_CALCULADOS:
            dados.pop(campo, None)
        if "deducao_material_centavos" in dados and dados["deducao_material_centavos"] is None:
            dados["deducao_material_centavos"] = 0

        if any(campo in dados for campo in CAMPOS_DO_CALCULO):
            atuais = {campo: getattr(registro, campo) for campo in CAMPOS_DO_CALCULO}
            atuais.update({c: dados[c] for c in CAMPOS_DO_CALCULO if c in dados})
            dados.update(self._calcular(**atuais))
        return dados
