"""
Módulo de geração de relatórios tabulares (Excel/CSV) das notas fiscais.
Usa pandas para montar o DataFrame e salva o arquivo numa pasta padrão
(./relatorios/).
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional
from uuid import uuid4

import pandas as pd
from sqlalchemy.orm import Session

from app.exceptions import ValidationError
from app.models import NotaFiscal

# Pasta padrão onde os relatórios serão salvos.
PASTA_RELATORIOS = Path("relatorios")

FORMATOS = ("xlsx", "csv")

COLUNAS = [
    "id",
    "numero_nota",
    "fornecedor_cnpj",
    "fornecedor_nome",
    "regime_tributario",
    "servico_codigo",
    "conta_debito",
    "data_entrada",
    "data_emissao",
    "data_vencimento",
    "valor_bruto",
    "deducao_material",
    "inss",
    "cs",
    "irrf",
    "issqn",
    "valor_liquido",
]


def _reais(centavos: Optional[int]) -> float:
    return round((centavos or 0) / 100, 2)


def _garantir_pasta_saida(caminho: Path) -> None:
    """
    Cria a pasta de saída (e pais) caso ainda não exista.
    """

    caminho.parent.mkdir(parents=True, exist_ok=True)


def montar_dataframe_notas(db: Session) -> pd.DataFrame:
    """Uma linha por nota, valores em reais."""

    notas = db.query(NotaFiscal).order_by(NotaFiscal.id).all()

    linhas = []
    for nota in notas:
        fornecedor = nota.fornecedor
        servico = nota.servico
        linhas.append(
            {
                "id": nota.id,
                "numero_nota": nota.numero_nota,
                "fornecedor_cnpj": nota.fornecedor_cnpj,
                "fornecedor_nome": fornecedor.nome if fornecedor else None,
                "regime_tributario": fornecedor.regime_tributario if fornecedor else None,
                "servico_codigo": nota.servico_codigo,
                "conta_debito": servico.conta_debito if servico else None,
                "data_entrada": nota.data_entrada,
                "data_emissao": nota.data_emissao,
                "data_vencimento": nota.data_vencimento,
                "valor_bruto": _reais(nota.valor_centavos),
                "deducao_material": _reais(nota.deducao_material_centavos),
                "inss": _reais(nota.inss_centavos),
                "cs": _reais(nota.cs_centavos),
                "irrf": _reais(nota.irrf_centavos),
                "issqn": _reais(nota.issqn_centavos),
                "valor_liquido": _reais(nota.valor_liquido_centavos),
            }
        )

    return pd.DataFrame(linhas, columns=COLUNAS)


def gerar_relatorio_notas(
    db: Session,
    caminho_saida: Optional[str] = None,
    formato: str = "xlsx",
    pasta: Optional[Path] = None,
) -> str:
    """
    Gera o relatório de notas fiscais com retenções e valor líquido.

    Retorna o caminho do arquivo salvo (Excel por padrão).
    """

    formato = (formato or "").lower()
    if formato not in FORMATOS:
        raise ValidationError(f"Formato de relatório inválido: {formato!r}")

    df = montar_dataframe_notas(db)

    if caminho_saida is None:
        # Um arquivo por chamada; requisições simultâneas não se sobrescrevem.
        nome = f"notas_fiscais_{datetime.now():%Y%m%d_%H%M%S}_{uuid4().hex[:8]}.{formato}"
        caminho = Path(pasta or PASTA_RELATORIOS) / nome
    else:
        caminho = Path(caminho_saida)

    _garantir_pasta_saida(caminho)
    if formato == "csv":
        df.to_csv(caminho, index=False)
    else:
        df.to_excel(caminho, index=False)
    return str(caminho)
