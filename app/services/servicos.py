"""
Cadastro de serviços e suas alíquotas por regime.

As alíquotas chegam aqui já em pontos-base, num dicionário por regime
({"sn": {...}, "n": {...}, "mei": {...}}). Regime ausente na criação fica com
todos os tributos None; na atualização, regime ausente mantém o que já estava.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from app.exceptions import ValidationError
from app.models import Servico
from app.services.aliquotas import AliquotasRegime, RegimeTributario
from app.services.base import RegistroBase


def _normalizar_aliquotas(
    aliquotas: Optional[Mapping[str, Any]],
    atuais: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Dict[str, Optional[int]]]:
    if aliquotas is None:
        raise ValidationError("Alíquotas do serviço são obrigatórias")

    recebidas = {str(chave).lower(): valor for chave, valor in aliquotas.items()}
    validas = {regime.chave for regime in RegimeTributario}
    desconhecidas = set(recebidas) - validas
    if desconhecidas:
        raise ValidationError(f"Regime desconhecido nas alíquotas: {', '.join(sorted(desconhecidas))}")

    resultado: Dict[str, Dict[str, Optional[int]]] = {}
    for regime in RegimeTributario:
        if regime.chave in recebidas:
            valor = recebidas[regime.chave]
            if not isinstance(valor, AliquotasRegime):
                valor = AliquotasRegime.from_dict(valor)
        else:
            valor = AliquotasRegime.from_dict((atuais or {}).get(regime.chave))
        resultado[regime.chave] = valor.to_dict()
    return resultado


class RegistroServicos(RegistroBase):
    modelo = Servico
    chave = "codigo"
    nome_registro = "Serviço"

    def _preparar_criacao(self, dados: Dict[str, Any]) -> Dict[str, Any]:
        codigo = str(dados.get("codigo") or "").strip()
        if not codigo:
            raise ValidationError("Código do serviço é obrigatório")
        dados["codigo"] = codigo
        dados["aliquotas"] = _normalizar_aliquotas(dados.get("aliquotas"))
        return dados

    def _preparar_atualizacao(self, registro: Servico, dados: Dict[str, Any]) -> Dict[str, Any]:
        if "aliquotas" in dados:
            # Dicionário novo para o SQLAlchemy perceber a mudança na coluna JSON.
            dados["aliquotas"] = _normalizar_aliquotas(dados["aliquotas"], registro.aliquotas)
        return dados
