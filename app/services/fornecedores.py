"""Cadastro de fornecedores (chave: CNPJ)."""

from __future__ import annotations

import re
from typing import Any, Dict

from app.exceptions import ValidationError
from app.models import Fornecedor
from app.services.aliquotas import RegimeTributario
from app.services.base import RegistroBase

# Pontuação aceita no CNPJ digitado: 12.345.678/0001-99
_PONTUACAO_CNPJ = re.compile(r"[./\-\s]")


def normalizar_cnpj(cnpj: Any) -> str:
    """Remove a pontuação e exige exatamente 14 dígitos."""

    texto = _PONTUACAO_CNPJ.sub("", str(cnpj or ""))
    if len(texto) != 14 or not texto.isdigit():
        raise ValidationError("CNPJ deve ter exatamente 14 dígitos")
    return texto


class RegistroFornecedores(RegistroBase):
    modelo = Fornecedor
    chave = "cnpj"
    nome_registro = "Fornecedor"

    def _normalizar_chave(self, chave: Any) -> Any:
        # Chave fora do formato não existe no cadastro.
        try:
            return normalizar_cnpj(chave)
        except ValidationError:
            return None

    def _preparar_criacao(self, dados: Dict[str, Any]) -> Dict[str, Any]:
        dados["cnpj"] = normalizar_cnpj(dados.get("cnpj"))
        return self._normalizar_campos(dados)

    def _preparar_atualizacao(self, registro: Fornecedor, dados: Dict[str, Any]) -> Dict[str, Any]:
        return self._normalizar_campos(dados)

    @staticmethod
    def _normalizar_campos(dados: Dict[str, Any]) -> Dict[str, Any]:
        if dados.get("nome") is not None:
            nome = str(dados["nome"]).strip().upper()
            if not nome:
                raise ValidationError("Nome do fornecedor é obrigatório")
            dados["nome"] = nome
        if dados.get("regime_tributario") is not None:
            dados["regime_tributario"] = RegimeTributario.parse(dados["regime_tributario"]).value
        return dados
