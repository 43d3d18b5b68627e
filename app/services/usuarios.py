"""
Cadastro de usuários do back office.

A senha em texto puro só passa por aqui para virar hash bcrypt; ela nunca é
gravada, devolvida pela API nem escrita no log.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import bcrypt

from app.exceptions import DuplicateKeyError, ValidationError
from app.models import Usuario
from app.services.base import RegistroBase

logger = logging.getLogger(__name__)

TAMANHO_MINIMO_SENHA = 6


def gerar_hash_senha(senha: str) -> str:
    """Gera o hash bcrypt (com salt) da senha."""

    if not senha or len(senha) < TAMANHO_MINIMO_SENHA:
        raise ValidationError(f"Senha deve ter ao menos {TAMANHO_MINIMO_SENHA} caracteres")
    # bcrypt só considera os primeiros 72 bytes.
    senha_bytes = senha.encode("utf-8")
    if len(senha_bytes) > 72:
        raise ValidationError("Senha deve ter no máximo 72 bytes")
    return bcrypt.hashpw(senha_bytes, bcrypt.gensalt()).decode("ascii")


def verificar_senha(senha: str, senha_hash: str) -> bool:
    """Compara a senha com o hash em tempo constante (bcrypt.checkpw)."""

    if not senha or not senha_hash:
        return False
    try:
        return bcrypt.checkpw(senha.encode("utf-8"), senha_hash.encode("ascii"))
    except ValueError:
        # Hash malformado ou senha longa demais: tratamos como senha errada.
        return False


def _normalizar_email(email: Any) -> str:
    texto = str(email or "").strip().lower()
    if "@" not in texto or texto.startswith("@") or texto.endswith("@"):
        raise ValidationError("E-mail inválido")
    return texto


class RegistroUsuarios(RegistroBase):
    modelo = Usuario
    chave = "id"
    nome_registro = "Usuário"
    campos_ocultos = ("senha_hash",)

    def buscar_por_email(self, email: str) -> Optional[Usuario]:
        return (
            self.db.query(Usuario)
            .filter(Usuario.email == str(email or "").strip().lower())
            .first()
        )

    def autenticar(self, email: str, senha: str) -> Optional[Usuario]:
        """Retorna o usuário se e-mail e senha conferem e ele está ativo."""

        usuario = self.buscar_por_email(email)
        if usuario is None or not usuario.ativo or not verificar_senha(senha, usuario.senha_hash):
            logger.warning("Login recusado para %s", email)
            return None
        return usuario

    def _preparar_criacao(self, dados: Dict[str, Any]) -> Dict[str, Any]:
        dados.pop("id", None)
        dados.pop("senha_hash", None)
        dados["email"] = _normalizar_email(dados.get("email"))
        dados["senha_hash"] = gerar_hash_senha(dados.pop("senha", None))
        if dados.get("ativo") is None:
            dados.pop("ativo", None)

        if self.buscar_por_email(dados["email"]) is not None:
            raise DuplicateKeyError("Usuário já cadastrado")
        return dados

    def _preparar_atualizacao(self, registro: Usuario, dados: Dict[str, Any]) -> Dict[str, Any]:
        dados.pop("senha_hash", None)
        if "email" in dados:
            dados["email"] = _normalizar_email(dados["email"])
        if "senha" in dados:
            dados["senha_hash"] = gerar_hash_senha(dados.pop("senha"))
        return dados
