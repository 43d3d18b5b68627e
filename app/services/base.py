"""
CRUD genérico usado pelos registros de fornecedores, serviços, notas e usuários.

Cada subclasse informa o modelo, a coluna-chave e, se precisar, sobrescreve os
ganchos de preparação dos dados. As operações seguem o mesmo contrato:

- criar: falha com DuplicateKeyError se a chave (ou outro campo único) já existe.
- atualizar/remover: falham com NotFoundError se a chave não existe.
- atualizar: só os campos enviados mudam; os demais mantêm o valor anterior.

Quando o registro recebe um ContextoAuditoria, cada alteração grava um
LogAuditoria no mesmo commit.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.exceptions import DuplicateKeyError, NotFoundError, ValidationError
from app.services.auditoria import ContextoAuditoria, RegistroAuditoria, valor_serializavel

logger = logging.getLogger(__name__)


class RegistroBase:
    modelo: Any = None
    chave: str = "id"
    nome_registro: str = "Registro"
    # Colunas que nunca vão para o log de auditoria.
    campos_ocultos: tuple = ()

    def __init__(self, db: Session, contexto: Optional[ContextoAuditoria] = None) -> None:
        self.db = db
        self.contexto = contexto

    # Consultas ---------------------------------------------------------------

    def listar(self) -> List[Any]:
        coluna = getattr(self.modelo, self.chave)
        return self.db.query(self.modelo).order_by(coluna).all()

    def buscar(self, chave: Any) -> Optional[Any]:
        """Retorna o registro da chave ou None."""
        chave = self._normalizar_chave(chave)
        if chave is None:
            return None
        return self.db.get(self.modelo, chave)

    def obter(self, chave: Any) -> Any:
        registro = self.buscar(chave)
        if registro is None:
            raise NotFoundError(f"{self.nome_registro} não encontrado")
        return registro

    # Alterações --------------------------------------------------------------

    def criar(self, dados: Dict[str, Any]) -> Any:
        dados = self._preparar_criacao(dict(dados))
        self._validar_obrigatorios(dados)

        chave = dados.get(self.chave)
        if chave is not None and self.buscar(chave) is not None:
            raise DuplicateKeyError(f"{self.nome_registro} já cadastrado")

        registro = self.modelo(**dados)
        self.db.add(registro)
        self._gravar("create", registro, None, duplicado=True)
        self.db.refresh(registro)

        logger.info("%s criado: %s", self.nome_registro, self._valor_chave(registro))
        return registro

    def atualizar(self, chave: Any, dados: Dict[str, Any]) -> Any:
        registro = self.obter(chave)
        anteriores = self._serializar(registro)

        dados = dict(dados)
        dados.pop(self.chave, None)
        dados = self._preparar_atualizacao(registro, dados)
        self._validar_obrigatorios(dados, parcial=True)

        for campo, valor in dados.items():
            setattr(registro, campo, valor)

        self._gravar("update", registro, anteriores, duplicado=True)
        self.db.refresh(registro)

        logger.info(
            "%s atualizado: %s (campos: %s)",
            self.nome_registro,
            self._valor_chave(registro),
            ", ".join(sorted(dados)) or "-",
        )
        return registro

    def remover(self, chave: Any) -> None:
        registro = self.obter(chave)
        anteriores = self._serializar(registro)
        valor_chave = self._valor_chave(registro)

        self.db.delete(registro)
        self._gravar("delete", registro, anteriores)

        logger.info("%s removido: %s", self.nome_registro, valor_chave)

    # Ganchos -----------------------------------------------------------------

    def _normalizar_chave(self, chave: Any) -> Any:
        return chave

    def _preparar_criacao(self, dados: Dict[str, Any]) -> Dict[str, Any]:
        return dados

    def _preparar_atualizacao(self, registro: Any, dados: Dict[str, Any]) -> Dict[str, Any]:
        return dados

    # Auxiliares --------------------------------------------------------------

    def _valor_chave(self, registro: Any) -> Any:
        return getattr(registro, self.chave)

    def _validar_obrigatorios(self, dados: Dict[str, Any], parcial: bool = False) -> None:
        """Campos NOT NULL sem default não podem faltar na criação nem virar None."""

        for coluna in self.modelo.__table__.columns:
            if coluna.nullable or coluna.autoincrement is True:
                continue
            if coluna.name in dados:
                if dados[coluna.name] is None:
                    raise ValidationError(f"Campo obrigatório: {coluna.name}")
            elif not parcial and coluna.default is None:
                raise ValidationError(f"Campo obrigatório: {coluna.name}")

    def _serializar(self, registro: Any) -> Dict[str, Any]:
        return {
            coluna.name: valor_serializavel(getattr(registro, coluna.name))
            for coluna in self.modelo.__table__.columns
            if coluna.name not in self.campos_ocultos
        }

    def _gravar(
        self,
        acao: str,
        registro: Any,
        anteriores: Optional[Dict[str, Any]],
        duplicado: bool = False,
    ) -> None:
        """
        Envia a alteração ao banco, grava o log de auditoria (se houver
        contexto) e faz o commit de tudo junto.

        Violação de integridade vira DuplicateKeyError em criação/atualização
        e ValidationError na remoção (registro com vínculos).
        """

        try:
            self.db.flush()
            if self.contexto is not None:
                novos = None if acao == "delete" else self._serializar(registro)
                RegistroAuditoria(self.db).registrar(
                    self.contexto,
                    acao=acao,
                    tabela=self.modelo.__tablename__,
                    registro_id=self._valor_chave(registro),
                    dados_anteriores=anteriores,
                    dados_novos=novos,
                )
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("%s: violação de integridade: %s", self.nome_registro, exc.orig)
            if duplicado:
                raise DuplicateKeyError(f"{self.nome_registro} já cadastrado") from exc
            raise ValidationError(f"{self.nome_registro} possui registros vinculados") from exc
