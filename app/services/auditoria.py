"""
Registro de auditoria (somente inclusão) das alterações feitas pela API.

As linhas são adicionadas na mesma sessão da alteração auditada, então vão
para o banco no mesmo commit. Não existe atualização nem remoção de log.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models import LogAuditoria


@dataclass(frozen=True)
class ContextoAuditoria:
    """Quem fez a alteração e de onde veio a requisição."""

    usuario_id: Optional[int] = None
    endereco_ip: Optional[str] = None
    user_agent: Optional[str] = None


def valor_serializavel(valor: Any) -> Any:
    """Converte datas e Decimals para tipos aceitos na coluna JSON."""

    if isinstance(valor, (date, datetime)):
        return valor.isoformat()
    if isinstance(valor, Decimal):
        return str(valor)
    if isinstance(valor, dict):
        return {chave: valor_serializavel(v) for chave, v in valor.items()}
    if isinstance(valor, (list, tuple)):
        return [valor_serializavel(v) for v in valor]
    return valor


class RegistroAuditoria:
    def __init__(self, db: Session) -> None:
        self.db = db

    def listar(self, data: Optional[date] = None) -> List[LogAuditoria]:
        """Lista os logs, opcionalmente só os criados no dia informado."""

        consulta = self.db.query(LogAuditoria)
        if data is not None:
            inicio = datetime(data.year, data.month, data.day)
            fim = inicio + timedelta(days=1)
            consulta = consulta.filter(
                LogAuditoria.criado_em >= inicio, LogAuditoria.criado_em < fim
            )
        return consulta.order_by(LogAuditoria.id).all()

    def registrar(
        self,
        contexto: ContextoAuditoria,
        acao: str,
        tabela: str,
        registro_id: Any,
        dados_anteriores: Optional[Dict[str, Any]] = None,
        dados_novos: Optional[Dict[str, Any]] = None,
    ) -> LogAuditoria:
        """Adiciona um log na sessão atual (o commit fica com quem chamou)."""

        log = LogAuditoria(
            usuario_id=contexto.usuario_id,
            acao=acao,
            tabela=tabela,
            registro_id=str(registro_id),
            dados_anteriores=valor_serializavel(dados_anteriores),
            dados_novos=valor_serializavel(dados_novos),
            endereco_ip=contexto.endereco_ip,
            user_agent=(contexto.user_agent or "")[:255] or None,
        )
        self.db.add(log)
        return log
