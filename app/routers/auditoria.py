"""Consulta do log de auditoria (/api/audit-logs). Somente leitura."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas import LogAuditoriaOut
from app.security import exigir_sessao
from app.services.auditoria import RegistroAuditoria

router = APIRouter(
    prefix="/api/audit-logs",
    tags=["auditoria"],
    dependencies=[Depends(exigir_sessao)],
)


@router.get("", response_model=List[LogAuditoriaOut])
def listar_logs(data: Optional[date] = None, db: Session = Depends(get_db)):
    return RegistroAuditoria(db).listar(data)
