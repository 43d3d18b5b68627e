"""
Rotas das notas fiscais (/api/invoices).

A criação calcula as retenções e o valor líquido antes de gravar; o relatório
exporta todas as notas em Excel ou CSV.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from starlette.background import BackgroundTask

from app.database import get_db
from app.schemas import IdChave, NotaFiscalCreate, NotaFiscalOut, NotaFiscalUpdate
from app.security import contexto_auditoria, exigir_sessao
from app.services import reports
from app.services.auditoria import ContextoAuditoria
from app.services.notas_fiscais import RegistroNotasFiscais

router = APIRouter(
    prefix="/api/invoices",
    tags=["notas_fiscais"],
    dependencies=[Depends(exigir_sessao)],
)

TIPOS_RELATORIO = {
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "csv": "text/csv",
}


def get_registro(
    db: Session = Depends(get_db),
    contexto: ContextoAuditoria = Depends(contexto_auditoria),
) -> RegistroNotasFiscais:
    return RegistroNotasFiscais(db, contexto)


@router.get("", response_model=List[NotaFiscalOut])
def listar_notas(
    data_vencimento: Optional[date] = None,
    data_emissao: Optional[date] = None,
    data_entrada: Optional[date] = None,
    registro: RegistroNotasFiscais = Depends(get_registro),
):
    return registro.listar(
        data_vencimento=data_vencimento,
        data_emissao=data_emissao,
        data_entrada=data_entrada,
    )


@router.get("/report")
def relatorio_notas(request: Request, formato: str = "xlsx", db: Session = Depends(get_db)):
    """Gera e devolve o arquivo do relatório de notas."""

    pasta = Path(request.app.state.settings.reports_dir)
    caminho = reports.gerar_relatorio_notas(db, formato=formato, pasta=pasta)
    # O arquivo é temporário: sai da pasta depois de enviado.
    return FileResponse(
        caminho,
        media_type=TIPOS_RELATORIO[formato.lower()],
        filename=f"notas_fiscais.{formato.lower()}",
        background=BackgroundTask(Path(caminho).unlink, missing_ok=True),
    )


@router.get("/{id}", response_model=NotaFiscalOut)
def obter_nota(id: int, registro: RegistroNotasFiscais = Depends(get_registro)):
    return registro.obter(id)


@router.post("", response_model=NotaFiscalOut, status_code=201)
def criar_nota(dados: NotaFiscalCreate, registro: RegistroNotasFiscais = Depends(get_registro)):
    return registro.criar(dados.model_dump())


@router.patch("", response_model=NotaFiscalOut)
def atualizar_nota(dados: NotaFiscalUpdate, registro: RegistroNotasFiscais = Depends(get_registro)):
    campos = dados.model_dump(exclude_unset=True)
    id_nota = campos.pop("id")
    return registro.atualizar(id_nota, campos)


@router.delete("")
def remover_nota(chave: IdChave, registro: RegistroNotasFiscais = Depends(get_registro)):
    registro.remover(chave.id)
    return {"success": True}
