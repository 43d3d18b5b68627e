"""Rotas do cadastro de serviços (/api/services)."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas import ServicoChave, ServicoCreate, ServicoOut, ServicoUpdate
from app.security import contexto_auditoria, exigir_sessao
from app.services.auditoria import ContextoAuditoria
from app.services.servicos import RegistroServicos

router = APIRouter(
    prefix="/api/services",
    tags=["servicos"],
    dependencies=[Depends(exigir_sessao)],
)


def get_registro(
    db: Session = Depends(get_db),
    contexto: ContextoAuditoria = Depends(contexto_auditoria),
) -> RegistroServicos:
    return RegistroServicos(db, contexto)


@router.get("", response_model=List[ServicoOut])
def listar_servicos(registro: RegistroServicos = Depends(get_registro)):
    return [ServicoOut.from_model(servico) for servico in registro.listar()]


@router.get("/{codigo}", response_model=ServicoOut)
def obter_servico(codigo: str, registro: RegistroServicos = Depends(get_registro)):
    return ServicoOut.from_model(registro.obter(codigo))


@router.post("", response_model=ServicoOut, status_code=201)
def criar_servico(dados: ServicoCreate, registro: RegistroServicos = Depends(get_registro)):
    campos = dados.model_dump(exclude={"aliquotas"})
    campos["aliquotas"] = dados.aliquotas.para_pontos_base()
    return ServicoOut.from_model(registro.criar(campos))


@router.patch("", response_model=ServicoOut)
def atualizar_servico(dados: ServicoUpdate, registro: RegistroServicos = Depends(get_registro)):
    campos = dados.model_dump(exclude_unset=True, exclude={"aliquotas"})
    codigo = campos.pop("codigo")
    if dados.aliquotas is not None:
        campos["aliquotas"] = dados.aliquotas.para_pontos_base()
    return ServicoOut.from_model(registro.atualizar(codigo, campos))


@router.delete("")
def remover_servico(chave: ServicoChave, registro: RegistroServicos = Depends(get_registro)):
    registro.remover(chave.codigo)
    return {"success": True}
