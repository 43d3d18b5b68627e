"""Rotas do cadastro de fornecedores (/api/suppliers)."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas import FornecedorChave, FornecedorCreate, FornecedorOut, FornecedorUpdate
from app.security import contexto_auditoria, exigir_sessao
from app.services.auditoria import ContextoAuditoria
from app.services.fornecedores import RegistroFornecedores

router = APIRouter(
    prefix="/api/suppliers",
    tags=["fornecedores"],
    dependencies=[Depends(exigir_sessao)],
)


def get_registro(
    db: Session = Depends(get_db),
    contexto: ContextoAuditoria = Depends(contexto_auditoria),
) -> RegistroFornecedores:
    return RegistroFornecedores(db, contexto)


@router.get("", response_model=List[FornecedorOut])
def listar_fornecedores(registro: RegistroFornecedores = Depends(get_registro)):
    return registro.listar()


@router.get("/{cnpj}", response_model=FornecedorOut)
def obter_fornecedor(cnpj: str, registro: RegistroFornecedores = Depends(get_registro)):
    return registro.obter(cnpj)


@router.post("", response_model=FornecedorOut, status_code=201)
def criar_fornecedor(dados: FornecedorCreate, registro: RegistroFornecedores = Depends(get_registro)):
    return registro.criar(dados.model_dump())


@router.patch("", response_model=FornecedorOut)
def atualizar_fornecedor(dados: FornecedorUpdate, registro: RegistroFornecedores = Depends(get_registro)):
    campos = dados.model_dump(exclude_unset=True)
    cnpj = campos.pop("cnpj")
    return registro.atualizar(cnpj, campos)


@router.delete("")
def remover_fornecedor(chave: FornecedorChave, registro: RegistroFornecedores = Depends(get_registro)):
    registro.remover(chave.cnpj)
    return {"success": True}
