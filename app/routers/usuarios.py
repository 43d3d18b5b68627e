"""Rotas do cadastro de usuários (/api/users). O hash da senha nunca sai daqui."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas import IdChave, UsuarioCreate, UsuarioOut, UsuarioUpdate
from app.security import contexto_auditoria, exigir_sessao
from app.services.auditoria import ContextoAuditoria
from app.services.usuarios import RegistroUsuarios

router = APIRouter(
    prefix="/api/users",
    tags=["usuarios"],
    dependencies=[Depends(exigir_sessao)],
)


def get_registro(
    db: Session = Depends(get_db),
    contexto: ContextoAuditoria = Depends(contexto_auditoria),
) -> RegistroUsuarios:
    return RegistroUsuarios(db, contexto)


@router.get("", response_model=List[UsuarioOut])
def listar_usuarios(registro: RegistroUsuarios = Depends(get_registro)):
    return registro.listar()


@router.get("/{id}", response_model=UsuarioOut)
def obter_usuario(id: int, registro: RegistroUsuarios = Depends(get_registro)):
    return registro.obter(id)


@router.post("", response_model=UsuarioOut, status_code=201)
def criar_usuario(dados: UsuarioCreate, registro: RegistroUsuarios = Depends(get_registro)):
    return registro.criar(dados.model_dump())


@router.patch("", response_model=UsuarioOut)
def atualizar_usuario(dados: UsuarioUpdate, registro: RegistroUsuarios = Depends(get_registro)):
    campos = dados.model_dump(exclude_unset=True)
    id_usuario = campos.pop("id")
    return registro.atualizar(id_usuario, campos)


@router.delete("")
def remover_usuario(chave: IdChave, registro: RegistroUsuarios = Depends(get_registro)):
    registro.remover(chave.id)
    return {"success": True}
