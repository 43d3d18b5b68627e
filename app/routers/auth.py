"""
Login e logout por sessão (/api/auth).

O login passa pelo limite de requisições, mas não exige sessão.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import Unauthorized
from app.schemas import Login, UsuarioOut
from app.security import CHAVE_SESSAO_USUARIO, limitar_requisicoes
from app.services.usuarios import RegistroUsuarios

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"],
    dependencies=[Depends(limitar_requisicoes)],
)


@router.post("/login")
def login(dados: Login, request: Request, db: Session = Depends(get_db)):
    usuario = RegistroUsuarios(db).autenticar(dados.email, dados.senha)
    if usuario is None:
        raise Unauthorized("Credenciais inválidas")

    request.session.clear()
    request.session[CHAVE_SESSAO_USUARIO] = usuario.id
    logger.info("Usuário %s entrou", usuario.id)
    return {"success": True, "usuario": UsuarioOut.model_validate(usuario)}


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return {"success": True}
