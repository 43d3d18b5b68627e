"""Aplicação FastAPI do back office de notas fiscais de serviço.

Monta os routers dos cadastros (fornecedores, serviços, notas e usuários),
o login por sessão, o limite de requisições por IP e os handlers que
transformam erros em {"error": mensagem}. Para iniciar localmente:

    uvicorn app.main:app --reload

"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from app.config import Settings, carregar_configuracoes
from app.database import configurar_engine, create_all_tables
from app.exceptions import AppError, InternalError, ValidationError
from app.logging_config import configurar_logging
from app.routers import auditoria, auth, fornecedores, notas_fiscais, servicos, usuarios
from app.security import LimitadorJanelaDeslizante

logger = logging.getLogger(__name__)


def _registrar_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def tratar_erro_app(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def tratar_erro_http(request: Request, exc: StarletteHTTPException):
        # Rota inexistente, método não permitido e afins.
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def tratar_erro_validacao(request: Request, exc: RequestValidationError):
        logger.info("Requisição inválida em %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=ValidationError.status_code,
            content={"error": ValidationError.default_message},
        )

    @app.exception_handler(Exception)
    async def tratar_erro_inesperado(request: Request, exc: Exception):
        # Detalhes só no log do servidor.
        logger.exception("Erro inesperado em %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=InternalError.status_code,
            content={"error": InternalError.default_message},
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Cria a aplicação com as configurações informadas (ou lidas do ambiente)."""

    settings = settings or carregar_configuracoes()
    configurar_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Garante que as tabelas existam ao subir a aplicação.
        configurar_engine(settings.database_url)
        create_all_tables()
        logger.info("Aplicação iniciada")
        yield

    app = FastAPI(title="Back office - Notas fiscais de serviço", lifespan=lifespan)
    app.state.settings = settings
    # Um único limitador por aplicação, compartilhado por todas as rotas.
    app.state.limitador = LimitadorJanelaDeslizante(
        limite=settings.rate_limit_requests,
        janela_segundos=settings.rate_limit_window_seconds,
    )

    app.add_middleware(SessionMiddleware, secret_key=settings.session_secret)
    _registrar_handlers(app)

    app.include_router(auth.router)
    app.include_router(fornecedores.router)
    app.include_router(servicos.router)
    app.include_router(notas_fiscais.router)
    app.include_router(usuarios.router)
    app.include_router(auditoria.router)

    @app.get("/health")
    def healthcheck():
        """Rota simples para testar se o servidor está no ar."""
        return {"status": "ok"}

    return app


app = create_app()
