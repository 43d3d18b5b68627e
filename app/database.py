"""
Módulo de conexão com o banco de dados usando SQLAlchemy.
Aqui criamos o engine, a classe Base e utilitários para gerenciar sessões.
"""

from __future__ import annotations

import os
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import DEFAULT_DATABASE_URL

# A classe Base é a classe mãe de todos os modelos (tabelas).
# Todo modelo deve herdar de Base para que o SQLAlchemy saiba mapear para a tabela.
class _BaseModelo:
    # Os modelos anotam as colunas com tipos simples (str, int...), não Mapped[].
    __allow_unmapped__ = True


Base = declarative_base(cls=_BaseModelo)

# sessionmaker cria uma fábrica de sessões. O bind é feito em configurar_engine,
# quando a aplicação sabe qual URL de banco usar.
SessionLocal = sessionmaker(autocommit=False, autoflush=False)

engine: Optional[Engine] = None


def criar_engine(database_url: str = DEFAULT_DATABASE_URL, **engine_kwargs) -> Engine:
    """
    Cria o engine para a URL informada.

    Para SQLite em arquivo garantimos que a pasta exista e liberamos o uso da
    conexão entre threads (necessário para apps web com SQLite).
    """

    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        caminho = database_url.split("///", 1)[-1]
        if caminho and caminho != database_url and ":memory:" not in caminho:
            pasta = os.path.dirname(caminho)
            if pasta:
                os.makedirs(pasta, exist_ok=True)

    novo_engine = create_engine(database_url, connect_args=connect_args, **engine_kwargs)

    if database_url.startswith("sqlite"):
        # SQLite só respeita as chaves estrangeiras com o PRAGMA ligado por conexão.
        @event.listens_for(novo_engine, "connect")
        def _ativar_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return novo_engine


def configurar_engine(database_url: str = DEFAULT_DATABASE_URL) -> Engine:
    """Cria o engine global e associa a fábrica de sessões a ele."""

    global engine
    engine = criar_engine(database_url)
    SessionLocal.configure(bind=engine)
    return engine


def create_all_tables(bind: Optional[Engine] = None) -> None:
    """
    Cria todas as tabelas no banco de dados conforme os modelos declarados.
    Use esta função na inicialização da aplicação para garantir que o schema exista.
    """
    # Importamos os modelos aqui para garantir que o SQLAlchemy conheça todas
    # as classes antes de tentar criar as tabelas.
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """
    Dependência padrão do FastAPI para obter uma sessão de banco de dados.
    Abre uma sessão, entrega para quem chamou (via yield) e fecha ao final.
    """

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
