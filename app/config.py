"""
Configurações da aplicação lidas do ambiente.

O arquivo .env do diretório atual é carregado (sem sobrescrever variáveis já
definidas no shell) e os valores viram um objeto Settings, que é passado
explicitamente para create_app. Nos testes montamos o Settings na mão.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

# Por padrão o banco fica em ./data/backoffice.db, como no restante do projeto.
DEFAULT_DATABASE_URL = "sqlite:///./data/backoffice.db"


@dataclass
class Settings:
    """Valores de configuração usados na montagem da aplicação."""

    database_url: str = DEFAULT_DATABASE_URL
    session_secret: str = "troque-este-segredo"
    rate_limit_requests: int = 10
    rate_limit_window_seconds: float = 60.0
    log_level: str = "INFO"
    reports_dir: str = "relatorios"


def carregar_configuracoes() -> Settings:
    """Monta o Settings a partir das variáveis de ambiente."""

    return Settings(
        database_url=os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL),
        session_secret=os.environ.get("SESSION_SECRET", Settings.session_secret),
        rate_limit_requests=int(os.environ.get("RATE_LIMIT_REQUESTS", "10")),
        rate_limit_window_seconds=float(os.environ.get("RATE_LIMIT_WINDOW_SECONDS", "60")),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        reports_dir=os.environ.get("REPORTS_DIR", "relatorios"),
    )
