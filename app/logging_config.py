"""Configuração única do logging da aplicação."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configurar_logging(level: str = "INFO") -> logging.Logger:
    """
    Configura o logger do pacote `app` com saída no console.

    Pode ser chamada mais de uma vez (ex.: vários create_app nos testes): os
    handlers anteriores são trocados por um novo.
    """

    logger = logging.getLogger("app")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(handler)
    return logger
