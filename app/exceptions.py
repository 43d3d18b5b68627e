"""
Erros de negócio da aplicação.

Cada classe carrega o status HTTP correspondente; o main.py registra um
handler único que transforma qualquer AppError em {"error": mensagem}.
"""

from __future__ import annotations

from typing import Optional


class AppError(Exception):
    """Base de todos os erros tratados pela API."""

    status_code = 400
    default_message = "Erro na requisição"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(AppError):
    """Dados de entrada malformados ou ausentes."""

    status_code = 400
    default_message = "Dados inválidos"


class NotFoundError(AppError):
    """Chave inexistente em leitura, atualização ou remoção."""

    status_code = 404
    default_message = "Registro não encontrado"


class SupplierNotFoundError(NotFoundError):
    # Durante a criação de nota é falha de negócio, não de rota.
    status_code = 400
    default_message = "Fornecedor não encontrado"


class ServiceNotFoundError(NotFoundError):
    status_code = 400
    default_message = "Serviço não encontrado"


class DuplicateKeyError(AppError):
    """Violação de chave única na criação."""

    status_code = 400
    default_message = "Registro já existe"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Não autorizado"


class RateLimited(AppError):
    status_code = 429
    default_message = "Muitas requisições, tente novamente em instantes"


class InternalError(AppError):
    """Falha inesperada; detalhes ficam só no log do servidor."""

    status_code = 500
    default_message = "Erro interno"
