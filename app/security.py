"""
Portão de acesso da API: limite de requisições por IP e exigência de sessão.

As duas verificações são dependências do FastAPI aplicadas aos routers. O
limite é conferido primeiro e vale mesmo sem sessão; a sessão é conferida
antes de qualquer acesso aos cadastros.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from fastapi import Depends, Request, Response

from app.exceptions import RateLimited, Unauthorized
from app.services.auditoria import ContextoAuditoria

logger = logging.getLogger(__name__)

CHAVE_SESSAO_USUARIO = "usuario_id"
CABECALHO_RESTANTES = "X-RateLimit-Remaining"


class LimitadorJanelaDeslizante:
    """
    Limite de N requisições por chave dentro de uma janela deslizante.

    Guarda os instantes das requisições aceitas por chave; instantes mais
    antigos que a janela são descartados a cada chamada. Chaves sem acesso
    dentro da janela saem do mapa, que fica limitado aos clientes recentes.
    """

    def __init__(
        self,
        limite: int = 10,
        janela_segundos: float = 60.0,
        relogio: Callable[[], float] = time.monotonic,
    ) -> None:
        if limite < 1:
            raise ValueError("limite deve ser maior que zero")
        self.limite = limite
        self.janela_segundos = janela_segundos
        self._relogio = relogio
        self._acessos: Dict[str, Deque[float]] = {}
        self._ultima_varredura = relogio()
        self._lock = threading.Lock()

    def permitir(self, chave: str) -> bool:
        """Registra a requisição e diz se ela está dentro do limite."""

        agora = self._relogio()
        inicio_janela = agora - self.janela_segundos
        with self._lock:
            if agora - self._ultima_varredura >= self.janela_segundos:
                self._varrer(inicio_janela)
                self._ultima_varredura = agora

            acessos = self._acessos.get(chave)
            if acessos is None:
                acessos = self._acessos[chave] = deque()
            while acessos and acessos[0] <= inicio_janela:
                acessos.popleft()
            if len(acessos) >= self.limite:
                return False
            acessos.append(agora)
            return True

    def restantes(self, chave: str) -> int:
        agora = self._relogio()
        with self._lock:
            acessos = self._acessos.get(chave, ())
            validos = sum(1 for instante in acessos if instante > agora - self.janela_segundos)
        return max(self.limite - validos, 0)

    def _varrer(self, inicio_janela: float) -> None:
        # O último instante de cada fila é o mais recente.
        expiradas = [
            chave
            for chave, acessos in self._acessos.items()
            if not acessos or acessos[-1] <= inicio_janela
        ]
        for chave in expiradas:
            del self._acessos[chave]


def endereco_cliente(request: Request) -> str:
    return request.client.host if request.client else "desconhecido"


def limitar_requisicoes(request: Request, response: Response) -> None:
    """
    Dependência: aplica o limitador guardado em app.state e informa no
    cabeçalho quantas requisições ainda cabem na janela.
    """

    limitador: Optional[LimitadorJanelaDeslizante] = getattr(
        request.app.state, "limitador", None
    )
    if limitador is None:
        return
    endereco = endereco_cliente(request)
    if not limitador.permitir(endereco):
        logger.warning("Limite de requisições excedido para %s (%s)", endereco, request.url.path)
        raise RateLimited()
    response.headers[CABECALHO_RESTANTES] = str(limitador.restantes(endereco))


def usuario_da_sessao(request: Request) -> Optional[int]:
    usuario_id = request.session.get(CHAVE_SESSAO_USUARIO)
    return int(usuario_id) if usuario_id is not None else None


def exigir_sessao(request: Request, _: None = Depends(limitar_requisicoes)) -> int:
    """Dependência: exige sessão válida e devolve o id do usuário logado."""

    usuario_id = usuario_da_sessao(request)
    if usuario_id is None:
        logger.warning("Requisição sem sessão em %s", request.url.path)
        raise Unauthorized()
    return usuario_id


def contexto_auditoria(
    request: Request, usuario_id: int = Depends(exigir_sessao)
) -> ContextoAuditoria:
    """Dependência: monta o contexto de auditoria da requisição autenticada."""

    return ContextoAuditoria(
        usuario_id=usuario_id,
        endereco_ip=endereco_cliente(request),
        user_agent=request.headers.get("user-agent"),
    )
