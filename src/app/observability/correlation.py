"""correlation_id por requisição para rastreamento nos logs.

Usa ContextVar, então é seguro entre tasks asyncio concorrentes.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

CORRELATION_HEADER = "x-correlation-id"
_MAX_INBOUND_LENGTH = 128

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Retorna o correlation_id do contexto atual ('' fora de requisição)."""
    return _correlation_id.get()


def _sanitize(inbound: str | None) -> str | None:
    if not inbound:
        return None
    value = inbound.strip()[:_MAX_INBOUND_LENGTH]
    return value if value.isprintable() and value else None


@contextmanager
def correlation_scope(inbound: str | None = None) -> Iterator[str]:
    """Define o correlation_id durante o bloco e restaura ao sair.

    Args:
        inbound: Valor do header recebido; se ausente/inválido, gera UUID4.

    Yields:
        correlation_id em uso.
    """
    value = _sanitize(inbound) or str(uuid.uuid4())
    token = _correlation_id.set(value)
    try:
        yield value
    finally:
        _correlation_id.reset(token)
