"""Filters de logging para contexto e redação de segredos.

Campos injetados:
- correlation_id: ID de rastreamento da requisição
- service: Nome do serviço

Campos redigidos: qualquer `extra` cujo nome indique material de chave ou
conteúdo decifrado (chave de sessão, chave privada, plaintext).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

REDACTED = "[REDACTED]"

SENSITIVE_FIELD_MARKERS: tuple[str, ...] = (
    "aes_key",
    "session_key",
    "private_key",
    "passphrase",
    "secret",
    "plaintext",
    "cleartext",
)


class CorrelationIdFilter(logging.Filter):
    """Injeta correlation_id e service em cada record de log.

    Args:
        service_name: Nome do serviço para identificação nos logs.
        correlation_id_getter: Função que retorna o correlation_id atual.
            Se não fornecida, usa string vazia como fallback.
    """

    def __init__(
        self,
        service_name: str,
        correlation_id_getter: Callable[[], str] | None = None,
    ) -> None:
        super().__init__()
        self._service_name = service_name
        self._get_correlation_id = correlation_id_getter or (lambda: "")

    def filter(self, record: logging.LogRecord) -> bool:
        """Adiciona correlation_id e service ao record.

        Se correlation_id já foi passado via `extra`, preserva o valor.
        """
        existing = getattr(record, "correlation_id", None)
        record.correlation_id = existing if existing else self._get_correlation_id()
        record.service = self._service_name
        return True


class SensitiveFieldFilter(logging.Filter):
    """Substitui por `[REDACTED]` atributos `extra` com nomes sensíveis.

    Não filtra records; apenas troca os valores antes da formatação.
    """

    def __init__(self, markers: Iterable[str] = SENSITIVE_FIELD_MARKERS) -> None:
        super().__init__()
        self._markers = tuple(marker.lower() for marker in markers)

    def _is_sensitive(self, name: str) -> bool:
        lowered = name.lower()
        return any(marker in lowered for marker in self._markers)

    def filter(self, record: logging.LogRecord) -> bool:
        for name in list(vars(record)):
            if self._is_sensitive(name):
                setattr(record, name, REDACTED)
        return True
