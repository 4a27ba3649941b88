"""Instalação do logging estruturado no root logger.

Um único handler JSON recebe todos os logs do processo. Os filtros do
handler injetam correlation_id/service e mascaram campos sensíveis antes
da formatação, então nenhum módulo precisa se preocupar com isso.
"""

from __future__ import annotations

import logging
from typing import IO, TYPE_CHECKING

from config.logging.filters import CorrelationIdFilter, SensitiveFieldFilter
from config.logging.formatters import create_json_formatter
from config.settings.base import DEFAULT_SERVICE_NAME, LOG_LEVELS

if TYPE_CHECKING:
    from collections.abc import Callable

VALID_LOG_LEVELS = LOG_LEVELS

# Registram a URL completa de cada request de saída em INFO
QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")


def configure_logging(
    level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
    correlation_id_getter: Callable[[], str] | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Substitui os handlers do root logger pelo handler JSON.

    Args:
        level: Nível mínimo (case insensitive).
        service_name: Valor do campo `service` em cada linha.
        correlation_id_getter: Fonte do correlation_id da requisição
            corrente; normalmente `app.observability.get_correlation_id`.
        stream: Destino das linhas (padrão: stderr).

    Raises:
        ValueError: Se o nível de log for inválido.
    """
    level_name = level.upper()
    if level_name not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Nível de log inválido: {level}. Válidos: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )

    handler = logging.StreamHandler(stream)
    handler.setLevel(level_name)
    handler.setFormatter(create_json_formatter())
    handler.addFilter(CorrelationIdFilter(service_name, correlation_id_getter))
    handler.addFilter(SensitiveFieldFilter())

    root = logging.getLogger()
    root.setLevel(level_name)
    root.handlers = [handler]

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
