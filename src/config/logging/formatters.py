"""Formatter JSON dos logs do endpoint de Flow.

Cada linha emitida é um objeto JSON com os campos de contexto fixos
seguidos dos `extra` do evento, já redigidos pelo SensitiveFieldFilter.
"""

from __future__ import annotations

from pythonjsonlogger.json import JsonFormatter

# Ordem de saída dos campos fixos
LOG_FIELD_ORDER: tuple[str, ...] = (
    "asctime",
    "levelname",
    "name",
    "correlation_id",
    "service",
    "message",
)
REQUIRED_LOG_FIELDS = frozenset(LOG_FIELD_ORDER)

FIELD_RENAME_MAP = {
    "asctime": "timestamp",
    "levelname": "level",
    "name": "logger",
}

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def create_json_formatter() -> JsonFormatter:
    """Cria o formatter JSON com nomes de campo padronizados.

    Exemplo de linha:
        {"timestamp": "2026-01-02T03:04:05+0000", "level": "WARNING",
         "logger": "api.routes.whatsapp.flows", "correlation_id": "abc-123",
         "service": "wa-flow-endpoint", "message": "flow_decryption_failed",
         "component": "flow_endpoint", "error_type": "KeyUnwrapError"}
    """
    return JsonFormatter(
        " ".join(f"%({name})s" for name in LOG_FIELD_ORDER),
        datefmt=TIMESTAMP_FORMAT,
        rename_fields=FIELD_RENAME_MAP,
        json_ensure_ascii=False,
    )
