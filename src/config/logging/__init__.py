"""Logging estruturado JSON do endpoint de Flow.

    from config.logging import configure_logging, get_logger

    configure_logging(level="INFO", service_name="wa-flow-endpoint")
    logger = get_logger(__name__)
    logger.info("flow_request_decrypted", extra={"component": "flow_endpoint"})

Material de chave e conteúdo decifrado nunca vão para o log: o handler
mascara qualquer `extra` com nome sensível (ver SensitiveFieldFilter).
"""

from config.logging.config import QUIET_LOGGERS, configure_logging, get_logger
from config.logging.filters import REDACTED, CorrelationIdFilter, SensitiveFieldFilter
from config.logging.formatters import (
    FIELD_RENAME_MAP,
    LOG_FIELD_ORDER,
    REQUIRED_LOG_FIELDS,
    create_json_formatter,
)

__all__ = [
    "FIELD_RENAME_MAP",
    "LOG_FIELD_ORDER",
    "QUIET_LOGGERS",
    "REDACTED",
    "REQUIRED_LOG_FIELDS",
    "CorrelationIdFilter",
    "SensitiveFieldFilter",
    "configure_logging",
    "create_json_formatter",
    "get_logger",
]
