"""Settings base (ambiente, serviço, log) e helpers de leitura de env."""

from __future__ import annotations

from config.settings.base.core import (
    DEFAULT_SERVICE_NAME,
    LOG_LEVELS,
    BaseSettings,
    Environment,
    env_flag,
    get_base_settings,
    parse_environment,
)

__all__ = [
    "DEFAULT_SERVICE_NAME",
    "LOG_LEVELS",
    "BaseSettings",
    "Environment",
    "env_flag",
    "get_base_settings",
    "parse_environment",
]
