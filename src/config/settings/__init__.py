"""Agregador de settings do serviço de Flow.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

# Base settings
from config.settings.base import (
    DEFAULT_SERVICE_NAME,
    BaseSettings,
    Environment,
    get_base_settings,
)

# Flow endpoint settings
from config.settings.flows import (
    DEFAULT_FORWARD_TIMEOUT_SECONDS,
    DEFAULT_SUCCESS_SCREEN,
    IV_LENGTH_POLICIES,
    RESPONSE_FRAMINGS,
    RESPONSE_IV_STRATEGIES,
    FlowSettings,
    get_flow_settings,
)

__all__ = [
    "DEFAULT_FORWARD_TIMEOUT_SECONDS",
    "DEFAULT_SERVICE_NAME",
    "DEFAULT_SUCCESS_SCREEN",
    "IV_LENGTH_POLICIES",
    "RESPONSE_FRAMINGS",
    "RESPONSE_IV_STRATEGIES",
    "BaseSettings",
    "Environment",
    "FlowSettings",
    "get_base_settings",
    "get_flow_settings",
]
