"""Settings comuns ao serviço: ambiente, identidade e nível de log."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

Environment = Literal["development", "staging", "production"]

DEFAULT_SERVICE_NAME = "wa-flow-endpoint"
LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

_ENVIRONMENT_ALIASES: dict[str, Environment] = {
    "production": "production",
    "prod": "production",
    "staging": "staging",
    "stage": "staging",
}
_STRICT_ENVIRONMENTS = frozenset({"staging", "production"})


@dataclass(frozen=True)
class BaseSettings:
    """Configurações base do serviço.

    Attributes:
        environment: development|staging|production
        service_name: Campo `service` dos logs e nome no /health
        debug: Liga docs da API e log em DEBUG por padrão
        log_level: DEBUG|INFO|WARNING|ERROR|CRITICAL
    """

    environment: Environment = "development"
    service_name: str = DEFAULT_SERVICE_NAME
    debug: bool = False
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def strict_validation(self) -> bool:
        """Em staging/produção o boot falha com configuração inválida."""
        return self.environment in _STRICT_ENVIRONMENTS

    def validate(self) -> list[str]:
        """Retorna erros de configuração (vazia = OK)."""
        errors: list[str] = []
        if self.environment not in ("development", *_STRICT_ENVIRONMENTS):
            errors.append(f"ENVIRONMENT inválido: {self.environment}")
        if not self.service_name:
            errors.append("SERVICE_NAME não pode ser vazio")
        if self.log_level not in LOG_LEVELS:
            errors.append(f"LOG_LEVEL inválido: {self.log_level}")
        return errors


def parse_environment(raw: str) -> Environment:
    """Normaliza ENVIRONMENT; valores desconhecidos viram development."""
    return _ENVIRONMENT_ALIASES.get(raw.strip().lower(), "development")


def env_flag(name: str, default: bool = False) -> bool:
    """Lê variável booleana (`true`, `1`, `yes`)."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("true", "1", "yes")


@lru_cache(maxsize=1)
def get_base_settings() -> BaseSettings:
    """BaseSettings lidas do ambiente uma única vez por processo."""
    debug = env_flag("DEBUG")
    return BaseSettings(
        environment=parse_environment(os.getenv("ENVIRONMENT", "development")),
        service_name=os.getenv("SERVICE_NAME", DEFAULT_SERVICE_NAME),
        debug=debug,
        log_level=os.getenv("LOG_LEVEL", "DEBUG" if debug else "INFO").upper(),
    )
