"""Bootstrap da aplicação — inicialização e wiring.

Este módulo é o composition root: configura logging, valida settings e
converte settings em objetos concretos (opções do codec, forwarder).

Uso:
    from app.bootstrap import initialize_app, validate_runtime_settings

    initialize_app()
    validate_runtime_settings()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.infra.crypto import FlowCodecOptions, load_private_key
from app.infra.crypto.errors import CryptoConfigurationError
from app.observability import get_correlation_id
from app.services.submission_forwarder import SubmissionForwarder
from config.logging import configure_logging
from config.settings import (
    DEFAULT_FORWARD_TIMEOUT_SECONDS,
    get_base_settings,
    get_flow_settings,
)

if TYPE_CHECKING:
    from config.settings import FlowSettings

logger = logging.getLogger(__name__)


def initialize_app() -> None:
    """Configura logging estruturado JSON com correlation_id.

    Deve ser chamada uma vez no início do serviço.
    """
    base = get_base_settings()
    configure_logging(
        level=base.log_level,
        service_name=base.service_name,
        correlation_id_getter=get_correlation_id,
    )


def build_codec_options(settings: FlowSettings) -> FlowCodecOptions:
    """Converte FlowSettings nas opções do codec."""
    return FlowCodecOptions(
        response_framing=settings.response_framing,  # type: ignore[arg-type]
        response_iv=settings.response_iv,  # type: ignore[arg-type]
        iv_length_policy=settings.iv_length_policy,  # type: ignore[arg-type]
        allow_plaintext_fallback=settings.allow_plaintext_fallback,
    )


def build_submission_forwarder(settings: FlowSettings) -> SubmissionForwarder | None:
    """Retorna forwarder configurado ou None se não há URL.

    Timeout inválido (já reportado por `validate()`) cai no default.
    """
    if not settings.forward_url:
        return None
    timeout = settings.forward_timeout_seconds
    if timeout is None or not timeout > 0:
        timeout = DEFAULT_FORWARD_TIMEOUT_SECONDS
    return SubmissionForwarder(settings.forward_url, timeout_seconds=timeout)


def validate_runtime_settings() -> None:
    """Valida settings obrigatórias no startup.

    Em `staging`/`production` falha rápido para impedir boot inválido.
    Em `development` mantém alerta sem bloquear execução local.

    Raises:
        RuntimeError: Configuração inválida em ambiente estrito.
    """
    base = get_base_settings()
    flow = get_flow_settings()
    errors: list[str] = [f"base: {error}" for error in base.validate()]
    errors.extend(f"flow: {error}" for error in flow.validate())

    if flow.private_key_pem:
        try:
            load_private_key(flow.private_key_pem, flow.private_key_passphrase or None)
        except CryptoConfigurationError as exc:
            errors.append(f"flow: {exc}")

    if flow.allow_plaintext_fallback:
        logger.warning(
            "flow_plaintext_fallback_enabled",
            extra={"component": "bootstrap", "environment": base.environment},
        )

    if not errors:
        logger.info(
            "settings_validated",
            extra={"component": "bootstrap", "result": "ok", "environment": base.environment},
        )
        return

    logger.warning(
        "settings_validation_failed",
        extra={
            "component": "bootstrap",
            "result": "failed",
            "environment": base.environment,
            "error_count": len(errors),
            "errors": errors,
        },
    )
    if base.strict_validation:
        details = "\n".join(f"- {error}" for error in errors)
        raise RuntimeError(f"Configuração inválida para {base.environment}:\n{details}")
