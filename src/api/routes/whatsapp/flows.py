"""Endpoint de data-exchange para WhatsApp Flows."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from api.routes.whatsapp.flow_tasks import schedule_forward_task
from app.bootstrap import build_codec_options, build_submission_forwarder
from app.infra.crypto import (
    SIGNATURE_HEADER,
    FlowCryptoError,
    decrypt_flow_request,
    encrypt_flow_response,
    validate_flow_signature,
)
from app.observability import CORRELATION_HEADER, correlation_scope
from app.services.flow_replies import (
    build_flow_reply,
    health_reply,
    is_health_check,
    is_liveness_probe,
)
from app.services.form_fields import extract_form_fields
from config.settings import get_flow_settings

logger = logging.getLogger(__name__)

router = APIRouter()

ENDPOINT_VERSION = "flow-endpoint-1"


@router.get("/flow/endpoint")
async def flow_endpoint_status() -> JSONResponse:
    """Liveness trivial do endpoint (fora do contrato criptográfico)."""
    return JSONResponse(
        {"ok": True, "version": ENDPOINT_VERSION, "now": datetime.now(UTC).isoformat()}
    )


@router.post("/flow/endpoint")
async def handle_flow_endpoint(request: Request) -> Response:
    """Recebe envelope criptografado da Meta e retorna resposta base64."""
    raw_body = await request.body()
    with correlation_scope(request.headers.get(CORRELATION_HEADER)):
        try:
            return await _handle_flow_body(request, raw_body)
        except Exception as exc:
            # Só o tipo do erro vai para o log
            logger.error(
                "flow_endpoint_unexpected_error",
                extra={"component": "flow_endpoint", "error_type": type(exc).__name__},
            )
            return PlainTextResponse("Internal Server Error", status_code=500)


async def _handle_flow_body(request: Request, raw_body: bytes) -> Response:
    if is_liveness_probe(raw_body):
        logger.info(
            "flow_liveness_probe",
            extra={"component": "flow_endpoint", "body_len": len(raw_body)},
        )
        return JSONResponse(health_reply())

    settings = get_flow_settings()
    if settings.signature_required:
        signature = request.headers.get(SIGNATURE_HEADER, "")
        if not validate_flow_signature(raw_body, signature, settings.app_secret.encode("utf-8")):
            logger.warning(
                "flow_signature_invalid",
                extra={"component": "flow_endpoint", "action": "validate_signature"},
            )
            return PlainTextResponse("Signature verification failed", status_code=401)

    if not settings.private_key_pem:
        logger.error(
            "flow_endpoint_misconfigured",
            extra={"component": "flow_endpoint", "missing": "private_key"},
        )
        return PlainTextResponse("Server not configured", status_code=500)

    options = build_codec_options(settings)
    try:
        decrypted = decrypt_flow_request(
            raw_body,
            settings.private_key_pem,
            settings.private_key_passphrase or None,
            options=options,
        )
    except FlowCryptoError as exc:
        _log_crypto_failure("flow_decryption_failed", exc)
        return PlainTextResponse(exc.public_message, status_code=exc.status_code)

    cleartext = decrypted.cleartext
    if not isinstance(cleartext, dict):
        logger.warning(
            "flow_payload_not_object",
            extra={"component": "flow_endpoint", "payload_type": type(cleartext).__name__},
        )
        return PlainTextResponse("Invalid payload", status_code=400)

    logger.info(
        "flow_request_decrypted",
        extra={
            "component": "flow_endpoint",
            "encrypted": decrypted.encrypted,
            "payload_keys": sorted(cleartext)[:20],
        },
    )

    if not is_health_check(cleartext):
        fields = extract_form_fields(cleartext)
        logger.info(
            "flow_fields_extracted",
            extra={"component": "flow_endpoint", "field_names": sorted(fields)},
        )
        forwarder = build_submission_forwarder(settings)
        if forwarder is not None and fields:
            schedule_forward_task(forwarder.forward(fields))
    reply = build_flow_reply(cleartext, settings.success_screen)

    if not decrypted.encrypted or decrypted.session_key is None:
        return JSONResponse(reply)

    try:
        encrypted_response = encrypt_flow_response(
            response=reply,
            session_key=decrypted.session_key,
            request_iv=decrypted.iv,
            options=options,
        )
    except FlowCryptoError as exc:
        _log_crypto_failure("flow_encryption_failed", exc)
        return PlainTextResponse(exc.public_message, status_code=exc.status_code)

    return PlainTextResponse(content=encrypted_response, status_code=200)


def _log_crypto_failure(event: str, exc: FlowCryptoError) -> None:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        event,
        extra={
            "component": "flow_endpoint",
            "error_type": type(exc).__name__,
            "status_code": exc.status_code,
        },
    )
