"""Respostas do endpoint de Flow (health check e tela de sucesso)."""

from __future__ import annotations

from typing import Any

FLOW_RESPONSE_VERSION = "3.0"
DEFAULT_SUCCESS_SCREEN = "SERVICE_SUCCESS"
LIVENESS_MAX_BODY_CHARS = 1

_HEALTH_ACTIONS = frozenset({"ping", "health_check"})
_HEALTH_EVENTS = frozenset({"HEALTH_CHECK"})


def health_reply() -> dict[str, Any]:
    """Resposta fixa de status ativo (ping da Meta e probes sem envelope)."""
    return {"data": {"status": "active"}}


def success_reply(screen: str = DEFAULT_SUCCESS_SCREEN) -> dict[str, Any]:
    """Resposta de submissão concluída."""
    return {"version": FLOW_RESPONSE_VERSION, "screen": screen, "data": {"ok": True}}


def _operation(payload: dict[str, Any]) -> object:
    for container in (payload.get("payload"), payload.get("data")):
        if isinstance(container, dict) and container.get("op") is not None:
            return container["op"]
    return payload.get("op")


def is_health_check(payload: dict[str, Any]) -> bool:
    """Detecta health check no cleartext decifrado.

    Além dos marcadores explícitos (`action`, `op`, `event`, `type`), um
    payload sem operação, sem tela e sem campos também é tratado como
    health check.
    """
    op = _operation(payload)
    if op == "health_check":
        return True
    if payload.get("action") in _HEALTH_ACTIONS:
        return True
    if payload.get("event") in _HEALTH_EVENTS or payload.get("type") in _HEALTH_EVENTS:
        return True

    data = payload.get("data")
    data_fields = data.get("fields") if isinstance(data, dict) else None
    return not op and not payload.get("screen") and not payload.get("fields") and not data_fields


def build_flow_reply(
    payload: dict[str, Any],
    success_screen: str = DEFAULT_SUCCESS_SCREEN,
) -> dict[str, Any]:
    """Escolhe a resposta para o cleartext recebido."""
    if is_health_check(payload):
        return health_reply()
    return success_reply(success_screen)


def is_liveness_probe(raw_body: bytes | str) -> bool:
    """Probe de saúde da plataforma: corpo com menos de 2 caracteres não-brancos.

    Esses probes chegam sem criptografia e são respondidos sem tentar
    interpretar o corpo como envelope.
    """
    text = raw_body.decode("utf-8", errors="replace") if isinstance(raw_body, bytes) else raw_body
    return len(text.strip()) <= LIVENESS_MAX_BODY_CHARS
