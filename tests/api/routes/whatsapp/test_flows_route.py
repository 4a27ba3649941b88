"""Testes do endpoint de WhatsApp Flow data-exchange."""

from __future__ import annotations

import asyncio
import base64
import hashlib
import hmac
import json
from dataclasses import replace
from typing import Any

import httpx
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from api.routes import create_api_router
from api.routes.whatsapp import flows
from api.routes.whatsapp.flow_tasks import drain_forward_tasks, pending_forward_tasks
from app.infra.crypto import open_flow_response
from app.infra.http import HttpClient, HttpClientConfig
from app.services.submission_forwarder import SubmissionForwarder
from config.settings import FlowSettings
from tests.fakes.flow_envelopes import b64, build_envelope, flip_bit, private_key_to_pem

PING = {"action": "ping", "flow_token": "t", "screen": "APPOINTMENT", "data": {}, "version": "3.0"}
SUBMIT = {
    "action": "data_exchange",
    "screen": "SERVICE_FORM",
    "flow_token": "t",
    "data": {"fields": [{"name": "nome", "value": "Ana"}, {"name": "servico", "value": "corte"}]},
}


def _build_request(
    *,
    method: str,
    body: bytes = b"",
    headers: dict[str, str] | None = None,
) -> Request:
    header_items = headers or {}
    raw_headers = [(k.lower().encode("utf-8"), v.encode("utf-8")) for k, v in header_items.items()]
    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "path": "/webhook/whatsapp/flow/endpoint",
        "raw_path": b"/webhook/whatsapp/flow/endpoint",
        "query_string": b"",
        "headers": raw_headers,
    }
    sent = False

    async def _receive() -> dict[str, object]:
        nonlocal sent
        if sent:
            return {"type": "http.request", "body": b"", "more_body": False}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, _receive)


def _sign(payload: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


class FakeForwarder:
    def __init__(self) -> None:
        self.forwarded: list[dict[str, Any]] = []

    async def forward(self, fields: dict[str, Any]) -> bool:
        self.forwarded.append(dict(fields))
        return True


@pytest.fixture
def flow_settings(private_pem: str) -> FlowSettings:
    return FlowSettings(private_key_pem=private_pem)


@pytest.fixture
def use_settings(monkeypatch: pytest.MonkeyPatch):
    def _apply(settings: FlowSettings) -> None:
        monkeypatch.setattr(flows, "get_flow_settings", lambda: settings)

    return _apply


@pytest.fixture
def forwarder(monkeypatch: pytest.MonkeyPatch) -> FakeForwarder:
    fake = FakeForwarder()
    monkeypatch.setattr(flows, "build_submission_forwarder", lambda settings: fake)
    return fake


async def _post(body: bytes, headers: dict[str, str] | None = None):
    return await flows.handle_flow_endpoint(
        _build_request(method="POST", body=body, headers=headers)
    )


@pytest.mark.asyncio
async def test_flow_endpoint_ping_success(
    rsa_private_key: rsa.RSAPrivateKey, flow_settings: FlowSettings, use_settings
) -> None:
    use_settings(flow_settings)
    envelope, aes_key, _ = build_envelope(rsa_private_key.public_key(), PING)

    response = await _post(json.dumps(envelope).encode("utf-8"))

    assert response.status_code == 200
    assert response.media_type == "text/plain"
    reply = open_flow_response(response.body.decode("utf-8"), session_key=aes_key)
    assert reply == {"data": {"status": "active"}}


@pytest.mark.asyncio
async def test_flow_endpoint_raw_framing_with_inverted_iv(
    rsa_private_key: rsa.RSAPrivateKey, flow_settings: FlowSettings, use_settings
) -> None:
    use_settings(replace(flow_settings, response_framing="raw", response_iv="invert"))
    envelope, aes_key, iv = build_envelope(
        rsa_private_key.public_key(), PING, aes_key=bytes(range(32))
    )

    response = await _post(json.dumps(envelope).encode("utf-8"))

    assert response.status_code == 200
    encrypted_response = base64.b64decode(response.body.decode("utf-8"))
    flipped_iv = bytes(byte ^ 0xFF for byte in iv)
    decrypted = AESGCM(aes_key).decrypt(flipped_iv, encrypted_response, None)
    assert json.loads(decrypted.decode("utf-8")) == {"data": {"status": "active"}}


@pytest.mark.asyncio
async def test_flow_endpoint_submission_forwards_fields(
    rsa_private_key: rsa.RSAPrivateKey,
    flow_settings: FlowSettings,
    use_settings,
    forwarder: FakeForwarder,
) -> None:
    use_settings(replace(flow_settings, success_screen="OBRIGADO"))
    envelope, aes_key, _ = build_envelope(rsa_private_key.public_key(), SUBMIT)

    response = await _post(json.dumps(envelope).encode("utf-8"))

    assert response.status_code == 200
    reply = open_flow_response(response.body.decode("utf-8"), session_key=aes_key)
    assert reply == {"version": "3.0", "screen": "OBRIGADO", "data": {"ok": True}}
    await drain_forward_tasks()
    assert forwarder.forwarded == [{"nome": "Ana", "servico": "corte"}]


@pytest.mark.asyncio
async def test_flow_endpoint_health_check_is_not_forwarded(
    rsa_private_key: rsa.RSAPrivateKey,
    flow_settings: FlowSettings,
    use_settings,
    forwarder: FakeForwarder,
) -> None:
    use_settings(flow_settings)
    envelope, _, _ = build_envelope(rsa_private_key.public_key(), {"status": "health_check"})

    response = await _post(json.dumps(envelope).encode("utf-8"))

    assert response.status_code == 200
    assert forwarder.forwarded == []


@pytest.mark.asyncio
async def test_flow_endpoint_forward_failure_keeps_success_reply(
    rsa_private_key: rsa.RSAPrivateKey,
    flow_settings: FlowSettings,
    use_settings,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    use_settings(flow_settings)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadError("conexão caiu", request=request)

    failing = SubmissionForwarder(
        "https://script.example/exec",
        http_client=HttpClient(
            HttpClientConfig(max_retries=0), transport=httpx.MockTransport(handler)
        ),
    )
    monkeypatch.setattr(flows, "build_submission_forwarder", lambda settings: failing)
    envelope, aes_key, _ = build_envelope(rsa_private_key.public_key(), SUBMIT)

    response = await _post(json.dumps(envelope).encode("utf-8"))
    await drain_forward_tasks()

    assert response.status_code == 200
    reply = open_flow_response(response.body.decode("utf-8"), session_key=aes_key)
    assert reply["screen"] == "SERVICE_SUCCESS"


@pytest.mark.asyncio
async def test_flow_endpoint_replies_before_forward_completes(
    rsa_private_key: rsa.RSAPrivateKey,
    flow_settings: FlowSettings,
    use_settings,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    use_settings(flow_settings)
    release = asyncio.Event()
    finished: list[dict[str, Any]] = []

    class SlowForwarder:
        async def forward(self, fields: dict[str, Any]) -> bool:
            await release.wait()
            finished.append(dict(fields))
            return True

    monkeypatch.setattr(flows, "build_submission_forwarder", lambda settings: SlowForwarder())
    envelope, _, _ = build_envelope(rsa_private_key.public_key(), SUBMIT)

    response = await _post(json.dumps(envelope).encode("utf-8"))

    assert response.status_code == 200
    assert finished == []
    assert pending_forward_tasks() == 1

    release.set()
    await drain_forward_tasks()

    assert finished == [{"nome": "Ana", "servico": "corte"}]
    assert pending_forward_tasks() == 0


@pytest.mark.asyncio
async def test_flow_endpoint_accepts_valid_signature(
    rsa_private_key: rsa.RSAPrivateKey, flow_settings: FlowSettings, use_settings
) -> None:
    secret = "meta_app_secret"
    use_settings(replace(flow_settings, app_secret=secret))
    envelope, _, _ = build_envelope(rsa_private_key.public_key(), PING)
    raw_body = json.dumps(envelope).encode("utf-8")

    response = await _post(raw_body, headers={"x-hub-signature-256": _sign(raw_body, secret)})

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_flow_endpoint_ignores_signature_without_app_secret(
    rsa_private_key: rsa.RSAPrivateKey, flow_settings: FlowSettings, use_settings
) -> None:
    use_settings(flow_settings)
    envelope, _, _ = build_envelope(rsa_private_key.public_key(), PING)

    response = await _post(
        json.dumps(envelope).encode("utf-8"),
        headers={"x-hub-signature-256": "sha256=deadbeef"},
    )

    assert flow_settings.signature_required is False
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_flow_endpoint_rejects_invalid_signature(
    rsa_private_key: rsa.RSAPrivateKey, flow_settings: FlowSettings, use_settings
) -> None:
    use_settings(replace(flow_settings, app_secret="secret"))
    envelope, _, _ = build_envelope(rsa_private_key.public_key(), PING)

    response = await _post(
        json.dumps(envelope).encode("utf-8"),
        headers={"x-hub-signature-256": "sha256=deadbeef"},
    )

    assert response.status_code == 401
    assert response.body == b"Signature verification failed"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [b"", b" ", b"\n"])
async def test_flow_endpoint_liveness_probe_skips_everything(
    use_settings, body: bytes
) -> None:
    use_settings(FlowSettings(app_secret="secret"))

    response = await _post(body)

    assert response.status_code == 200
    assert json.loads(response.body) == {"data": {"status": "active"}}


@pytest.mark.asyncio
async def test_flow_endpoint_without_private_key(use_settings) -> None:
    use_settings(FlowSettings())

    response = await _post(b'{"encrypted_flow_data": "AA=="}')

    assert response.status_code == 500
    assert response.body == b"Server not configured"


@pytest.mark.asyncio
async def test_flow_endpoint_rejects_malformed_body(
    flow_settings: FlowSettings, use_settings
) -> None:
    use_settings(flow_settings)

    response = await _post(b'{"invalid": true}')

    assert response.status_code == 400
    assert response.body == b"Malformed request"


@pytest.mark.asyncio
async def test_flow_endpoint_rejects_unparseable_body(
    flow_settings: FlowSettings, use_settings
) -> None:
    use_settings(flow_settings)

    response = await _post(b"definitely not json")

    assert response.status_code == 400
    assert response.body == b"Bad Request"


@pytest.mark.asyncio
async def test_flow_endpoint_returns_421_on_key_unwrap_failure(
    rsa_private_key: rsa.RSAPrivateKey, use_settings
) -> None:
    other = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    use_settings(FlowSettings(private_key_pem=private_key_to_pem(other)))
    envelope, _, _ = build_envelope(rsa_private_key.public_key(), PING)

    response = await _post(json.dumps(envelope).encode("utf-8"))

    assert response.status_code == 421
    assert response.body == b"Decryption failed"


@pytest.mark.asyncio
async def test_flow_endpoint_returns_421_on_tampered_payload(
    rsa_private_key: rsa.RSAPrivateKey, flow_settings: FlowSettings, use_settings
) -> None:
    use_settings(flow_settings)
    envelope, _, _ = build_envelope(rsa_private_key.public_key(), PING)
    sealed = base64.b64decode(envelope["encrypted_flow_data"])
    envelope["encrypted_flow_data"] = b64(flip_bit(sealed, 3))

    response = await _post(json.dumps(envelope).encode("utf-8"))

    assert response.status_code == 421
    assert response.body == b"Decryption failed"


@pytest.mark.asyncio
async def test_flow_endpoint_rejects_unsupported_key_size(
    rsa_private_key: rsa.RSAPrivateKey, flow_settings: FlowSettings, use_settings
) -> None:
    use_settings(flow_settings)
    envelope, _, _ = build_envelope(rsa_private_key.public_key(), PING, aes_key=bytes(24))

    response = await _post(json.dumps(envelope).encode("utf-8"))

    assert response.status_code == 400
    assert response.body == b"Decryption failed"


@pytest.mark.asyncio
async def test_flow_endpoint_rejects_non_object_cleartext(
    rsa_private_key: rsa.RSAPrivateKey, flow_settings: FlowSettings, use_settings
) -> None:
    use_settings(flow_settings)
    envelope, _, _ = build_envelope(rsa_private_key.public_key(), ["a", "b"])

    response = await _post(json.dumps(envelope).encode("utf-8"))

    assert response.status_code == 400
    assert response.body == b"Invalid payload"


@pytest.mark.asyncio
async def test_flow_endpoint_plaintext_fallback_replies_in_clear(
    flow_settings: FlowSettings, use_settings
) -> None:
    use_settings(replace(flow_settings, allow_plaintext_fallback=True))

    response = await _post(b'{"action": "ping"}')

    assert response.status_code == 200
    assert json.loads(response.body) == {"data": {"status": "active"}}


@pytest.mark.asyncio
async def test_flow_endpoint_status() -> None:
    response = await flows.flow_endpoint_status()
    payload = json.loads(response.body)

    assert payload["ok"] is True
    assert payload["version"] == flows.ENDPOINT_VERSION
    assert "now" in payload


def test_flow_endpoint_mounted_under_webhook_prefix(
    rsa_private_key: rsa.RSAPrivateKey, flow_settings: FlowSettings, use_settings
) -> None:
    use_settings(flow_settings)
    app = FastAPI()
    app.include_router(create_api_router())
    envelope, aes_key, _ = build_envelope(rsa_private_key.public_key(), PING)

    with TestClient(app) as client:
        status = client.get("/webhook/whatsapp/flow/endpoint")
        response = client.post(
            "/webhook/whatsapp/flow/endpoint",
            content=json.dumps(envelope),
            headers={"x-correlation-id": "req-1"},
        )

    assert status.status_code == 200
    assert response.status_code == 200
    assert open_flow_response(response.text, session_key=aes_key) == {"data": {"status": "active"}}


@pytest.mark.asyncio
async def test_flow_endpoint_unexpected_error_returns_500(
    rsa_private_key: rsa.RSAPrivateKey,
    flow_settings: FlowSettings,
    use_settings,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    use_settings(flow_settings)

    def _boom(payload: object) -> dict[str, str]:
        raise RuntimeError("detalhe interno")

    monkeypatch.setattr(flows, "extract_form_fields", _boom)
    envelope, _, _ = build_envelope(rsa_private_key.public_key(), SUBMIT)

    response = await _post(json.dumps(envelope).encode("utf-8"))

    assert response.status_code == 500
    assert response.body == b"Internal Server Error"
