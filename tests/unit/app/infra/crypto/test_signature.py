"""Testes da validação de assinatura HMAC-SHA256."""

from __future__ import annotations

import hashlib
import hmac

from app.infra.crypto.signature import validate_flow_signature

SECRET = b"app-secret"
BODY = b'{"encrypted_flow_data":"AA=="}'


def _sign(payload: bytes, secret: bytes = SECRET) -> str:
    return "sha256=" + hmac.new(secret, payload, hashlib.sha256).hexdigest()


def test_valid_signature() -> None:
    assert validate_flow_signature(BODY, _sign(BODY), SECRET) is True


def test_prefix_and_hex_are_case_insensitive() -> None:
    signature = _sign(BODY).upper()
    assert validate_flow_signature(BODY, signature, SECRET) is True


def test_tampered_body() -> None:
    assert validate_flow_signature(BODY + b" ", _sign(BODY), SECRET) is False


def test_wrong_secret() -> None:
    assert validate_flow_signature(BODY, _sign(BODY, b"outro"), SECRET) is False


def test_missing_prefix() -> None:
    digest = hmac.new(SECRET, BODY, hashlib.sha256).hexdigest()
    assert validate_flow_signature(BODY, digest, SECRET) is False


def test_missing_signature_or_secret() -> None:
    assert validate_flow_signature(BODY, None, SECRET) is False
    assert validate_flow_signature(BODY, "", SECRET) is False
    assert validate_flow_signature(BODY, _sign(BODY), b"") is False
