"""Validação de assinatura HMAC-SHA256 para o endpoint de Flows.

Reforço opcional: o endpoint só confere `X-Hub-Signature-256` quando
`WHATSAPP_APP_SECRET` está configurado. Sem secret a checagem fica
desligada e o envelope criptografado é a única proteção do request.
"""

from __future__ import annotations

import hashlib
import hmac

SIGNATURE_HEADER = "x-hub-signature-256"
_SIGNATURE_PREFIX = "sha256="


def validate_flow_signature(payload: bytes, signature: str | None, secret: bytes) -> bool:
    """Valida assinatura HMAC-SHA256 do Meta.

    Args:
        payload: Corpo bruto da requisição
        signature: Header X-Hub-Signature-256 (`sha256=<hex>`)
        secret: App secret em bytes

    Returns:
        True se assinatura válida
    """
    if not signature or not secret:
        return False
    signature = signature.strip()
    if not signature.lower().startswith(_SIGNATURE_PREFIX):
        return False

    expected = signature[len(_SIGNATURE_PREFIX):].lower()
    computed = hmac.new(secret, payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(computed, expected)
