"""Descoberta e normalização do envelope de três campos do Flow.

O corpo pode chegar como JSON puro ou como base64(JSON). Os nomes dos
campos variam entre integrações; em vez de varrer o JSON procurando
strings "parecidas com base64", usamos uma tabela finita de aliases,
testada em ordem de prioridade.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from dataclasses import dataclass
from typing import Any

from .constants import IV_SIZE, TAG_SIZE
from .errors import BadRequestError, MalformedEnvelopeError

_URLSAFE_B64_RE = re.compile(r"[A-Za-z0-9_\-]+={0,2}")


@dataclass(frozen=True, slots=True)
class EnvelopeFieldNames:
    """Conjunto de nomes (dados, chave, IV) aceito como envelope."""

    flow_data: str
    aes_key: str
    initial_vector: str


# Ordem importa: o primeiro conjunto completo encontrado vence.
ENVELOPE_FIELD_ALIASES: tuple[EnvelopeFieldNames, ...] = (
    EnvelopeFieldNames("encrypted_flow_data", "encrypted_aes_key", "initial_vector"),
    EnvelopeFieldNames("encrypted_flow_data", "encrypted_aes_key", "iv"),
    EnvelopeFieldNames("encryptedFlowData", "encryptedAesKey", "initialVector"),
)


@dataclass(frozen=True, slots=True)
class EncryptedEnvelope:
    """Envelope já decodificado de base64 e com ciphertext/tag separados."""

    encrypted_aes_key: bytes
    iv: bytes
    ciphertext: bytes
    tag: bytes

    @property
    def sealed(self) -> bytes:
        """ciphertext || tag, formato consumido por AESGCM."""
        return self.ciphertext + self.tag


def decode_base64(raw_value: str, *, field: str) -> bytes:
    """Decodifica base64 padrão ou URL-safe, com padding opcional.

    Raises:
        MalformedEnvelopeError: Se o valor estiver vazio ou não for base64.
    """
    value = raw_value.strip()
    if not value:
        raise MalformedEnvelopeError(f"Empty base64 field: {field}")
    padded = value + ("=" * (-len(value) % 4))
    try:
        return base64.b64decode(padded, validate=True)
    except (ValueError, binascii.Error):
        # urlsafe só para valores com alfabeto urlsafe; evita aceitar lixo
        if not _URLSAFE_B64_RE.fullmatch(value):
            raise MalformedEnvelopeError(f"Invalid base64 field: {field}") from None
        try:
            return base64.urlsafe_b64decode(padded)
        except (ValueError, binascii.Error) as exc:
            raise MalformedEnvelopeError(f"Invalid base64 field: {field}") from exc


def parse_request_body(raw_body: bytes | str) -> Any:
    """Interpreta o corpo como JSON ou, em segundo caso, base64(JSON).

    Raises:
        BadRequestError: Se nenhuma das duas interpretações funcionar.
    """
    if isinstance(raw_body, bytes):
        try:
            text = raw_body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BadRequestError("Body is not UTF-8") from exc
    else:
        text = raw_body

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    try:
        decoded = base64.b64decode(text.strip(), validate=False)
        return json.loads(decoded.decode("utf-8"))
    except (ValueError, binascii.Error, UnicodeDecodeError) as exc:
        raise BadRequestError("Body is neither JSON nor base64(JSON)") from exc


def find_envelope_fields(payload: Any) -> tuple[str, str, str]:
    """Localiza (flow_data, aes_key, iv) pela tabela de aliases.

    Raises:
        MalformedEnvelopeError: Se nenhum conjunto de nomes estiver completo.
    """
    if not isinstance(payload, dict):
        raise MalformedEnvelopeError("Envelope must be a JSON object")

    for names in ENVELOPE_FIELD_ALIASES:
        values = (
            payload.get(names.flow_data),
            payload.get(names.aes_key),
            payload.get(names.initial_vector),
        )
        if all(isinstance(value, str) and value.strip() for value in values):
            return values  # type: ignore[return-value]

    raise MalformedEnvelopeError("Missing encrypted envelope fields")


def decode_envelope(payload: Any, *, lenient_iv: bool = False) -> EncryptedEnvelope:
    """Valida e decodifica os três campos do envelope.

    Nenhuma operação RSA/AES acontece aqui; qualquer problema de formato
    é detectado antes de tocar na chave privada.

    Args:
        payload: JSON do corpo já interpretado.
        lenient_iv: Aceita IV com 12 bytes ou mais (padrão: exatamente 12).

    Raises:
        MalformedEnvelopeError: Campos ausentes, base64 inválido, IV com
            tamanho fora da política ou blob sem espaço para a tag.
    """
    flow_data_b64, aes_key_b64, iv_b64 = find_envelope_fields(payload)

    iv = decode_base64(iv_b64, field="initial_vector")
    flow_data = decode_base64(flow_data_b64, field="encrypted_flow_data")
    encrypted_aes_key = decode_base64(aes_key_b64, field="encrypted_aes_key")

    if lenient_iv:
        if len(iv) < IV_SIZE:
            raise MalformedEnvelopeError(f"IV too short: {len(iv)} bytes")
    elif len(iv) != IV_SIZE:
        raise MalformedEnvelopeError(f"IV must be {IV_SIZE} bytes, got {len(iv)}")

    if len(flow_data) <= TAG_SIZE:
        raise MalformedEnvelopeError("Encrypted flow data shorter than GCM tag")

    return EncryptedEnvelope(
        encrypted_aes_key=encrypted_aes_key,
        iv=iv,
        ciphertext=flow_data[:-TAG_SIZE],
        tag=flow_data[-TAG_SIZE:],
    )
