"""Criptografia para endpoint de WhatsApp Flows (data exchange).

Codec único para o envelope híbrido RSA-OAEP + AES-GCM. Os pontos em que
as integrações divergem (enquadramento da resposta, IV da resposta,
tolerância de tamanho do IV e fallback para JSON puro) são opções
explícitas em `FlowCodecOptions`, não caminhos de código paralelos.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Literal

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .constants import IV_SIZE, TAG_SIZE
from .envelope import decode_base64, decode_envelope, parse_request_body
from .errors import (
    AuthenticationFailedError,
    CryptoConfigurationError,
    FlowCryptoError,
    InvalidPlaintextError,
    MalformedEnvelopeError,
)
from .keys import decrypt_aes_key, load_private_key, select_cipher_variant

logger = logging.getLogger(__name__)

ResponseFraming = Literal["envelope", "raw"]
ResponseIvStrategy = Literal["random", "invert", "reverse"]
IvLengthPolicy = Literal["strict", "lenient"]

RESPONSE_FRAMINGS: frozenset[str] = frozenset({"envelope", "raw"})
RESPONSE_IV_STRATEGIES: frozenset[str] = frozenset({"random", "invert", "reverse"})
IV_LENGTH_POLICIES: frozenset[str] = frozenset({"strict", "lenient"})


@dataclass(frozen=True, slots=True)
class FlowCodecOptions:
    """Pontos de variação do contrato de fio.

    Attributes:
        response_framing: `envelope` = base64(JSON {iv, ciphertext, tag});
            `raw` = base64(ciphertext || tag), sem IV embutido.
        response_iv: `random` gera IV novo por resposta; `invert` (XOR 0xFF)
            e `reverse` derivam do IV do request e só valem com `raw`.
        iv_length_policy: `strict` exige IV de 12 bytes; `lenient` aceita >= 12.
        allow_plaintext_fallback: Se True, um corpo que falha na decifragem é
            aceito como JSON puro. Desliga a garantia do AEAD; padrão False.
    """

    response_framing: ResponseFraming = "envelope"
    response_iv: ResponseIvStrategy = "random"
    iv_length_policy: IvLengthPolicy = "strict"
    allow_plaintext_fallback: bool = False

    def validate(self) -> list[str]:
        """Valida combinação de opções.

        Returns:
            Lista de erros de validação (vazia = tudo OK).
        """
        errors: list[str] = []
        if self.response_framing not in RESPONSE_FRAMINGS:
            errors.append(f"response_framing inválido: {self.response_framing}")
        if self.response_iv not in RESPONSE_IV_STRATEGIES:
            errors.append(f"response_iv inválido: {self.response_iv}")
        if self.iv_length_policy not in IV_LENGTH_POLICIES:
            errors.append(f"iv_length_policy inválido: {self.iv_length_policy}")
        if self.response_framing == "raw" and self.response_iv == "random":
            errors.append("response_framing=raw exige IV derivado (invert|reverse)")
        if self.response_framing == "envelope" and self.response_iv != "random":
            errors.append("response_framing=envelope exige response_iv=random")
        return errors


DEFAULT_CODEC_OPTIONS = FlowCodecOptions()


@dataclass(frozen=True, slots=True)
class DecryptedFlowRequest:
    """Payload descriptografado + material para resposta criptografada.

    `session_key` e `iv` são None apenas quando o fallback para JSON puro
    foi usado (`encrypted=False`).
    """

    cleartext: Any
    session_key: bytes | None
    iv: bytes | None
    encrypted: bool = True


def _aead(session_key: bytes) -> AESGCM:
    select_cipher_variant(session_key)
    return AESGCM(session_key)


def _parse_plaintext(plaintext: bytes) -> Any:
    try:
        return json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise InvalidPlaintextError("Decrypted payload is not JSON") from exc


def decrypt_flow_request(
    raw_body: bytes | str,
    private_key_pem: str | None,
    private_key_passphrase: str | None = None,
    *,
    options: FlowCodecOptions = DEFAULT_CODEC_OPTIONS,
) -> DecryptedFlowRequest:
    """Descriptografa request do endpoint de Flow.

    O formato esperado pela Meta é:
    - `encrypted_aes_key`: chave AES criptografada com RSA-OAEP (base64)
    - `initial_vector`: IV AES-GCM (base64)
    - `encrypted_flow_data`: ciphertext + auth tag concatenados (base64)

    O corpo pode vir como JSON ou base64(JSON); nomes alternativos dos
    campos seguem `ENVELOPE_FIELD_ALIASES`.

    Raises:
        BadRequestError: Corpo não é JSON nem base64(JSON).
        MalformedEnvelopeError: Campos ausentes ou inválidos.
        CryptoConfigurationError: Chave privada ausente ou inválida.
        KeyUnwrapError: RSA-OAEP falhou.
        InvalidKeyLengthError: Chave de sessão fora de 16/32 bytes.
        AuthenticationFailedError: Tag GCM não confere.
        InvalidPlaintextError: Conteúdo decifrado não é JSON.
    """
    body = parse_request_body(raw_body)
    try:
        return _decrypt_envelope(body, private_key_pem, private_key_passphrase, options)
    except CryptoConfigurationError:
        raise
    except FlowCryptoError as exc:
        if not options.allow_plaintext_fallback:
            raise
        logger.warning(
            "flow_plaintext_fallback",
            extra={"component": "flow_codec", "error_type": type(exc).__name__},
        )
        return DecryptedFlowRequest(cleartext=body, session_key=None, iv=None, encrypted=False)


def _decrypt_envelope(
    body: Any,
    private_key_pem: str | None,
    private_key_passphrase: str | None,
    options: FlowCodecOptions,
) -> DecryptedFlowRequest:
    envelope = decode_envelope(body, lenient_iv=options.iv_length_policy == "lenient")
    logger.debug(
        "flow_envelope_decoded",
        extra={
            "component": "flow_codec",
            "iv_len": len(envelope.iv),
            "ciphertext_len": len(envelope.ciphertext),
            "wrapped_key_len": len(envelope.encrypted_aes_key),
        },
    )

    private_key = load_private_key(private_key_pem, private_key_passphrase)
    session_key = decrypt_aes_key(private_key, envelope.encrypted_aes_key)

    try:
        plaintext = _aead(session_key).decrypt(envelope.iv, envelope.sealed, None)
    except InvalidTag:
        raise AuthenticationFailedError("Flow payload authentication failed") from None
    except ValueError as exc:
        # AESGCM rejeita nonces fora de 8..128 bytes
        raise MalformedEnvelopeError("Invalid initial vector") from exc

    return DecryptedFlowRequest(
        cleartext=_parse_plaintext(plaintext),
        session_key=session_key,
        iv=envelope.iv,
    )


def derive_response_iv(
    strategy: ResponseIvStrategy,
    request_iv: bytes | None = None,
) -> bytes:
    """Calcula o IV da resposta conforme a estratégia configurada.

    Raises:
        CryptoConfigurationError: Estratégia derivada sem IV do request,
            ou estratégia desconhecida.
    """
    if strategy == "random":
        return os.urandom(IV_SIZE)
    if request_iv is None:
        raise CryptoConfigurationError(f"response_iv={strategy} requires the request IV")
    if strategy == "invert":
        return bytes(byte ^ 0xFF for byte in request_iv)
    if strategy == "reverse":
        return request_iv[::-1]
    raise CryptoConfigurationError(f"Unknown response IV strategy: {strategy}")


def _check_options(options: FlowCodecOptions) -> None:
    errors = options.validate()
    if errors:
        raise CryptoConfigurationError("; ".join(errors))


def encrypt_flow_response(
    *,
    response: Any,
    session_key: bytes,
    request_iv: bytes | None = None,
    options: FlowCodecOptions = DEFAULT_CODEC_OPTIONS,
) -> str:
    """Criptografa resposta para Flow e retorna uma única string base64.

    Com `envelope`, retorna base64(JSON {iv, ciphertext, tag}) com IV novo.
    Com `raw`, retorna base64(ciphertext + tag) e o IV é derivado do IV do
    request (o cliente recalcula do seu lado).

    Raises:
        InvalidKeyLengthError: Chave de sessão fora de 16/32 bytes.
        CryptoConfigurationError: Combinação de opções impossível.
        TypeError: Se `response` não for serializável em JSON.
    """
    _check_options(options)
    aesgcm = _aead(session_key)
    iv = derive_response_iv(options.response_iv, request_iv)

    plaintext = json.dumps(response, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    sealed = aesgcm.encrypt(iv, plaintext, None)

    if options.response_framing == "raw":
        return base64.b64encode(sealed).decode("utf-8")

    framed = {
        "iv": base64.b64encode(iv).decode("utf-8"),
        "ciphertext": base64.b64encode(sealed[:-TAG_SIZE]).decode("utf-8"),
        "tag": base64.b64encode(sealed[-TAG_SIZE:]).decode("utf-8"),
    }
    envelope_json = json.dumps(framed, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(envelope_json).decode("utf-8")


def open_flow_response(
    wire: str,
    *,
    session_key: bytes,
    request_iv: bytes | None = None,
    options: FlowCodecOptions = DEFAULT_CODEC_OPTIONS,
) -> Any:
    """Abre uma resposta produzida por `encrypt_flow_response`.

    Lado cliente do contrato; usado para autoteste de integração.

    Raises:
        MalformedEnvelopeError: Resposta com enquadramento inválido.
        AuthenticationFailedError: Tag GCM não confere.
        InvalidPlaintextError: Conteúdo decifrado não é JSON.
    """
    _check_options(options)
    aesgcm = _aead(session_key)
    outer = decode_base64(wire, field="response")

    if options.response_framing == "raw":
        iv = derive_response_iv(options.response_iv, request_iv)
        sealed = outer
    else:
        try:
            framed = json.loads(outer.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedEnvelopeError("Response envelope is not JSON") from exc
        if not isinstance(framed, dict) or not all(
            isinstance(framed.get(name), str) for name in ("iv", "ciphertext", "tag")
        ):
            raise MalformedEnvelopeError("Response envelope missing iv/ciphertext/tag")
        iv = decode_base64(framed["iv"], field="iv")
        tag = decode_base64(framed["tag"], field="tag")
        if len(tag) != TAG_SIZE:
            raise MalformedEnvelopeError(f"Tag must be {TAG_SIZE} bytes")
        try:
            ciphertext = base64.b64decode(framed["ciphertext"], validate=True)
        except (ValueError, binascii.Error) as exc:
            raise MalformedEnvelopeError("Invalid base64 field: ciphertext") from exc
        sealed = ciphertext + tag

    if len(sealed) < TAG_SIZE:
        raise MalformedEnvelopeError("Response shorter than GCM tag")

    try:
        plaintext = aesgcm.decrypt(iv, sealed, None)
    except InvalidTag:
        raise AuthenticationFailedError("Flow response authentication failed") from None
    except ValueError as exc:
        # AESGCM rejeita nonces fora de 8..128 bytes
        raise MalformedEnvelopeError("Invalid response IV") from exc
    return _parse_plaintext(plaintext)
