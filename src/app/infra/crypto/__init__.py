"""Módulo de criptografia para WhatsApp Flows.

Codec do envelope híbrido usado pelo endpoint de data exchange:
RSA-OAEP (SHA-256) desembrulha a chave de sessão, AES-GCM autentica e
decifra o payload, e a resposta é cifrada com a mesma chave de sessão.

Localizado em app/infra/ para manter boundaries corretas:
- app/ não importa de api/ (exceto via bootstrap)
- api/routes usa este módulo como chamador externo do codec
"""

from .constants import AES_GCM_VARIANTS, IV_SIZE, TAG_SIZE
from .envelope import (
    ENVELOPE_FIELD_ALIASES,
    EncryptedEnvelope,
    EnvelopeFieldNames,
    decode_envelope,
    parse_request_body,
)
from .errors import (
    AuthenticationFailedError,
    BadRequestError,
    CryptoConfigurationError,
    FlowCryptoError,
    InvalidKeyLengthError,
    InvalidPlaintextError,
    KeyUnwrapError,
    MalformedEnvelopeError,
)
from .flow_encryption import (
    DecryptedFlowRequest,
    FlowCodecOptions,
    decrypt_flow_request,
    derive_response_iv,
    encrypt_flow_response,
    open_flow_response,
)
from .keys import decrypt_aes_key, load_private_key, select_cipher_variant
from .signature import SIGNATURE_HEADER, validate_flow_signature

__all__ = [
    "AES_GCM_VARIANTS",
    "ENVELOPE_FIELD_ALIASES",
    "IV_SIZE",
    "SIGNATURE_HEADER",
    "TAG_SIZE",
    "AuthenticationFailedError",
    "BadRequestError",
    "CryptoConfigurationError",
    "DecryptedFlowRequest",
    "EncryptedEnvelope",
    "EnvelopeFieldNames",
    "FlowCodecOptions",
    "FlowCryptoError",
    "InvalidKeyLengthError",
    "InvalidPlaintextError",
    "KeyUnwrapError",
    "MalformedEnvelopeError",
    "decode_envelope",
    "decrypt_aes_key",
    "decrypt_flow_request",
    "derive_response_iv",
    "encrypt_flow_response",
    "load_private_key",
    "open_flow_response",
    "parse_request_body",
    "select_cipher_variant",
    "validate_flow_signature",
]
