"""Erros de criptografia para WhatsApp Flows.

Cada erro carrega o status HTTP sugerido para o chamador e uma mensagem
pública curta. A mensagem pública nunca inclui detalhes da exceção
original nem material de chave.
"""

from __future__ import annotations


class FlowCryptoError(Exception):
    """Erro em operação criptográfica de Flow."""

    status_code: int = 400
    public_message: str = "Bad Request"


class BadRequestError(FlowCryptoError):
    """Corpo não é JSON nem base64(JSON)."""


class MalformedEnvelopeError(FlowCryptoError):
    """Envelope sem algum dos três campos ou com base64/tamanhos inválidos."""

    public_message = "Malformed request"


class KeyUnwrapError(FlowCryptoError):
    """RSA-OAEP não conseguiu recuperar a chave de sessão."""

    status_code = 421
    public_message = "Decryption failed"


class InvalidKeyLengthError(FlowCryptoError):
    """Chave de sessão com tamanho diferente de 16 ou 32 bytes."""

    public_message = "Decryption failed"


class AuthenticationFailedError(FlowCryptoError):
    """Tag GCM não confere (payload adulterado ou chave errada)."""

    status_code = 421
    public_message = "Decryption failed"


class InvalidPlaintextError(FlowCryptoError):
    """Payload decifrado e autenticado, mas não é JSON UTF-8."""

    public_message = "Invalid payload"


class CryptoConfigurationError(FlowCryptoError):
    """Chave privada ausente/inválida ou combinação de opções impossível."""

    status_code = 500
    public_message = "Server not configured"
