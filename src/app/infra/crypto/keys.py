"""Operações de chave RSA e AES para Flows."""

from __future__ import annotations

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.hashes import SHA256

from .constants import AES_GCM_VARIANTS
from .errors import CryptoConfigurationError, InvalidKeyLengthError, KeyUnwrapError

_OAEP_SHA256 = padding.OAEP(
    mgf=padding.MGF1(algorithm=SHA256()),
    algorithm=SHA256(),
    label=None,
)


def load_private_key(
    private_key_pem: str | None,
    passphrase: str | None = None,
) -> rsa.RSAPrivateKey:
    """Carrega chave privada RSA em formato PEM.

    Args:
        private_key_pem: Chave privada em formato PEM (PKCS#8 ou PKCS#1)
        passphrase: Senha da chave (opcional)

    Returns:
        Objeto de chave privada RSA

    Raises:
        CryptoConfigurationError: Se chave ausente, ilegível ou não-RSA
    """
    if not private_key_pem or not private_key_pem.strip():
        raise CryptoConfigurationError("Private key is not configured")

    passphrase_bytes = passphrase.encode() if passphrase and passphrase.strip() else None

    def _load(password: bytes | None) -> object:
        return serialization.load_pem_private_key(
            private_key_pem.encode("utf-8"),
            password=password,
            backend=default_backend(),
        )

    try:
        key = _load(passphrase_bytes)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        # Permite fallback quando a chave não está criptografada, mas uma
        # passphrase foi injetada por configuração.
        if passphrase_bytes and "not encrypted" in str(exc).lower():
            try:
                key = _load(None)
            except (ValueError, TypeError, UnsupportedAlgorithm) as retry_exc:
                raise CryptoConfigurationError("Invalid private key") from retry_exc
        else:
            raise CryptoConfigurationError("Invalid private key") from exc

    if not isinstance(key, rsa.RSAPrivateKey):
        raise CryptoConfigurationError("Private key must be RSA")
    return key


def decrypt_aes_key(private_key: rsa.RSAPrivateKey, encrypted_aes_key: bytes) -> bytes:
    """Descriptografa chave AES criptografada com RSA-OAEP (SHA-256).

    Args:
        private_key: Chave privada RSA
        encrypted_aes_key: Chave AES criptografada (bytes brutos)

    Returns:
        Chave de sessão AES (16 ou 32 bytes)

    Raises:
        KeyUnwrapError: Qualquer falha do RSA; a mensagem é constante
        InvalidKeyLengthError: Se a chave recuperada tiver outro tamanho
    """
    try:
        aes_key = private_key.decrypt(encrypted_aes_key, _OAEP_SHA256)
    except ValueError:
        # Sem encadear a causa: o detalhe do OAEP não pode vazar.
        raise KeyUnwrapError("AES key decryption failed") from None

    select_cipher_variant(aes_key)
    return aes_key


def select_cipher_variant(aes_key: bytes) -> str:
    """Retorna a variante AES-GCM correspondente ao tamanho da chave.

    Raises:
        InvalidKeyLengthError: Se o tamanho não for 16 ou 32 bytes
    """
    variant = AES_GCM_VARIANTS.get(len(aes_key))
    if variant is None:
        raise InvalidKeyLengthError(f"Invalid AES key size: {len(aes_key)}")
    return variant
