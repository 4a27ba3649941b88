"""Constantes criptográficas para WhatsApp Flows."""

IV_SIZE = 12  # 96 bits (recomendado para GCM)
TAG_SIZE = 16  # 128 bits

# Tamanho da chave de sessão -> variante AEAD
AES_GCM_VARIANTS: dict[int, str] = {
    16: "aes-128-gcm",
    32: "aes-256-gcm",
}
