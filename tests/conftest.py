"""Configuração do pytest para o endpoint de WhatsApp Flows."""

import sys
from pathlib import Path

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

# Adiciona src/ (imports absolutos) e a raiz (tests.fakes) ao PYTHONPATH
root_path = Path(__file__).parent.parent
for path in (root_path, root_path / "src"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config.settings import get_base_settings, get_flow_settings  # noqa: E402
from tests.fakes.flow_envelopes import private_key_to_pem  # noqa: E402


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    """Par RSA 2048 reaproveitado na sessão (geração é cara)."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_pem(rsa_private_key: rsa.RSAPrivateKey) -> str:
    return private_key_to_pem(rsa_private_key)


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Settings são cacheadas com lru_cache; cada teste parte do zero."""
    get_base_settings.cache_clear()
    get_flow_settings.cache_clear()
    yield
    get_base_settings.cache_clear()
    get_flow_settings.cache_clear()
