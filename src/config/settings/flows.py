"""Settings do endpoint de WhatsApp Flows.

A chave privada RSA é fornecida fora de banda (env/secret store). O
codec falha rápido com erro de configuração quando ela está ausente.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from config.settings.base import env_flag

DEFAULT_SUCCESS_SCREEN = "SERVICE_SUCCESS"
DEFAULT_FORWARD_TIMEOUT_SECONDS = 5.0

RESPONSE_FRAMINGS = ("envelope", "raw")
RESPONSE_IV_STRATEGIES = ("random", "invert", "reverse")
IV_LENGTH_POLICIES = ("strict", "lenient")


@dataclass(frozen=True)
class FlowSettings:
    """Configurações do endpoint de Flow.

    Attributes:
        private_key_pem: Chave privada RSA (PEM, PKCS#8)
        private_key_passphrase: Senha da chave (opcional)
        app_secret: Secret do app para validar X-Hub-Signature-256 (opcional)
        response_framing: Enquadramento da resposta (envelope|raw)
        response_iv: Estratégia de IV da resposta (random|invert|reverse)
        iv_length_policy: Tolerância do IV do request (strict|lenient)
        allow_plaintext_fallback: Aceita JSON puro quando a decifragem falha
        success_screen: Tela retornada após submissão
        forward_url: Webhook externo para os campos submetidos (opcional)
        forward_timeout_seconds: Timeout do encaminhamento (None se o env não
            for numérico)
    """

    private_key_pem: str = ""
    private_key_passphrase: str = ""
    app_secret: str = ""

    response_framing: str = "envelope"
    response_iv: str = "random"
    iv_length_policy: str = "strict"
    allow_plaintext_fallback: bool = False

    success_screen: str = DEFAULT_SUCCESS_SCREEN

    forward_url: str = ""
    forward_timeout_seconds: float | None = DEFAULT_FORWARD_TIMEOUT_SECONDS

    @property
    def signature_required(self) -> bool:
        """Assinatura só é exigida quando o app secret está configurado."""
        return bool(self.app_secret)

    def validate(self) -> list[str]:
        """Valida configurações do endpoint.

        Returns:
            Lista de erros de validação (vazia = tudo OK).
        """
        errors: list[str] = []

        if not self.private_key_pem.strip():
            errors.append("WA_PRIVATE_KEY não configurada")
        elif "PRIVATE KEY" not in self.private_key_pem:
            errors.append("WA_PRIVATE_KEY não parece um PEM de chave privada")

        if self.response_framing not in RESPONSE_FRAMINGS:
            errors.append("FLOW_RESPONSE_FRAMING deve ser 'envelope' ou 'raw'")

        if self.response_iv not in RESPONSE_IV_STRATEGIES:
            errors.append("FLOW_RESPONSE_IV deve ser 'random', 'invert' ou 'reverse'")
        elif (self.response_framing == "raw") == (self.response_iv == "random"):
            errors.append(
                "FLOW_RESPONSE_IV=random só vale com envelope; raw exige invert|reverse"
            )

        if self.iv_length_policy not in IV_LENGTH_POLICIES:
            errors.append("FLOW_IV_LENGTH_POLICY deve ser 'strict' ou 'lenient'")

        if not self.success_screen:
            errors.append("FLOW_SUCCESS_SCREEN não pode ser vazio")

        if self.forward_timeout_seconds is None:
            errors.append("FLOW_FORWARD_TIMEOUT_SECONDS deve ser numérico")
        elif not self.forward_timeout_seconds > 0:
            errors.append("FLOW_FORWARD_TIMEOUT_SECONDS deve ser > 0")

        return errors


def _normalize_pem(raw: str) -> str:
    # Secrets em uma linha costumam chegar com "\n" literal
    return raw.replace("\\n", "\n").strip()


def _env_seconds(name: str, default: float) -> float | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return None


def _load_from_env() -> FlowSettings:
    """Carrega FlowSettings a partir de variáveis de ambiente."""
    private_key = os.getenv("WA_PRIVATE_KEY") or os.getenv("WHATSAPP_FLOW_PRIVATE_KEY", "")
    response_iv = os.getenv("FLOW_RESPONSE_IV") or os.getenv("WA_IV_STRATEGY", "random")
    forward_url = os.getenv("FLOW_FORWARD_URL") or os.getenv("GAS_WEBAPP_URL", "")
    return FlowSettings(
        private_key_pem=_normalize_pem(private_key),
        private_key_passphrase=os.getenv("WA_PRIVATE_KEY_PASSPHRASE", ""),
        app_secret=os.getenv("WHATSAPP_APP_SECRET", ""),
        response_framing=os.getenv("FLOW_RESPONSE_FRAMING", "envelope").lower(),
        response_iv=response_iv.lower(),
        iv_length_policy=os.getenv("FLOW_IV_LENGTH_POLICY", "strict").lower(),
        allow_plaintext_fallback=env_flag("FLOW_ALLOW_PLAINTEXT_FALLBACK"),
        success_screen=os.getenv("FLOW_SUCCESS_SCREEN", DEFAULT_SUCCESS_SCREEN),
        forward_url=forward_url.strip(),
        forward_timeout_seconds=_env_seconds(
            "FLOW_FORWARD_TIMEOUT_SECONDS", DEFAULT_FORWARD_TIMEOUT_SECONDS
        ),
    )


@lru_cache(maxsize=1)
def get_flow_settings() -> FlowSettings:
    """Retorna instância cacheada de FlowSettings.

    A cache garante singleton para múltiplas injeções.
    """
    return _load_from_env()
