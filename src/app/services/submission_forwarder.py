"""Encaminhamento opcional dos campos submetidos para webhook externo.

Usado para alimentar planilhas (ex.: Google Apps Script Web App). Falhas
de encaminhamento são logadas e nunca alteram a resposta ao Flow.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from app.infra.http import HttpClient, HttpClientConfig, HttpError

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.services.form_fields import FormFields

logger = logging.getLogger(__name__)

FORWARD_SOURCE = "wa-flow"
FORWARD_MAX_RETRIES = 1


class SubmissionForwarder:
    """POST de `{fields, received_at, source}` para a URL configurada."""

    def __init__(
        self,
        url: str,
        http_client: HttpClient | None = None,
        timeout_seconds: float = 5.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._url = url
        self._http = http_client or HttpClient(
            HttpClientConfig(timeout_seconds=timeout_seconds, max_retries=FORWARD_MAX_RETRIES)
        )
        self._clock = clock or (lambda: datetime.now(UTC))

    def build_record(self, fields: FormFields) -> dict[str, object]:
        return {
            "fields": dict(fields),
            "received_at": self._clock().isoformat(),
            "source": FORWARD_SOURCE,
        }

    async def forward(self, fields: FormFields) -> bool:
        """Encaminha os campos; retorna True se o destino aceitou.

        Mapeamento vazio não é encaminhado.
        """
        if not fields:
            return False
        try:
            response = await self._http.post_json(self._url, self.build_record(fields))
        except HttpError as exc:
            logger.warning(
                "flow_forward_failed",
                extra={
                    "component": "submission_forwarder",
                    "status_code": exc.status_code,
                    "reason": str(exc),
                },
            )
            return False
        logger.info(
            "flow_forwarded",
            extra={
                "component": "submission_forwarder",
                "status_code": response.status_code,
                "field_count": len(fields),
            },
        )
        return True
