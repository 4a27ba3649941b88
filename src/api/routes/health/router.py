"""GET /health: liveness do processo, sem tocar na chave privada."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter
from pydantic import BaseModel

from config.settings import get_base_settings

router = APIRouter()

SERVICE_VERSION = "1.0.0"


class HealthResponse(BaseModel):
    status: str
    service: str
    environment: str
    timestamp: str
    version: str = SERVICE_VERSION


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    base = get_base_settings()
    return HealthResponse(
        status="healthy",
        service=base.service_name,
        environment=base.environment,
        timestamp=datetime.now(UTC).isoformat(),
    )
