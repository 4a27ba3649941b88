"""Aplicação ASGI do endpoint de WhatsApp Flows.

    uvicorn app.app:app --host 0.0.0.0 --port 8080

`python -m app.app` (ou o script `wa-flow-endpoint`) sobe o uvicorn
lendo HOST/PORT do ambiente; reload só com DEBUG=true.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from api.routes import create_api_router
from api.routes.whatsapp.flow_tasks import drain_forward_tasks
from app.bootstrap import initialize_app, validate_runtime_settings
from config.logging import get_logger
from config.settings import get_base_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from config.settings import BaseSettings

initialize_app()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncIterator[None]:
    """Startup valida settings (falha rápido em staging/produção).

    No shutdown aguarda os encaminhamentos ainda pendentes.
    """
    validate_runtime_settings()
    logger.info("flow_endpoint_started", extra={"component": "app", "title": fastapi_app.title})
    yield
    await drain_forward_tasks()
    logger.info("flow_endpoint_stopped", extra={"component": "app"})


def create_app(settings: BaseSettings | None = None) -> FastAPI:
    """Cria a aplicação; docs/OpenAPI só existem em development."""
    base = settings or get_base_settings()
    docs_enabled = base.is_development
    fastapi_app = FastAPI(
        title="WA Flow Endpoint",
        description="Data exchange criptografado (RSA-OAEP + AES-GCM) para WhatsApp Flows",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    fastapi_app.include_router(create_api_router())
    return fastapi_app


app = create_app()


def main() -> None:
    import uvicorn

    base = get_base_settings()
    uvicorn.run(
        "app.app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
        reload=base.debug,
        log_config=None,
    )


if __name__ == "__main__":
    main()
