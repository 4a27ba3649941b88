"""Montagem das rotas HTTP do serviço.

    GET  /health                           liveness do processo
    GET  /webhook/whatsapp/flow/endpoint   status do endpoint de Flow
    POST /webhook/whatsapp/flow/endpoint   data exchange criptografado
"""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.health.router import router as health_router
from api.routes.whatsapp.flows import router as flows_router

WHATSAPP_PREFIX = "/webhook/whatsapp"


def create_api_router() -> APIRouter:
    """Router raiz com health (sem prefixo) e Flow sob /webhook/whatsapp."""
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(flows_router, prefix=WHATSAPP_PREFIX, tags=["whatsapp-flows"])
    return api_router
