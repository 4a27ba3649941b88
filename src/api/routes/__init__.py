"""Rotas HTTP da API — adapters de entrada.

Responsabilidades:
- Definir endpoints HTTP (data exchange do Flow, health)
- Validação inicial de request (assinatura, probe de liveness)
- Delegação para o codec em app/infra/crypto
- Respostas HTTP apropriadas, sem detalhes de exceção

Agregação:
- router.py: registra todos os routers no app principal
"""

from __future__ import annotations

from api.routes.router import create_api_router

__all__ = ["create_api_router"]
