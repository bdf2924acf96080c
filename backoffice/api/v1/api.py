"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from backoffice.api.v1.endpoints import auth, layout, system

api_router = APIRouter()

# Auth (login, refresh, profile, user management)
api_router.include_router(auth.router)

# Layout mode (mobile / desktop) and the forced mobile flag
api_router.include_router(layout.router)

# Health
api_router.include_router(system.router)
