"""
FastAPI dependencies — auth state, guards, device signals and database session.
"""

from __future__ import annotations

import math
from collections.abc import AsyncGenerator, Callable, Coroutine
from typing import Any, Optional

from fastapi import Cookie, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.config import settings
from backoffice.core.layout_mode import DeviceSignals
from backoffice.core.permissions import has_permission
from backoffice.core.session_gate import SessionGate
from backoffice.db.session import async_session_factory
from backoffice.services.auth_state import (AuthSessionStore, Identity,
                                            extract_token,
                                            resolve_request_auth)

# auto_error=False so the HttpOnly cookie can stand in for the header
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_PREFIX}/auth/login", auto_error=False
)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Auth state ──────────────────────────────────────────────────────
async def get_auth_store(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),
    db: AsyncSession = Depends(get_db),
) -> AuthSessionStore:
    """Resolve the caller's user/session once per request."""
    final_token = extract_token(token, access_token)
    store = AuthSessionStore()
    await store.initialize(lambda: resolve_request_auth(final_token, db))
    return store


def get_session_gate(store: AuthSessionStore = Depends(get_auth_store)) -> SessionGate:
    return SessionGate(store, settings.LOGIN_PATH)


async def get_current_user(store: AuthSessionStore = Depends(get_auth_store)) -> Identity:
    state = store.get_state()
    if not state.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return state.user


def require_permission(permission: str) -> Callable[..., Coroutine[Any, Any, Identity]]:
    """Build a dependency that only lets roles holding *permission* through."""

    async def _guard(current_user: Identity = Depends(get_current_user)) -> Identity:
        if not has_permission(current_user.role, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission '{permission}' required",
            )
        return current_user

    return _guard


# ── Device signals ──────────────────────────────────────────────────
def get_device_signals(request: Request) -> DeviceSignals:
    """Read the user agent and the viewport-width client hint."""
    raw_width = request.headers.get("sec-ch-viewport-width") or request.headers.get("viewport-width")
    try:
        value = float(raw_width) if raw_width else None
    except (ValueError, OverflowError):
        value = None
    # Absent unless a finite, non-negative pixel count.
    width = int(value) if value is not None and math.isfinite(value) and value >= 0 else None
    return DeviceSignals(user_agent=request.headers.get("user-agent", ""), viewport_width=width)
