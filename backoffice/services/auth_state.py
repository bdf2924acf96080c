"""
Auth/session provider — resolves who is signed in and publishes it.

:class:`AuthSessionStore` is the observable source the session gate
reads from. Resolution failures never escape: a bad token, a missing
profile, a database error or a timeout all collapse into "no user, no
session" with loading finished.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.config import settings
from backoffice.core.security import decode_access_token
from backoffice.core.session_gate import AuthListener, AuthState, Unsubscribe
from backoffice.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    id: int
    email: str
    name: str
    role: str

    @classmethod
    def from_user(cls, user: User) -> Identity:
        return cls(id=user.id, email=user.email, name=user.display_name, role=user.role)


@dataclass(frozen=True)
class SessionInfo:
    token: str
    user_id: int
    expires_at: datetime | None = None


Resolver = Callable[[], Awaitable[tuple[Identity | None, SessionInfo | None]]]


class AuthSessionStore:
    """Observable auth state. Starts in the loading state."""

    def __init__(self) -> None:
        self._state = AuthState()
        self._listeners: list[AuthListener] = []

    def get_state(self) -> AuthState:
        return self._state

    def subscribe(self, listener: AuthListener) -> Unsubscribe:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, state: AuthState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def set_session(self, user: Identity | None, session: SessionInfo | None) -> None:
        self._publish(AuthState(user=user, session=session, is_loading=False))

    def sign_out(self) -> None:
        self._publish(AuthState(user=None, session=None, is_loading=False))

    async def initialize(self, resolver: Resolver, timeout: float | None = None) -> AuthState:
        if not self._state.is_loading:
            self._publish(AuthState(user=self._state.user, session=self._state.session, is_loading=True))
        if timeout is None:
            timeout = settings.AUTH_INIT_TIMEOUT_SECONDS

        try:
            user, session = await asyncio.wait_for(resolver(), timeout)
        except asyncio.TimeoutError:
            logger.warning("Auth initialization timeout after %.1fs, treating as signed out", timeout)
            user, session = None, None
        except Exception as exc:  # collapses into the unauthenticated state
            logger.error("Error during auth initialization: %s", exc, exc_info=True)
            user, session = None, None

        self.set_session(user, session)
        return self._state


# ── Request resolution ──────────────────────────────────────────────
def extract_token(header_token: str | None, cookie_token: str | None) -> str | None:
    """Pick the bearer token. Priority: Header > Cookie."""
    if header_token:
        return header_token
    if cookie_token:
        # The login endpoint stores cookies as "Bearer <token>"
        if cookie_token.startswith("Bearer "):
            return cookie_token.split(" ", 1)[1]
        return cookie_token
    return None


async def resolve_request_auth(
    token: str | None, db: AsyncSession
) -> tuple[Identity | None, SessionInfo | None]:
    if not token:
        return None, None

    payload = decode_access_token(token)
    if payload is None or payload.get("sub") is None:
        logger.info("Rejected invalid or expired access token")
        return None, None

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        return None, None

    exp = payload.get("exp")
    session = SessionInfo(
        token=token,
        user_id=user_id,
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None,
    )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        logger.warning("Session for user %s has no active profile", user_id)
        return None, session
    return Identity.from_user(user), session
