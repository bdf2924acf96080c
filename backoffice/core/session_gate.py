"""
Session gate: decides whether a protected view may render.

The gate only reads auth state. It never signs anyone in or out; the
provider drives those transitions and the gate reacts to them.

    Loading          provider has not resolved yet -> show a placeholder
    Redirect(login)  resolved, user or session missing -> replace-navigate
    Render           resolved, both present -> render the children as-is
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_PATH = "/login"


@dataclass(frozen=True)
class AuthState:
    user: Any = None
    session: Any = None
    is_loading: bool = True

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.session is not None


AuthListener = Callable[[AuthState], None]
Unsubscribe = Callable[[], None]


class AuthStateProvider(Protocol):
    def get_state(self) -> AuthState: ...

    def subscribe(self, listener: AuthListener) -> Unsubscribe: ...


class GateState(str, enum.Enum):
    LOADING = "loading"
    REDIRECT = "redirect"
    RENDER = "render"


@dataclass(frozen=True)
class GateDecision:
    state: GateState
    target: str | None = None
    replace: bool = False

    @property
    def should_render(self) -> bool:
        return self.state is GateState.RENDER


LOADING = GateDecision(GateState.LOADING)
RENDER = GateDecision(GateState.RENDER)


def redirect(target: str) -> GateDecision:
    return GateDecision(GateState.REDIRECT, target=target, replace=True)


def evaluate(state: AuthState, login_path: str = DEFAULT_LOGIN_PATH) -> GateDecision:
    """Map an auth snapshot to a gate decision. Loading wins over everything."""
    if state.is_loading:
        return LOADING
    if not state.is_authenticated:
        return redirect(login_path)
    return RENDER


class SessionGate:
    """Guards a subtree against an injected :class:`AuthStateProvider`."""

    def __init__(self, provider: AuthStateProvider, login_path: str = DEFAULT_LOGIN_PATH) -> None:
        self._provider = provider
        self._login_path = login_path

    @property
    def login_path(self) -> str:
        return self._login_path

    def check(self) -> GateDecision:
        state = self._provider.get_state()
        decision = evaluate(state, self._login_path)
        _log_decision(state, decision)
        return decision

    def watch(self, on_change: Callable[[GateDecision], None]) -> Unsubscribe:
        """Re-evaluate on every provider change and hand the decision to *on_change*."""

        def _listener(state: AuthState) -> None:
            decision = evaluate(state, self._login_path)
            _log_decision(state, decision)
            on_change(decision)

        return self._provider.subscribe(_listener)


def _log_decision(state: AuthState, decision: GateDecision) -> None:
    if decision.state is GateState.LOADING:
        logger.debug("Waiting for auth...")
    elif decision.state is GateState.REDIRECT:
        logger.warning("No user or session, redirecting to %s", decision.target)
    else:
        logger.debug("User authenticated: %s", getattr(state.user, "email", "N/A"))
