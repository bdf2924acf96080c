"""Tests for the session gate state machine."""

import itertools

import pytest

from backoffice.core.session_gate import (AuthState, GateState, SessionGate,
                                          evaluate)
from backoffice.services.auth_state import AuthSessionStore, Identity, SessionInfo

USER = Identity(id=1, email="u1@printshop.test", name="U1", role="cashier")
SESSION = SessionInfo(token="t1", user_id=1)


@pytest.mark.parametrize(
    "user,session", list(itertools.product([None, USER], [None, SESSION]))
)
def test_loading_wins_regardless_of_user_and_session(user, session):
    decision = evaluate(AuthState(user=user, session=session, is_loading=True))
    assert decision.state is GateState.LOADING
    assert decision.target is None


@pytest.mark.parametrize(
    "user,session", [(None, None), (USER, None), (None, SESSION)]
)
def test_missing_user_or_session_redirects_to_login_with_replace(user, session):
    decision = evaluate(AuthState(user=user, session=session, is_loading=False))
    assert decision.state is GateState.REDIRECT
    assert decision.target == "/login"
    assert decision.replace is True


def test_user_and_session_present_renders():
    decision = evaluate(AuthState(user=USER, session=SESSION, is_loading=False))
    assert decision.state is GateState.RENDER
    assert decision.should_render
    assert decision.target is None


def test_custom_login_path():
    decision = evaluate(AuthState(is_loading=False), login_path="/signin")
    assert decision.target == "/signin"


def test_gate_starts_in_loading():
    gate = SessionGate(AuthSessionStore())
    assert gate.check().state is GateState.LOADING


def test_cashier_scenario_renders_children():
    store = AuthSessionStore()
    store.set_session(
        {"id": "u1", "role": "cashier"},
        {"token": "t1"},
    )
    decision = SessionGate(store).check()
    assert decision.state is GateState.RENDER


def test_signed_out_scenario_redirects():
    store = AuthSessionStore()
    store.sign_out()
    decision = SessionGate(store).check()
    assert decision.state is GateState.REDIRECT
    assert decision.target == "/login"
    assert decision.replace


def test_watch_follows_provider_transitions():
    store = AuthSessionStore()
    gate = SessionGate(store)
    seen = []
    unsubscribe = gate.watch(seen.append)

    store.set_session(USER, SESSION)
    store.sign_out()
    assert [d.state for d in seen] == [GateState.RENDER, GateState.REDIRECT]

    unsubscribe()
    store.set_session(USER, SESSION)
    assert len(seen) == 2


def test_redirect_logged_as_warning(caplog):
    store = AuthSessionStore()
    store.sign_out()
    with caplog.at_level("WARNING", logger="backoffice.core.session_gate"):
        SessionGate(store).check()
    assert "redirecting to /login" in caplog.text
