"""
Guarded page resolution — the server side of the client router.

``/app/<path>`` runs the session gate first. Unauthenticated callers get
a 303 to the login path (the guarded URL never lands in history);
authenticated callers get the page chosen from the mobile or desktop
route table, according to their layout mode.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.v1.deps import (get_auth_store, get_db, get_device_signals,
                                    get_session_gate)
from backoffice.core.config import settings
from backoffice.core.layout_mode import (DeviceSignals, HostEnvironment,
                                         detect_layout_mode)
from backoffice.core.permissions import has_permission
from backoffice.core.routing import resolve
from backoffice.core.session_gate import GateState, SessionGate
from backoffice.schemas.layout import PageResolution
from backoffice.services import preferences
from backoffice.services.auth_state import AuthSessionStore

router = APIRouter(tags=["pages"])
logger = logging.getLogger(__name__)


@router.get(settings.LOGIN_PATH, response_model=None)
async def login_page(store: AuthSessionStore = Depends(get_auth_store)) -> RedirectResponse | dict:
    """Already signed in? Go home instead of showing the login form."""
    if store.get_state().is_authenticated:
        return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    return {
        "detail": "Sign in required",
        "login_endpoint": f"{settings.API_V1_PREFIX}/auth/login",
    }


@router.get("/app", response_model=None)
@router.get("/app/{page_path:path}", response_model=None)
async def resolve_page(
    page_path: str = "",
    gate: SessionGate = Depends(get_session_gate),
    store: AuthSessionStore = Depends(get_auth_store),
    signals: DeviceSignals = Depends(get_device_signals),
    db: AsyncSession = Depends(get_db),
) -> PageResolution | JSONResponse | RedirectResponse:
    decision = gate.check()
    if decision.state is GateState.LOADING:
        return JSONResponse(status_code=status.HTTP_202_ACCEPTED, content={"state": GateState.LOADING.value})
    if decision.state is GateState.REDIRECT:
        return RedirectResponse(decision.target, status_code=status.HTTP_303_SEE_OTHER)

    user = store.get_state().user
    flags = await preferences.hub.hydrate(db, user.id)
    mode = detect_layout_mode(HostEnvironment(signals, flags))
    layout = "mobile" if mode.should_use_mobile_layout else "desktop"

    match = resolve(f"/{page_path}", mobile=mode.should_use_mobile_layout)
    if not match.found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=match.message)
    if match.permission and not has_permission(user.role, match.permission):
        logger.info("%s (%s) denied page %s", user.email, user.role, match.page)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this page",
        )

    return PageResolution(
        state=GateState.RENDER.value, layout=layout, page=match.page, params=match.params
    )
