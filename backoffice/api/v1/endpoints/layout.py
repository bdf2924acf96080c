"""
Layout mode endpoints — which presentation the caller should get.

The forced mobile flag lives in the caller's shared preference store;
flipping it here notifies every other open client of the same account.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.v1.deps import get_current_user, get_db, get_device_signals
from backoffice.core.config import settings
from backoffice.core.layout_mode import (DeviceSignals, HostEnvironment,
                                         detect_layout_mode,
                                         get_force_mobile_mode,
                                         set_force_mobile_mode)
from backoffice.schemas.layout import ForceMobileUpdate, LayoutModeRead
from backoffice.services import preferences
from backoffice.services.auth_state import Identity
from backoffice.services.preferences import PreferenceStore

router = APIRouter(prefix="/layout", tags=["layout"])
logger = logging.getLogger(__name__)


def _layout_read(store: PreferenceStore, signals: DeviceSignals) -> LayoutModeRead:
    mode = detect_layout_mode(HostEnvironment(signals, store))
    return LayoutModeRead(
        is_mobile=mode.is_mobile,
        is_actual_mobile=mode.is_actual_mobile,
        should_use_mobile_layout=mode.should_use_mobile_layout,
        force_mobile=get_force_mobile_mode(store),
    )


@router.get("", response_model=LayoutModeRead)
async def read_layout_mode(
    current_user: Identity = Depends(get_current_user),
    signals: DeviceSignals = Depends(get_device_signals),
    db: AsyncSession = Depends(get_db),
) -> LayoutModeRead:
    store = await preferences.hub.hydrate(db, current_user.id)
    return _layout_read(store, signals)


@router.put("/force-mobile", response_model=LayoutModeRead)
async def update_force_mobile(
    body: ForceMobileUpdate,
    current_user: Identity = Depends(get_current_user),
    signals: DeviceSignals = Depends(get_device_signals),
    db: AsyncSession = Depends(get_db),
) -> LayoutModeRead:
    """Toggle the forced mobile layout for every client of this account."""
    store = await preferences.hub.hydrate(db, current_user.id)
    await preferences.persist(
        db, current_user.id, settings.FORCE_MOBILE_KEY, "true" if body.force else None
    )
    set_force_mobile_mode(store, body.force)
    logger.info("Forced mobile layout %s for %s", "on" if body.force else "off", current_user.email)
    return _layout_read(store, signals)
