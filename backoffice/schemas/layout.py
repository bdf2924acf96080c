"""Pydantic schemas for layout mode and guarded page resolution."""

from __future__ import annotations

from pydantic import BaseModel


class LayoutModeRead(BaseModel):
    is_mobile: bool
    is_actual_mobile: bool
    should_use_mobile_layout: bool
    force_mobile: bool


class ForceMobileUpdate(BaseModel):
    force: bool


class PageResolution(BaseModel):
    state: str
    layout: str | None = None
    page: str | None = None
    params: dict[str, str] = {}
    message: str | None = None


class HealthResponse(BaseModel):
    db: bool
    status: str
