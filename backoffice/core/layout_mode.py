"""
Layout mode selection — mobile vs desktop presentation.

Two independent signals feed the decision:

* the *forced mobile* flag, a persisted key in a shared key-value store
  that any client of the same user may toggle;
* the *device class*, derived from the user agent and viewport width.

The effective mode is ``forced OR device``: the override can only force
mobile on, it never forces desktop on a phone.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any, Protocol

from backoffice.core.config import settings

logger = logging.getLogger(__name__)

_MOBILE_UA_RE = re.compile(r"Android|webOS|iPhone|iPod|BlackBerry|IEMobile|Opera Mini", re.IGNORECASE)
_MOBILE_BROWSER_RE = re.compile(r"mobile", re.IGNORECASE)
_TABLET_UA_RE = re.compile(r"iPad|Android", re.IGNORECASE)

RESIZE = "resize"
STORAGE = "storage"
_EVENTS = (RESIZE, STORAGE)


@dataclass(frozen=True)
class DeviceSignals:
    user_agent: str = ""
    viewport_width: int | None = None


# ── Device heuristics ───────────────────────────────────────────────
def is_mobile_device(signals: DeviceSignals) -> bool:
    if _MOBILE_UA_RE.search(signals.user_agent) or _MOBILE_BROWSER_RE.search(signals.user_agent):
        return True
    width = signals.viewport_width
    return width is not None and width <= settings.MOBILE_BREAKPOINT_PX


def is_tablet_device(signals: DeviceSignals) -> bool:
    width = signals.viewport_width
    if width is None or not _TABLET_UA_RE.search(signals.user_agent):
        return False
    return settings.MOBILE_BREAKPOINT_PX < width <= settings.TABLET_BREAKPOINT_PX


def is_desktop_device(signals: DeviceSignals) -> bool:
    return not is_mobile_device(signals) and not is_tablet_device(signals)


# ── Forced mobile flag ──────────────────────────────────────────────
class FlagStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def subscribe(self, listener: Callable[[Any], None]) -> Callable[[], None]: ...


def get_force_mobile_mode(store: FlagStore) -> bool:
    return store.get(settings.FORCE_MOBILE_KEY) == "true"


def set_force_mobile_mode(store: FlagStore, force: bool) -> None:
    if force:
        store.set(settings.FORCE_MOBILE_KEY, "true")
    else:
        store.remove(settings.FORCE_MOBILE_KEY)


def should_use_mobile_layout(store: FlagStore, signals: DeviceSignals) -> bool:
    return get_force_mobile_mode(store) or is_mobile_device(signals)


# ── Host environment ────────────────────────────────────────────────
class HostEnvironment:
    """Current device signals plus resize / storage event dispatch.

    Storage listeners are registered directly on the flag store, so a
    write from any client of the same store reaches them.
    """

    def __init__(self, signals: DeviceSignals, store: FlagStore) -> None:
        self.signals = signals
        self.store = store
        self._resize_listeners: list[Callable[[], None]] = []
        self._storage_unsubscribers: dict[Callable[[], None], Callable[[], None]] = {}

    def add_listener(self, event: str, callback: Callable[[], None]) -> None:
        if event not in _EVENTS:
            raise ValueError(f"Unknown environment event: {event}")
        if event == RESIZE:
            if callback not in self._resize_listeners:
                self._resize_listeners.append(callback)
        elif callback not in self._storage_unsubscribers:
            self._storage_unsubscribers[callback] = self.store.subscribe(lambda _event: callback())

    def remove_listener(self, event: str, callback: Callable[[], None]) -> None:
        if event == RESIZE:
            if callback in self._resize_listeners:
                self._resize_listeners.remove(callback)
        elif event == STORAGE:
            unsubscribe = self._storage_unsubscribers.pop(callback, None)
            if unsubscribe is not None:
                unsubscribe()

    def listener_count(self, event: str) -> int:
        if event == RESIZE:
            return len(self._resize_listeners)
        if event == STORAGE:
            return len(self._storage_unsubscribers)
        raise ValueError(f"Unknown environment event: {event}")

    def resize(self, viewport_width: int | None = None, user_agent: str | None = None) -> None:
        changes: dict[str, Any] = {}
        if viewport_width is not None:
            changes["viewport_width"] = viewport_width
        if user_agent is not None:
            changes["user_agent"] = user_agent
        self.signals = replace(self.signals, **changes)
        for callback in list(self._resize_listeners):
            callback()

    # Default signal readers, bound to this environment
    def compute_layout_override(self) -> bool:
        return should_use_mobile_layout(self.store, self.signals)

    def compute_device_class(self) -> bool:
        return is_mobile_device(self.signals)


# ── Selector ────────────────────────────────────────────────────────
@dataclass(frozen=True)
class LayoutMode:
    is_mobile: bool
    is_actual_mobile: bool

    @property
    def should_use_mobile_layout(self) -> bool:
        return self.is_mobile


class LayoutSubscription:
    """Handle returned by :meth:`LayoutModeSelector.mount`."""

    def __init__(self, release: Callable[[], None]) -> None:
        self._release: Callable[[], None] | None = release

    @property
    def closed(self) -> bool:
        return self._release is None

    def close(self) -> None:
        if self._release is not None:
            release, self._release = self._release, None
            release()

    def __enter__(self) -> LayoutSubscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class LayoutModeSelector:
    def __init__(
        self,
        environment: HostEnvironment,
        compute_layout_override: Callable[[], bool] | None = None,
        compute_device_class: Callable[[], bool] | None = None,
    ) -> None:
        self._environment = environment
        self._compute_layout_override = compute_layout_override or environment.compute_layout_override
        self._compute_device_class = compute_device_class or environment.compute_device_class
        self.is_mobile = self._compute_layout_override()
        self.is_actual_mobile = self._compute_device_class()

    @property
    def should_use_mobile_layout(self) -> bool:
        return self.is_mobile

    def check(self) -> LayoutMode:
        self.is_mobile = self._compute_layout_override()
        self.is_actual_mobile = self._compute_device_class()
        return self.snapshot()

    def snapshot(self) -> LayoutMode:
        return LayoutMode(is_mobile=self.is_mobile, is_actual_mobile=self.is_actual_mobile)

    def mount(self) -> LayoutSubscription:
        env = self._environment
        env.add_listener(RESIZE, self.check)
        env.add_listener(STORAGE, self.check)
        mode = self.check()
        logger.debug("Layout mode mounted: mobile=%s actual_mobile=%s", mode.is_mobile, mode.is_actual_mobile)

        def _release() -> None:
            env.remove_listener(RESIZE, self.check)
            env.remove_listener(STORAGE, self.check)

        return LayoutSubscription(_release)


def detect_layout_mode(environment: HostEnvironment) -> LayoutMode:
    """One-shot read: mount a selector, take its initial decision, tear it down."""
    selector = LayoutModeSelector(environment)
    with selector.mount():
        return selector.snapshot()
