"""
Per-user preference store — synchronous reads, shared across clients.

Every client (browser tab, phone, tablet) of the same account resolves
to the same in-process :class:`PreferenceStore`. A write on one of them
emits a :class:`StorageEvent` to every subscriber, which is how other
clients learn that e.g. the forced mobile flag changed.

Rows in ``user_preferences`` make the values durable; :func:`hydrate`
loads them once per process and :func:`persist` writes them through.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.user_preference import UserPreference

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageEvent:
    key: str
    old_value: str | None
    new_value: str | None


StorageListener = Callable[[StorageEvent], None]


class PreferenceStore:
    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})
        self._listeners: list[StorageListener] = []
        self._written: set[str] = set()

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def items(self) -> dict[str, str]:
        return dict(self._values)

    def set(self, key: str, value: str) -> None:
        old = self._values.get(key)
        self._values[key] = value
        self._written.add(key)
        self._emit(StorageEvent(key, old, value))

    def remove(self, key: str) -> None:
        old = self._values.pop(key, None)
        self._written.add(key)
        self._emit(StorageEvent(key, old, None))

    def track_writes(self) -> None:
        """Start recording which keys are written, ahead of a :meth:`load`."""
        self._written.clear()

    def load(self, values: Mapping[str, str]) -> None:
        """Replace the contents without notifying anyone (initial hydration).

        Keys written since :meth:`track_writes` keep their in-memory value,
        so a snapshot read before a write cannot undo it.
        """
        loaded = {k: v for k, v in values.items() if k not in self._written}
        for key in self._written:
            if key in self._values:
                loaded[key] = self._values[key]
        self._values = loaded
        self._written.clear()

    def subscribe(self, listener: StorageListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    def _emit(self, event: StorageEvent) -> None:
        for listener in list(self._listeners):
            listener(event)


class PreferenceHub:
    """Process-wide registry: one shared store per user."""

    def __init__(self) -> None:
        self._stores: dict[int, PreferenceStore] = {}
        self._hydrated: set[int] = set()
        self._locks: dict[int, asyncio.Lock] = {}

    def store_for(self, user_id: int) -> PreferenceStore:
        store = self._stores.get(user_id)
        if store is None:
            store = self._stores[user_id] = PreferenceStore()
        return store

    async def hydrate(self, db: AsyncSession, user_id: int) -> PreferenceStore:
        store = self.store_for(user_id)
        if user_id in self._hydrated:
            return store
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        async with lock:
            if user_id in self._hydrated:
                return store
            store.track_writes()
            result = await db.execute(select(UserPreference).where(UserPreference.user_id == user_id))
            store.load({row.key: row.value for row in result.scalars()})
            self._hydrated.add(user_id)
        logger.debug("Hydrated %d preferences for user %s", len(store.items()), user_id)
        return store

    def clear(self) -> None:
        self._stores.clear()
        self._hydrated.clear()
        self._locks.clear()


hub = PreferenceHub()


async def persist(db: AsyncSession, user_id: int, key: str, value: str | None) -> None:
    """Upsert one preference row, or delete it when *value* is ``None``."""
    if value is None:
        await db.execute(
            delete(UserPreference).where(UserPreference.user_id == user_id, UserPreference.key == key)
        )
    else:
        result = await db.execute(
            select(UserPreference).where(UserPreference.user_id == user_id, UserPreference.key == key)
        )
        row = result.scalar_one_or_none()
        if row is None:
            db.add(UserPreference(user_id=user_id, key=key, value=value))
        else:
            row.value = value
    await db.commit()
    logger.info("Preference %s for user %s set to %r", key, user_id, value)
