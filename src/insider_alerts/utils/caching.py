"""In-memory key/value cache with per-entry expiry."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CacheEntry:
    value: Any
    expires_at: datetime


class TTLCache:
    """Simple in-memory key→value cache with per-entry expiration."""

    def __init__(self):
        self._store: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        entry = self._store.get(key)
        if entry and _utcnow() < entry.expires_at:
            return entry.value
        return None

    def set(self, key: str, value: Any, ttl: timedelta) -> None:
        self._store[key] = CacheEntry(
            value=value, expires_at=_utcnow() + ttl,
        )

    def get_or_load(self, key: str, loader: Callable[[], Any], ttl: timedelta) -> Any:
        """Return the cached value, calling ``loader`` once on a miss.

        Concurrent callers for the same key wait on one load instead of
        each hitting the network.
        """
        value = self.get(key)
        if value is not None:
            return value
        with self._lock:
            value = self.get(key)
            if value is None:
                value = loader()
                self.set(key, value, ttl)
        return value

    def invalidate(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()
