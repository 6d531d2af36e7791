"""TTL-gated cache for remotely discovered string lists.

Entries are never evicted. A stale entry still returns its items so a
caller can keep serving them while it decides whether to refresh.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

from codex_analysis.constants import CACHE_TTL_SECONDS


class CacheStore:
    """One cached list plus the time it was last refreshed.

    Example usage:
        models = CacheStore()
        models.put(["gpt-4", "kimi-k2"])
        items, fresh = models.get()
    """

    def __init__(
        self,
        items: list[str] | None = None,
        last_refreshed: float = 0.0,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize cache store.

        Args:
            items: Items restored from persisted state.
            last_refreshed: Epoch seconds of the last refresh (0 = never).
            clock: Time source returning epoch seconds.
        """
        self._items: list[str] = list(items or [])
        self._last_refreshed = last_refreshed
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, ttl: float = CACHE_TTL_SECONDS) -> tuple[list[str], bool]:
        """Return a copy of the items and whether they are still fresh.

        Args:
            ttl: Maximum age in seconds.

        Returns:
            Tuple of (items, fresh). Fresh requires a non-empty list no older than ttl.
        """
        with self._lock:
            items = list(self._items)
            age = self._clock() - self._last_refreshed
        return items, bool(items) and age <= ttl

    def put(self, items: list[str]) -> None:
        """Overwrite the items and reset the refresh time, even for an empty list."""
        snapshot = list(items)
        with self._lock:
            self._items = snapshot
            self._last_refreshed = self._clock()

    @property
    def last_refreshed(self) -> float:
        with self._lock:
            return self._last_refreshed

    def age_seconds(self) -> float:
        with self._lock:
            return self._clock() - self._last_refreshed

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for persistence."""
        with self._lock:
            return {"items": list(self._items), "last_refreshed": self._last_refreshed}

    @classmethod
    def from_dict(
        cls, data: dict[str, Any] | None, clock: Callable[[], float] = time.time
    ) -> CacheStore:
        """Restore from persisted state, tolerating missing keys."""
        data = data or {}
        return cls(
            items=[str(item) for item in data.get("items") or []],
            last_refreshed=float(data.get("last_refreshed") or 0.0),
            clock=clock,
        )
