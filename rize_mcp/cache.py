"""Bounded in-memory cache with per-entry TTL and LRU eviction.

One instance lives for the whole server process and is only touched from the
event loop, so there is no locking.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable


@dataclass
class CacheEntry:
    """A cached value and the clock reading when it was stored."""

    key: str
    value: Any
    inserted_at: float


class TTLCache:
    """Key/value store that forgets entries after `ttl_ms` milliseconds
    and evicts the least-recently-used entry once `max_size` is reached.

    Both `get` hits and `set` count as a use. `has` only checks presence.
    A `ttl_ms` of zero or less means entries never expire.

    Usage:
        cache = TTLCache(max_size=1000, ttl_ms=300_000)
        cache.set("current-user", user)
        user = cache.get("current-user")   # None once expired
    """

    def __init__(
        self,
        max_size: int,
        ttl_ms: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")
        self._max_size = max_size
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    def _is_expired(self, entry: CacheEntry) -> bool:
        if self._ttl_ms <= 0:
            return False
        age_ms = (self._clock() - entry.inserted_at) * 1000
        return age_ms > self._ttl_ms

    def _live_entry(self, key: str) -> CacheEntry | None:
        """Return the entry for key, dropping it first if it has expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry):
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        entry = self._live_entry(key)
        if entry is None:
            return None
        self._entries.move_to_end(key)
        return entry.value

    def set(self, key: str, value: Any) -> None:
        """Insert or overwrite a value, evicting the LRU entry when full."""
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self._max_size:
            self._entries.popitem(last=False)
        self._entries[key] = CacheEntry(key=key, value=value, inserted_at=self._clock())

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def has(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def size(self) -> int:
        """Number of stored entries (expired ones count until next read)."""
        return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)
