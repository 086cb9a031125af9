# Sesame RDF Client
# File: cache.py
# Version: v2

"""In-process TTL cache for repository listings.

Listing repositories is a round trip the client makes whenever it needs
to know what a server offers; the answer rarely changes. Entries expire
after ``ttl_seconds`` and the oldest entries are evicted beyond
``max_entries``. A TTL or size of 0 disables caching.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import asdict, dataclass
from typing import Any, Dict, Hashable, Optional, Tuple


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0


class TTLCache:
    """A tiny TTL + LRU-ish cache."""

    def __init__(self, ttl_seconds: int = 60, max_entries: int = 32) -> None:
        self.ttl_seconds = int(ttl_seconds)
        self.max_entries = int(max_entries)
        self._store: "OrderedDict[Hashable, Tuple[float, Any]]" = OrderedDict()
        self._stats = CacheStats()

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0 and self.max_entries > 0

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""
        entry = self._store.get(key) if self.enabled else None
        if entry is None:
            self._stats.misses += 1
            return None

        expires_at, value = entry
        if expires_at < time.monotonic():
            del self._store[key]
            self._stats.misses += 1
            self._stats.expirations += 1
            return None

        self._store.move_to_end(key)
        self._stats.hits += 1
        return value

    def set(self, key: Hashable, value: Any) -> None:
        if not self.enabled:
            return

        self._store[key] = (time.monotonic() + self.ttl_seconds, value)
        self._store.move_to_end(key)
        while len(self._store) > self.max_entries:
            self._store.popitem(last=False)
            self._stats.evictions += 1

    def invalidate(self, key: Hashable) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def stats(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "ttl_seconds": self.ttl_seconds,
            "max_entries": self.max_entries,
            "size": len(self._store),
            **asdict(self._stats),
        }
