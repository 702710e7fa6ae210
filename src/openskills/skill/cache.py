"""In-memory TTL cache owned by one GitHub client."""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional

from .models import CacheEntry


class TTLCache:
    """Key/value cache whose entries expire ``ttl`` seconds after being set.

    Expired entries are dropped lazily on the next lookup of their key.

    Example:
        cache = TTLCache(ttl=60)
        cache.set("tree:owner/repo@main", tree)
        cache.get("tree:owner/repo@main")  # tree, for the next 60 seconds
    """

    def __init__(self, ttl: float = 3600, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry[Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp >= self.ttl:
            del self._entries[key]
            return None
        return entry.data

    def set(self, key: str, data: Any) -> None:
        self._entries[key] = CacheEntry(data=data, timestamp=self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
