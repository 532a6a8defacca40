# src/cache/memory_store.py — v1
"""In-process query cache (CACHE_BACKEND=memory, the default).

Expiry is lazy on read, plus ``purge_expired`` for explicit sweeps. When
``max_entries`` is reached, the entry closest to expiry is evicted.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from reelsearch.cache.base_cache_store import BaseQueryCache
from reelsearch.cache.models import CacheEntry
from reelsearch.core.models import SearchResultSet

logger = logging.getLogger(__name__)


class MemoryQueryCache(BaseQueryCache):
    """Dict-backed TTL cache with an injectable monotonic clock."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int | None = None,
    ) -> None:
        self._clock = clock
        self._max_entries = max_entries
        self._entries: dict[str, CacheEntry] = {}

    async def get(self, key: str) -> SearchResultSet | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry.value.model_copy(deep=True)

    async def set(self, key: str, value: SearchResultSet, ttl_s: float) -> None:
        if (
            self._max_entries is not None
            and key not in self._entries
            and len(self._entries) >= self._max_entries
        ):
            self.purge_expired()
            if len(self._entries) >= self._max_entries:
                oldest = min(self._entries.values(), key=lambda e: e.expires_at)
                del self._entries[oldest.key]
                logger.debug("Evicted cache entry %s", oldest.key)
        self._entries[key] = CacheEntry(
            key=key, value=value.model_copy(deep=True), expires_at=self._clock() + ttl_s
        )

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def purge_expired(self) -> int:
        """Drop every expired entry; return how many were removed."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
