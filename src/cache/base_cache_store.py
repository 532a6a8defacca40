# src/cache/base_cache_store.py — v1
"""Abstract query cache interface.

Keys come from ``derive_cache_key``. Entries expire after their TTL; there
is no other invalidation and no negative caching.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from reelsearch.core.models import SearchResultSet


class BaseQueryCache(ABC):
    """Unified interface for query cache backends."""

    @abstractmethod
    async def get(self, key: str) -> SearchResultSet | None:
        """Return the cached result set, or None if absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: SearchResultSet, ttl_s: float) -> None:
        """Store a result set for ``ttl_s`` seconds (overwrites)."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove an entry."""

    async def close(self) -> None:
        """Release backend resources."""
