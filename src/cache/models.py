# src/cache/models.py — v1
"""Cache domain models."""

from __future__ import annotations

from pydantic import BaseModel

from reelsearch.core.models import SearchResultSet


class CacheEntry(BaseModel):
    """Cached result set with its absolute expiry on the cache's clock."""

    key: str
    value: SearchResultSet
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
