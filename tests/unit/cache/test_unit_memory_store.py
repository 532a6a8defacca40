# tests/unit/cache/test_unit_memory_store.py — v1
"""Tests for cache/memory_store.py: TTL expiry with an injected clock."""

from __future__ import annotations

import pytest

from reelsearch.cache.base_cache_store import BaseQueryCache
from reelsearch.cache.memory_store import MemoryQueryCache
from reelsearch.core.models import SearchResultSet


class Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _result(total: int = 1) -> SearchResultSet:
    return SearchResultSet(total=total)


class TestBaseQueryCache:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseQueryCache()  # type: ignore[abstract]


class TestMemoryQueryCache:
    @pytest.mark.asyncio
    async def test_set_and_get(self):
        cache = MemoryQueryCache(clock=Clock())
        await cache.set("k", _result(3), ttl_s=300)
        hit = await cache.get("k")
        assert hit is not None and hit.total == 3

    @pytest.mark.asyncio
    async def test_miss(self):
        assert await MemoryQueryCache().get("absent") is None

    @pytest.mark.asyncio
    async def test_expires_after_ttl(self):
        clock = Clock()
        cache = MemoryQueryCache(clock=clock)
        await cache.set("k", _result(), ttl_s=300)
        clock.now += 299
        assert await cache.get("k") is not None
        clock.now += 1
        assert await cache.get("k") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_overwrite_resets_ttl(self):
        clock = Clock()
        cache = MemoryQueryCache(clock=clock)
        await cache.set("k", _result(1), ttl_s=10)
        clock.now += 8
        await cache.set("k", _result(2), ttl_s=10)
        clock.now += 8
        hit = await cache.get("k")
        assert hit is not None and hit.total == 2

    @pytest.mark.asyncio
    async def test_delete(self):
        cache = MemoryQueryCache()
        await cache.set("k", _result(), ttl_s=10)
        await cache.delete("k")
        await cache.delete("k")
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_purge_expired(self):
        clock = Clock()
        cache = MemoryQueryCache(clock=clock)
        await cache.set("short", _result(), ttl_s=5)
        await cache.set("long", _result(), ttl_s=50)
        clock.now += 10
        assert cache.purge_expired() == 1
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_max_entries_evicts_closest_to_expiry(self):
        cache = MemoryQueryCache(clock=Clock(), max_entries=2)
        await cache.set("a", _result(), ttl_s=100)
        await cache.set("b", _result(), ttl_s=10)
        await cache.set("c", _result(), ttl_s=100)
        assert len(cache) == 2
        assert await cache.get("b") is None
        assert await cache.get("a") is not None

    @pytest.mark.asyncio
    async def test_callers_cannot_mutate_cached_value(self):
        cache = MemoryQueryCache()
        original = _result(4)
        await cache.set("k", original, ttl_s=10)
        original.total = -1

        first = await cache.get("k")
        first.total = -2
        first.items.clear()

        second = await cache.get("k")
        assert second.total == 4
        assert second is not first
