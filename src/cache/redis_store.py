# src/cache/redis_store.py — v1
"""Redis-based query cache (CACHE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable for multi-instance deployments; expiry is delegated to Redis.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError

from reelsearch.cache.base_cache_store import BaseQueryCache
from reelsearch.core.models import SearchResultSet

logger = logging.getLogger(__name__)

_KEY_PREFIX = "reelsearch:"


class RedisQueryCache(BaseQueryCache):
    """Redis-backed query cache using ``SET key value EX ttl``."""

    def __init__(self, redis_url: str, client: object | None = None) -> None:
        if client is None:
            try:
                import redis.asyncio as aioredis
            except ImportError as e:
                raise ImportError(
                    "redis package required: pip install redis"
                ) from e
            client = aioredis.Redis.from_url(redis_url, decode_responses=True)
        self._client = client

    async def get(self, key: str) -> SearchResultSet | None:
        data = await self._client.get(f"{_KEY_PREFIX}{key}")
        if data is None:
            return None
        try:
            return SearchResultSet.model_validate_json(data)
        except PydanticValidationError as e:
            logger.warning("Failed to deserialize cache entry %s: %s", key, e)
            return None

    async def set(self, key: str, value: SearchResultSet, ttl_s: float) -> None:
        await self._client.set(
            f"{_KEY_PREFIX}{key}", value.model_dump_json(), ex=max(1, int(ttl_s))
        )

    async def delete(self, key: str) -> None:
        await self._client.delete(f"{_KEY_PREFIX}{key}")

    async def close(self) -> None:
        """Close the Redis connection."""
        await self._client.aclose()
