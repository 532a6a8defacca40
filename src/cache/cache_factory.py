# src/cache/cache_factory.py — v1
"""Factory for query cache instantiation."""

from __future__ import annotations

from reelsearch.cache.base_cache_store import BaseQueryCache
from reelsearch.config.settings import ConfigurationError, Settings


def create_query_cache(settings: Settings | None = None) -> BaseQueryCache | None:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to the memory backend.

    Returns:
        Configured BaseQueryCache, or None when caching is disabled.
    """
    if settings is not None and not settings.cache_enabled:
        return None
    backend = "memory" if settings is None else settings.cache_backend

    if backend == "memory":
        from reelsearch.cache.memory_store import MemoryQueryCache
        max_entries = None if settings is None else settings.cache_max_entries
        return MemoryQueryCache(max_entries=max_entries)

    if backend == "redis":
        from reelsearch.cache.redis_store import RedisQueryCache
        if settings is None or not settings.cache_redis_url:
            raise ConfigurationError(
                "CACHE_REDIS_URL must be set when CACHE_BACKEND=redis"
            )
        return RedisQueryCache(redis_url=settings.cache_redis_url)

    raise ConfigurationError(f"Unsupported cache backend: {backend!r}")
