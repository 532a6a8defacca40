# src/search/coordinator.py — v1
"""Search coordinator: the top-level search entry point.

Pipeline: validate → cache lookup → query interpretation (with failover)
→ filter merge → content lookup → rank → aggregate → cache write →
analytics. Interpretation and lookup share one end-to-end deadline.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from reelsearch.cache.base_cache_store import BaseQueryCache
from reelsearch.cache.keys import derive_cache_key
from reelsearch.config.settings import Settings
from reelsearch.core.errors import ServiceUnavailableError
from reelsearch.core.models import (
    Capability,
    ProviderKind,
    QueryInterpretation,
    SearchQuery,
    SearchResultSet,
)
from reelsearch.logging.context import get_context
from reelsearch.providers.orchestrator import FailoverOrchestrator
from reelsearch.search.aggregations import build_aggregations
from reelsearch.search.content_store import BaseContentStore
from reelsearch.search.filters import merge_filters
from reelsearch.search.ranker import rank_results
from reelsearch.search.validation import validate_query
from reelsearch.tracking.analytics import BaseAnalyticsSink
from reelsearch.tracking.models import SearchAnalyticsRecord

logger = logging.getLogger(__name__)


class SearchCoordinator:
    """Runs one search end to end."""

    def __init__(
        self,
        orchestrator: FailoverOrchestrator,
        content_store: BaseContentStore,
        cache: BaseQueryCache | None = None,
        settings: Settings | None = None,
        analytics: BaseAnalyticsSink | None = None,
        now: Callable[[], datetime] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._orchestrator = orchestrator
        self._content_store = content_store
        self._cache = cache
        self._settings = settings or Settings()
        self._analytics = analytics
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._clock = clock
        self._pending: set[asyncio.Task[None]] = set()

    async def search(
        self,
        query: SearchQuery | Mapping[str, Any],
        preferred_provider: ProviderKind | None = None,
    ) -> SearchResultSet:
        """Execute a search.

        Raises:
            ValidationError: Malformed query (before any I/O).
            CapabilityUnsupportedError: No provider interprets queries.
            ProviderExhaustedError: Every interpretation attempt failed.
            ServiceUnavailableError: Deadline exceeded or content lookup failed.
        """
        s = self._settings
        validated = validate_query(
            query,
            max_page_size=s.search_max_page_size,
            max_query_length=s.search_max_query_length,
            default_page_size=s.search_default_page_size,
        )
        start = self._clock()
        key = derive_cache_key(validated)

        cached = await self._cache_get(key)
        if cached is not None:
            logger.info("Search cache hit (%d items)", len(cached.items))
            return cached

        try:
            result, interpretation = await asyncio.wait_for(
                self._execute(validated, preferred_provider),
                timeout=s.search_timeout_s,
            )
        except asyncio.TimeoutError as exc:
            logger.error("Search exceeded deadline of %.1fs", s.search_timeout_s)
            raise ServiceUnavailableError(
                f"Search deadline of {s.search_timeout_s}s exceeded"
            ) from exc

        execution_ms = (self._clock() - start) * 1000.0
        logger.info(
            "Search returned %d of %d results in %.1fms",
            len(result.items), result.total, execution_ms,
        )

        await self._cache_set(key, result)
        self._emit_analytics(validated, result, interpretation, execution_ms)
        return result

    async def flush_analytics(self) -> None:
        """Wait for all pending analytics emits to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    # --- Internal helpers ---

    async def _execute(
        self,
        query: SearchQuery,
        preferred_provider: ProviderKind | None,
    ) -> tuple[SearchResultSet, QueryInterpretation]:
        interpretation = await self._orchestrator.execute(
            Capability.QUERY_INTERPRETATION,
            query.text,
            preferred_provider=preferred_provider,
        )
        filters = merge_filters(query.filters, interpretation.filters)

        try:
            page = await self._content_store.lookup(filters, query.pagination)
        except Exception as exc:
            logger.error("Content lookup failed: %s", exc)
            raise ServiceUnavailableError("Content lookup failed") from exc

        ranked = rank_results(
            page.items,
            interpretation,
            now=self._now(),
            half_life_days=self._settings.ranking_half_life_days,
        )
        p = query.pagination
        result = SearchResultSet(
            items=ranked,
            total=page.total,
            page=p.page,
            page_size=p.page_size,
            has_more=p.page * p.page_size < page.total,
            aggregations=build_aggregations(ranked),
        )
        return result, interpretation

    async def _cache_get(self, key: str) -> SearchResultSet | None:
        if self._cache is None:
            return None
        try:
            return await asyncio.wait_for(
                self._cache.get(key), timeout=self._settings.cache_timeout_s
            )
        except Exception as exc:
            logger.warning("Cache read failed, treating as miss: %s", exc)
            return None

    async def _cache_set(self, key: str, result: SearchResultSet) -> None:
        if self._cache is None:
            return
        try:
            await asyncio.wait_for(
                self._cache.set(key, result, self._settings.cache_ttl_s),
                timeout=self._settings.cache_timeout_s,
            )
        except Exception as exc:
            logger.warning("Cache write failed: %s", exc)

    def _emit_analytics(
        self,
        query: SearchQuery,
        result: SearchResultSet,
        interpretation: QueryInterpretation,
        execution_ms: float,
    ) -> None:
        if self._analytics is None:
            return
        record = SearchAnalyticsRecord(
            query_id=get_context().request_id or uuid.uuid4().hex,
            timestamp=self._now(),
            query=query.text,
            filters=query.filters.model_dump(mode="json", exclude_defaults=True),
            result_count=result.total,
            execution_ms=execution_ms,
            provider=interpretation.provider.value,
        )
        task = asyncio.create_task(self._send(record))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, record: SearchAnalyticsRecord) -> None:
        try:
            await self._analytics.emit(record)  # type: ignore[union-attr]
        except Exception as exc:
            logger.warning("Analytics emit failed: %s", exc)
