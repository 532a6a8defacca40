# src/api/facade.py — v1
"""Public API facade: the single entry point for search and analysis.

Usage:
    async with SearchApp.from_settings(content_store=store) as app:
        response = await app.search({"query": "beach sunset"})

``search`` never raises for taxonomy errors; it returns an ErrorResponse
carrying only a stable code and a generic message.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from reelsearch.api.models import ErrorResponse, SearchRequest, SearchResponse
from reelsearch.cache.base_cache_store import BaseQueryCache
from reelsearch.cache.cache_factory import create_query_cache
from reelsearch.config.settings import ConfigurationError, Settings
from reelsearch.core.errors import ReelSearchError, ValidationError
from reelsearch.core.models import (
    Capability,
    HealthRecord,
    ImageAnalysis,
    ProviderKind,
)
from reelsearch.logging.context import clear_context, set_request_context
from reelsearch.providers.health import HealthMonitor, HealthStore
from reelsearch.providers.orchestrator import FailoverOrchestrator
from reelsearch.providers.provider_factory import build_registry
from reelsearch.providers.registry import ProviderRegistry
from reelsearch.search.content_store import BaseContentStore, InMemoryContentStore
from reelsearch.search.coordinator import SearchCoordinator
from reelsearch.tracking.analytics import (
    BaseAnalyticsSink,
    JsonlAnalyticsSink,
    LoggingAnalyticsSink,
)
from reelsearch.tracking.metrics import MetricsRecorder
from reelsearch.tracking.models import ServiceMetrics

logger = logging.getLogger(__name__)


class SearchApp:
    """Wires registry, health monitor, orchestrator, cache and coordinator."""

    def __init__(
        self,
        settings: Settings,
        registry: ProviderRegistry,
        content_store: BaseContentStore,
        cache: BaseQueryCache | None = None,
        analytics: BaseAnalyticsSink | None = None,
        health: HealthStore | None = None,
        metrics: MetricsRecorder | None = None,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.health_store = health or HealthStore(registry.all_kinds())
        self.metrics = metrics or MetricsRecorder(window_size=settings.metrics_window_size)
        self.monitor = HealthMonitor(
            registry,
            self.health_store,
            interval_s=settings.health_check_interval_s,
            probe_timeout_s=settings.health_check_timeout_s,
            metrics=self.metrics,
            degraded_error_rate=settings.health_degraded_error_rate,
            min_samples=settings.health_min_samples,
        )
        self.orchestrator = FailoverOrchestrator(
            registry,
            self.health_store,
            metrics=self.metrics,
            attempt_timeout_s=settings.failover_attempt_timeout_s,
            confidence_threshold=settings.failover_confidence_threshold,
        )
        self._cache = cache
        self.coordinator = SearchCoordinator(
            self.orchestrator,
            content_store,
            cache=cache,
            settings=settings,
            analytics=analytics,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        content_store: BaseContentStore | None = None,
        registry: ProviderRegistry | None = None,
    ) -> SearchApp:
        """Build the application from settings (registry, cache, analytics)."""
        settings = settings or Settings()
        registry = registry if registry is not None else build_registry(settings)
        analytics: BaseAnalyticsSink | None = None
        if settings.analytics_enabled:
            analytics = (
                JsonlAnalyticsSink(settings.analytics_file)
                if settings.analytics_file
                else LoggingAnalyticsSink()
            )
        return cls(
            settings,
            registry,
            content_store if content_store is not None else InMemoryContentStore(),
            cache=create_query_cache(settings),
            analytics=analytics,
        )

    # --- Lifecycle ---

    async def start(self) -> None:
        """Start background health polling (first check runs immediately)."""
        self.monitor.start()

    async def stop(self) -> None:
        await self.monitor.stop()
        await self.coordinator.flush_analytics()
        if self._cache is not None:
            await self._cache.close()

    async def __aenter__(self) -> SearchApp:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # --- Operations ---

    async def search(self, payload: Mapping[str, Any]) -> SearchResponse | ErrorResponse:
        """Run a search and map every failure onto the error envelope."""
        set_request_context(uuid.uuid4().hex, operation="search")
        try:
            try:
                request = SearchRequest.model_validate(payload)
            except PydanticValidationError as exc:
                raise ValidationError(
                    "Malformed search request",
                    fields=sorted({str(e["loc"][0]) for e in exc.errors() if e["loc"]}),
                ) from exc
            preferred = self._resolve_preferred(request.preferred_provider)
            result = await self.coordinator.search(
                request.to_query_payload(), preferred_provider=preferred,
            )
            return SearchResponse.from_result(result)
        except ValidationError as exc:
            fields = ["query" if f == "text" else f for f in exc.fields]
            return ErrorResponse.build(exc.code, exc.public_message, fields)
        except (ReelSearchError, ConfigurationError) as exc:
            logger.warning("Search failed: %s (%s)", exc.code, exc)
            return ErrorResponse.build(exc.code, exc.public_message)
        except Exception:
            logger.exception("Unexpected search failure")
            return ErrorResponse.build("INTERNAL_ERROR", "Internal error")
        finally:
            clear_context()

    async def analyze_image(
        self,
        image: bytes,
        faces: bool = False,
        preferred_provider: ProviderKind | None = None,
    ) -> ImageAnalysis:
        """Analyze one image with failover.

        Raises:
            CapabilityUnsupportedError: No provider offers the operation.
            ProviderExhaustedError: Every provider failed.
        """
        operation = Capability.FACE_DETECTION if faces else Capability.IMAGE_ANALYSIS
        set_request_context(uuid.uuid4().hex, operation=operation.value)
        try:
            return await self.orchestrator.execute(
                operation,
                image,
                preferred_provider=preferred_provider or self._default_preferred(),
            )
        finally:
            clear_context()

    def service_metrics(self) -> ServiceMetrics:
        return self.orchestrator.service_metrics()

    def health(self) -> dict[str, HealthRecord]:
        return {kind.value: record for kind, record in self.health_store.snapshot().items()}

    def metrics_text(self) -> str:
        """Prometheus text exposition of provider metrics."""
        return self.metrics.export_prometheus()

    # --- Internal helpers ---

    def _default_preferred(self) -> ProviderKind | None:
        name = self.settings.provider_preferred
        return ProviderKind(name) if name else None

    def _resolve_preferred(self, name: str | None) -> ProviderKind | None:
        if name is None:
            return self._default_preferred()
        try:
            return ProviderKind(name.lower())
        except ValueError as exc:
            raise ValidationError(
                f"Unknown provider {name!r}", fields=["preferred_provider"]
            ) from exc
