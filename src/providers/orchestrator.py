# src/providers/orchestrator.py — v1
"""Failover orchestrator: route one analysis call across providers.

The attempt order is computed up front from health state and preference;
attempts then run strictly one after another (never fanned out), each
bounded by its own timeout. Every attempt yields an AttemptOutcome; the
call returns the first successful outcome or raises ProviderExhaustedError.
Individual provider failures never escape this module.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from reelsearch.core.errors import (
    BelowThresholdError,
    CapabilityUnsupportedError,
    ProviderExhaustedError,
    classify_failure,
)
from reelsearch.core.models import (
    AnalysisRequest,
    AnalysisResult,
    AttemptStatus,
    Capability,
    HealthState,
    ProviderKind,
)
from reelsearch.logging.context import set_provider_context
from reelsearch.providers.base_provider import BaseAnalysisProvider
from reelsearch.providers.health import HealthStore
from reelsearch.providers.registry import ProviderRegistry
from reelsearch.tracking.metrics import MetricsRecorder
from reelsearch.tracking.models import ServiceMetrics

logger = logging.getLogger(__name__)

_TIER = {
    HealthState.AVAILABLE: 0,
    HealthState.DEGRADED: 1,
    HealthState.UNAVAILABLE: 2,
}


@dataclass(frozen=True)
class AttemptOutcome:
    """Result-style record of one provider attempt."""

    provider: ProviderKind
    status: AttemptStatus
    latency_ms: float
    result: AnalysisResult | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.status is AttemptStatus.SUCCESS


def plan_attempts(
    providers: list[BaseAnalysisProvider],
    health: HealthStore,
    preferred: ProviderKind | None = None,
) -> list[BaseAnalysisProvider]:
    """Order candidates: available, then degraded, then unavailable.

    Registration order breaks ties within a tier. An available preferred
    provider moves to the very front. Nobody is dropped.
    """
    ordered = sorted(
        providers, key=lambda p: _TIER[health.state(p.kind)]
    )
    if preferred is not None:
        for i, provider in enumerate(ordered):
            if provider.kind is preferred and health.state(preferred) is HealthState.AVAILABLE:
                ordered.insert(0, ordered.pop(i))
                break
    return ordered


class FailoverOrchestrator:
    """Sequential multi-provider failover for analysis operations."""

    def __init__(
        self,
        registry: ProviderRegistry,
        health: HealthStore,
        metrics: MetricsRecorder | None = None,
        attempt_timeout_s: float = 10.0,
        confidence_threshold: float = 0.7,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._registry = registry
        self._health = health
        self._metrics = metrics or MetricsRecorder()
        self._attempt_timeout_s = attempt_timeout_s
        self._confidence_threshold = confidence_threshold
        self._clock = clock

    @property
    def metrics(self) -> MetricsRecorder:
        return self._metrics

    @property
    def confidence_threshold(self) -> float:
        return self._confidence_threshold

    async def execute(
        self,
        operation: Capability,
        payload: bytes | str,
        preferred_provider: ProviderKind | None = None,
        params: dict[str, Any] | None = None,
    ) -> AnalysisResult:
        """Run an operation with failover and return the first acceptable result.

        Raises:
            CapabilityUnsupportedError: No registered provider offers the operation.
            ProviderExhaustedError: Every candidate failed or was below threshold.
        """
        candidates = self._registry.providers_for(operation)
        if not candidates:
            raise CapabilityUnsupportedError(operation)

        if preferred_provider is not None and preferred_provider not in self._registry:
            logger.warning(
                "Preferred provider %s is not registered, ignoring preference",
                preferred_provider.value,
            )
            preferred_provider = None

        order = plan_attempts(candidates, self._health, preferred_provider)
        logger.debug(
            "Attempt order for %s: %s",
            operation.value, [p.kind.value for p in order],
        )

        outcomes: list[AttemptOutcome] = []
        try:
            for provider in order:
                outcome = await self._attempt(provider, operation, payload, params)
                outcomes.append(outcome)
                if outcome.ok:
                    return outcome.result  # type: ignore[return-value]
        finally:
            set_provider_context(None)

        last_error = next(
            (o.error for o in reversed(outcomes) if o.error is not None), None
        )
        logger.error(
            "All providers failed for %s: %s",
            operation.value,
            ", ".join(f"{o.provider.value}={o.status.value}" for o in outcomes),
        )
        raise ProviderExhaustedError(operation, outcomes, last_error)

    async def execute_request(self, request: AnalysisRequest) -> AnalysisResult:
        return await self.execute(
            request.operation,
            request.payload,
            preferred_provider=request.preferred_provider,
            params=request.params,
        )

    def service_metrics(self) -> ServiceMetrics:
        """Per-provider status, success rate and latency from observed attempts."""
        return ServiceMetrics(
            providers={
                kind.value: self._metrics.provider_stats(
                    kind.value, self._health.state(kind)
                )
                for kind in self._registry.all_kinds()
            },
            global_metrics=self._metrics.global_metrics(),
        )

    # --- Internal helpers ---

    async def _attempt(
        self,
        provider: BaseAnalysisProvider,
        operation: Capability,
        payload: bytes | str,
        params: dict[str, Any] | None,
    ) -> AttemptOutcome:
        set_provider_context(provider.kind.value)
        start = self._clock()
        try:
            result = await asyncio.wait_for(
                provider.analyze(payload, operation, params),
                timeout=self._attempt_timeout_s,
            )
        except Exception as exc:
            outcome = AttemptOutcome(
                provider=provider.kind,
                status=classify_failure(exc),
                latency_ms=self._elapsed_ms(start),
                error=exc,
            )
            logger.warning(
                "Provider %s %s for %s: %s",
                provider.kind.value, outcome.status.value, operation.value, exc,
            )
        else:
            if operation.is_interpretation and result.confidence < self._confidence_threshold:
                outcome = AttemptOutcome(
                    provider=provider.kind,
                    status=AttemptStatus.BELOW_THRESHOLD,
                    latency_ms=self._elapsed_ms(start),
                    result=result,
                    error=BelowThresholdError(result.confidence, self._confidence_threshold),
                )
                logger.info(
                    "Provider %s returned confidence %.2f < %.2f for %s",
                    provider.kind.value, result.confidence,
                    self._confidence_threshold, operation.value,
                )
            else:
                outcome = AttemptOutcome(
                    provider=provider.kind,
                    status=AttemptStatus.SUCCESS,
                    latency_ms=self._elapsed_ms(start),
                    result=result,
                )

        self._metrics.record_attempt(
            provider.kind.value, operation.value, outcome.status, outcome.latency_ms,
        )
        return outcome

    def _elapsed_ms(self, start: float) -> float:
        return (self._clock() - start) * 1000.0
