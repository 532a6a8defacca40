# src/tracking/metrics.py — v1
"""In-process metrics sink for provider attempts and health.

Keeps request counters and latency histograms labelled by provider,
operation and outcome, a rolling window of attempts per provider (read by
the health monitor and by service_metrics), and a health gauge per provider.
Exports Prometheus text format for scraping by an external collector.
"""

from __future__ import annotations

import bisect
import logging
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from reelsearch.core.models import AttemptStatus, HealthState
from reelsearch.tracking.models import GlobalMetrics, ProviderCallRecord, ProviderStats

logger = logging.getLogger(__name__)

LATENCY_BUCKETS_S: tuple[float, ...] = (0.1, 0.5, 1.0, 2.0, 5.0, float("inf"))

_HEALTH_GAUGE = {
    HealthState.AVAILABLE: 1.0,
    HealthState.DEGRADED: 0.5,
    HealthState.UNAVAILABLE: 0.0,
}


@dataclass
class LatencyHistogram:
    """Cumulative-bucket histogram of latencies in seconds."""

    bounds: tuple[float, ...] = LATENCY_BUCKETS_S
    counts: list[int] = field(default_factory=lambda: [0] * len(LATENCY_BUCKETS_S))
    total: float = 0.0
    count: int = 0

    def observe(self, value_s: float) -> None:
        self.counts[bisect.bisect_left(self.bounds, value_s)] += 1
        self.total += value_s
        self.count += 1

    def cumulative(self) -> list[tuple[float, int]]:
        """Return (upper bound, cumulative count) pairs, Prometheus style."""
        running = 0
        out: list[tuple[float, int]] = []
        for bound, n in zip(self.bounds, self.counts):
            running += n
            out.append((bound, running))
        return out


class MetricsRecorder:
    """Collects per-attempt counters, latency histograms and health gauges."""

    def __init__(
        self,
        window_size: int = 100,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._window_size = window_size
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._requests: Counter[tuple[str, str, str]] = Counter()
        self._histograms: dict[tuple[str, str], LatencyHistogram] = {}
        self._windows: dict[str, deque[ProviderCallRecord]] = {}
        self._health: dict[str, float] = {}
        self._latency_total_ms = 0.0

    # --- Recording ---

    def record_attempt(
        self,
        provider: str,
        operation: str,
        outcome: AttemptStatus,
        latency_ms: float,
    ) -> ProviderCallRecord:
        """Record one provider attempt: counter, histogram and rolling window."""
        record = ProviderCallRecord(
            timestamp=self._now(),
            provider=provider,
            operation=operation,
            outcome=outcome,
            latency_ms=latency_ms,
        )
        self._requests[(provider, operation, outcome.value)] += 1
        self._histograms.setdefault(
            (provider, operation), LatencyHistogram()
        ).observe(latency_ms / 1000.0)
        self._windows.setdefault(
            provider, deque(maxlen=self._window_size)
        ).append(record)
        self._latency_total_ms += latency_ms
        return record

    def set_health(self, provider: str, state: HealthState) -> None:
        """Publish the health gauge for a provider."""
        self._health[provider] = _HEALTH_GAUGE[state]

    # --- Queries ---

    def request_count(
        self,
        provider: str | None = None,
        operation: str | None = None,
        outcome: AttemptStatus | None = None,
    ) -> int:
        """Sum request counters matching the given labels (None = any)."""
        return sum(
            n
            for (p, op, out), n in self._requests.items()
            if (provider is None or p == provider)
            and (operation is None or op == operation)
            and (outcome is None or out == outcome.value)
        )

    def latency_histogram(self, provider: str, operation: str) -> LatencyHistogram | None:
        return self._histograms.get((provider, operation))

    def health_gauge(self, provider: str) -> float | None:
        return self._health.get(provider)

    def window(self, provider: str) -> list[ProviderCallRecord]:
        """Rolling window of the most recent attempts for a provider."""
        return list(self._windows.get(provider, ()))

    def sample_count(self, provider: str) -> int:
        return len(self._windows.get(provider, ()))

    def success_rate(self, provider: str) -> float | None:
        """Share of successful attempts in the rolling window, None if empty."""
        records = self._windows.get(provider)
        if not records:
            return None
        ok = sum(1 for r in records if r.outcome is AttemptStatus.SUCCESS)
        return ok / len(records)

    def error_rate(self, provider: str) -> float | None:
        rate = self.success_rate(provider)
        return None if rate is None else 1.0 - rate

    def average_latency_ms(self, provider: str) -> float | None:
        records = self._windows.get(provider)
        if not records:
            return None
        return sum(r.latency_ms for r in records) / len(records)

    def provider_stats(self, provider: str, status: HealthState) -> ProviderStats:
        return ProviderStats(
            status=status,
            total_requests=self.request_count(provider=provider),
            success_rate=self.success_rate(provider),
            error_rate=self.error_rate(provider),
            average_latency_ms=self.average_latency_ms(provider),
        )

    def global_metrics(self) -> GlobalMetrics:
        total = self.request_count()
        if total == 0:
            return GlobalMetrics()
        failures = total - self.request_count(outcome=AttemptStatus.SUCCESS)
        return GlobalMetrics(
            total_requests=total,
            error_rate=failures / total,
            average_latency_ms=self._latency_total_ms / total,
        )

    # --- Export ---

    def export_prometheus(self, prefix: str = "reelsearch") -> str:
        """Render all metrics in Prometheus text exposition format."""
        lines: list[str] = []

        name = f"{prefix}_ai_requests_total"
        lines.append(f"# HELP {name} Total number of AI provider attempts")
        lines.append(f"# TYPE {name} counter")
        for (provider, op, outcome), n in sorted(self._requests.items()):
            lines.append(
                f'{name}{{provider="{provider}",operation="{op}",outcome="{outcome}"}} {n}'
            )

        name = f"{prefix}_ai_processing_duration_seconds"
        lines.append(f"# HELP {name} AI provider attempt duration in seconds")
        lines.append(f"# TYPE {name} histogram")
        for (provider, op), hist in sorted(self._histograms.items()):
            labels = f'provider="{provider}",operation="{op}"'
            for bound, cum in hist.cumulative():
                le = "+Inf" if bound == float("inf") else f"{bound}"
                lines.append(f'{name}_bucket{{{labels},le="{le}"}} {cum}')
            lines.append(f"{name}_sum{{{labels}}} {hist.total}")
            lines.append(f"{name}_count{{{labels}}} {hist.count}")

        name = f"{prefix}_ai_provider_health"
        lines.append(f"# HELP {name} Health status of AI providers")
        lines.append(f"# TYPE {name} gauge")
        for provider, value in sorted(self._health.items()):
            lines.append(f'{name}{{provider="{provider}"}} {value}')

        return "\n".join(lines) + "\n"
