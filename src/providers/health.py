# src/providers/health.py — v1
"""Provider health store and periodic health monitor.

HealthStore is single-writer / multi-reader: the monitor replaces one
immutable mapping per update, readers never lock. HealthMonitor probes
every registered provider concurrently, each probe bounded by its own
timeout, and overwrites the previous record on every check.

Optional enhancement over a plain probe: when the metrics sink has seen at
least ``min_samples`` real attempts for a provider and their error rate
reaches ``degraded_error_rate``, a successful probe is reported as
DEGRADED rather than AVAILABLE.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Awaitable, Callable, Iterable, Mapping

from reelsearch.core.errors import classify_failure
from reelsearch.core.models import AttemptStatus, HealthRecord, HealthState, ProviderKind
from reelsearch.providers.registry import ProviderRegistry
from reelsearch.tracking.metrics import MetricsRecorder

logger = logging.getLogger(__name__)

# Smoothing factor for rolling probe latency / probe failure rate.
_EWMA_ALPHA = 0.3


class HealthStore:
    """Injectable per-provider health records."""

    def __init__(self, kinds: Iterable[ProviderKind] = ()) -> None:
        self._records: Mapping[ProviderKind, HealthRecord] = MappingProxyType({})
        self.initialize(kinds)

    def initialize(self, kinds: Iterable[ProviderKind]) -> None:
        """Create an UNAVAILABLE, never-checked record for each kind."""
        self._records = MappingProxyType(
            {kind: HealthRecord(provider=kind) for kind in kinds}
        )

    def get(self, kind: ProviderKind) -> HealthRecord:
        record = self._records.get(kind)
        return record if record is not None else HealthRecord(provider=kind)

    def state(self, kind: ProviderKind) -> HealthState:
        return self.get(kind).state

    def snapshot(self) -> dict[ProviderKind, HealthRecord]:
        return dict(self._records)

    def update(self, record: HealthRecord) -> None:
        """Atomically swap in a new record for one provider."""
        records = dict(self._records)
        records[record.provider] = record
        self._records = MappingProxyType(records)

    def seed(self, kind: ProviderKind, state: HealthState, **fields: object) -> None:
        """Set a provider's state directly (manual override, tests)."""
        self.update(HealthRecord(provider=kind, state=state, **fields))  # type: ignore[arg-type]


class HealthMonitor:
    """Periodic, concurrent status probing of registered providers."""

    def __init__(
        self,
        registry: ProviderRegistry,
        store: HealthStore,
        interval_s: float = 60.0,
        probe_timeout_s: float = 5.0,
        metrics: MetricsRecorder | None = None,
        degraded_error_rate: float = 0.2,
        min_samples: int = 5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._registry = registry
        self._store = store
        self._interval_s = interval_s
        self._probe_timeout_s = probe_timeout_s
        self._metrics = metrics
        self._degraded_error_rate = degraded_error_rate
        self._min_samples = min_samples
        self._clock = clock
        self._sleep = sleep
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check_all(self) -> dict[ProviderKind, HealthRecord]:
        """Probe every registered provider concurrently."""
        kinds = self._registry.all_kinds()
        records = await asyncio.gather(*(self.check(kind) for kind in kinds))
        return dict(zip(kinds, records))

    async def check(self, kind: ProviderKind) -> HealthRecord:
        """Probe one provider and overwrite its health record."""
        provider = self._registry.get(kind)
        previous = self._store.get(kind)

        probe_failed = False
        start = self._clock()
        try:
            status = await asyncio.wait_for(
                provider.get_status(), timeout=self._probe_timeout_s
            )
            state, detail = status.state, status.detail
        except Exception as exc:
            probe_failed = True
            state = HealthState.UNAVAILABLE
            if classify_failure(exc) is AttemptStatus.TIMEOUT:
                detail = "timeout"
                logger.warning(
                    "Health probe for %s timed out after %.1fs",
                    kind.value, self._probe_timeout_s,
                )
            else:
                detail = f"transport error: {type(exc).__name__}"
                logger.warning("Health probe for %s failed: %s", kind.value, exc)
        latency_ms = (self._clock() - start) * 1000.0

        error_rate = self._rolling_error_rate(kind, previous, probe_failed)
        if state is HealthState.AVAILABLE and self._is_error_prone(kind, error_rate):
            state = HealthState.DEGRADED
            detail = f"observed error rate {error_rate:.0%}"

        if previous.last_check is not None:
            latency_ms = _EWMA_ALPHA * latency_ms + (1 - _EWMA_ALPHA) * previous.latency_ms

        record = HealthRecord(
            provider=kind,
            state=state,
            last_check=self._now(),
            error_rate=error_rate,
            latency_ms=latency_ms,
            detail=detail,
        )
        self._store.update(record)
        if self._metrics is not None:
            self._metrics.set_health(kind.value, state)

        if previous.state is not state:
            logger.info(
                "Provider %s health: %s -> %s",
                kind.value, previous.state.value, state.value,
            )
        return record

    async def run(self, iterations: int | None = None) -> None:
        """Check, then sleep one interval; forever unless iterations is given."""
        done = 0
        while iterations is None or done < iterations:
            try:
                await self.check_all()
            except Exception:
                logger.exception("Health check round failed, polling continues")
            done += 1
            await self._sleep(self._interval_s)

    def start(self) -> asyncio.Task[None]:
        """Start the background polling task (idempotent)."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="provider-health-monitor")
            logger.info(
                "Health monitor started: %d providers every %.0fs",
                len(self._registry), self._interval_s,
            )
        return self._task

    async def stop(self) -> None:
        """Cancel the background task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Health monitor stopped")

    # --- Internal helpers ---

    def _rolling_error_rate(
        self, kind: ProviderKind, previous: HealthRecord, probe_failed: bool
    ) -> float:
        if self._metrics is not None and self._metrics.sample_count(kind.value):
            return self._metrics.error_rate(kind.value) or 0.0
        sample = 1.0 if probe_failed else 0.0
        if previous.last_check is None:
            return sample
        return _EWMA_ALPHA * sample + (1 - _EWMA_ALPHA) * previous.error_rate

    def _is_error_prone(self, kind: ProviderKind, error_rate: float) -> bool:
        if self._metrics is None:
            return False
        return (
            self._metrics.sample_count(kind.value) >= self._min_samples
            and error_rate >= self._degraded_error_rate
        )
