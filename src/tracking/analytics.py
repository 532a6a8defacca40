# src/tracking/analytics.py — v1
"""Search analytics sinks.

Analytics are best-effort: the search coordinator emits records in the
background and never lets a sink failure reach the caller.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from reelsearch.tracking.models import SearchAnalyticsRecord

logger = logging.getLogger(__name__)


class BaseAnalyticsSink(ABC):
    """Destination for SearchAnalyticsRecord entries."""

    @abstractmethod
    async def emit(self, record: SearchAnalyticsRecord) -> None:
        """Persist or forward one analytics record."""


class LoggingAnalyticsSink(BaseAnalyticsSink):
    """Writes analytics as structured INFO log lines."""

    async def emit(self, record: SearchAnalyticsRecord) -> None:
        logger.info(
            "Search analytics: %d results in %.1fms",
            record.result_count, record.execution_ms,
            extra={"data": record.model_dump(mode="json")},
        )


class JsonlAnalyticsSink(BaseAnalyticsSink):
    """Appends analytics records to a JSON Lines file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path).expanduser()

    async def emit(self, record: SearchAnalyticsRecord) -> None:
        line = json.dumps(record.model_dump(mode="json")) + "\n"
        await asyncio.to_thread(self._append, line)

    def _append(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line)


class MemoryAnalyticsSink(BaseAnalyticsSink):
    """Accumulates records in memory (embedding and tests)."""

    def __init__(self) -> None:
        self._records: list[SearchAnalyticsRecord] = []

    async def emit(self, record: SearchAnalyticsRecord) -> None:
        self._records.append(record)

    @property
    def records(self) -> list[SearchAnalyticsRecord]:
        return list(self._records)
