# src/search/content_store.py — v1
"""Content lookup interface and an in-memory implementation.

The content store owns filtering and pagination; ranking happens after the
lookup, on the returned page only.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from reelsearch.core.models import ContentPage, ContentRecord, Pagination, SearchFilters

logger = logging.getLogger(__name__)


class BaseContentStore(ABC):
    """Read side of the external content store."""

    @abstractmethod
    async def lookup(self, filters: SearchFilters, pagination: Pagination) -> ContentPage:
        """Return one page of records matching ``filters`` plus the total count."""


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def matches(record: ContentRecord, filters: SearchFilters) -> bool:
    """Whether a record satisfies every set filter."""
    if filters.content_types and record.content_type not in filters.content_types:
        return False

    if filters.date_range is not None:
        captured = _aware(record.metadata.captured_at)
        if filters.date_range.start and captured < _aware(filters.date_range.start):
            return False
        if filters.date_range.end and captured > _aware(filters.date_range.end):
            return False

    if filters.people:
        present = {p.lower() for p in record.people}
        if not all(p.lower() in present for p in filters.people):
            return False

    if filters.tags:
        floor = filters.min_confidence or 0.0
        for wanted in filters.tags:
            needle = wanted.lower()
            if not any(
                needle in tag.name.lower() and tag.confidence >= floor
                for tag in record.ai_analysis.tags
            ):
                return False

    return True


class InMemoryContentStore(BaseContentStore):
    """Content store over a list of records, newest capture first."""

    def __init__(self, records: Iterable[ContentRecord] = ()) -> None:
        self._records = sorted(
            records, key=lambda r: _aware(r.metadata.captured_at), reverse=True
        )

    @classmethod
    def from_json(cls, path: Path | str) -> InMemoryContentStore:
        """Load records from a JSON file holding a list of content records."""
        path = Path(path).expanduser()
        data = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            data = data.get("items", [])
        records = [ContentRecord.model_validate(item) for item in data]
        logger.info("Loaded %d content records from %s", len(records), path)
        return cls(records)

    async def lookup(self, filters: SearchFilters, pagination: Pagination) -> ContentPage:
        hits = [r for r in self._records if matches(r, filters)]
        start = pagination.offset
        return ContentPage(
            items=hits[start:start + pagination.page_size],
            total=len(hits),
        )

    def __len__(self) -> int:
        return len(self._records)
