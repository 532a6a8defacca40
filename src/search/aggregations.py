# src/search/aggregations.py — v1
"""Aggregation summary over a page of search results."""

from __future__ import annotations

from collections import Counter

from reelsearch.core.models import ContentRecord, DateBucket, SearchAggregations


def build_aggregations(records: list[ContentRecord]) -> SearchAggregations:
    """Count tags, content types and capture days across ``records``.

    Each tag counts at most once per record. The date histogram is sorted by day.
    """
    tags: Counter[str] = Counter()
    content_types: Counter[str] = Counter()
    days: Counter = Counter()
    for record in records:
        tags.update({t.name.lower() for t in record.ai_analysis.tags})
        content_types[record.content_type] += 1
        days[record.metadata.captured_at.date()] += 1

    return SearchAggregations(
        tag_counts=dict(tags.most_common()),
        content_type_counts=dict(content_types.most_common()),
        date_histogram=[DateBucket(day=d, count=n) for d, n in sorted(days.items())],
    )
