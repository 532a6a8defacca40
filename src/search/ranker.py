# src/search/ranker.py — v1
"""Relevance ranking of content records against a query interpretation.

score = tag relevance + recency + metadata completeness

Pure and deterministic for a given (records, interpretation, now). Recency
decays exponentially with a configurable half-life.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone

from reelsearch.core.models import ContentRecord, QueryInterpretation

DEFAULT_HALF_LIFE_DAYS = 30.0

_LOCATION_BONUS = 0.2
_DEVICE_BONUS = 0.1
_FACES_BONUS = 0.3
_SCENE_BONUS = 0.4
_SCENE_CONFIDENCE_MIN = 0.8


def tag_relevance(record: ContentRecord, interpretation: QueryInterpretation | None) -> float:
    """Sum over entities of best matching tag confidence × entity confidence."""
    if interpretation is None:
        return 0.0
    total = 0.0
    for entity in interpretation.entities:
        needle = entity.value.lower()
        if not needle:
            continue
        best = max(
            (t.confidence for t in record.ai_analysis.tags if needle in t.name.lower()),
            default=0.0,
        )
        total += best * entity.confidence
    return total


def recency(
    record: ContentRecord,
    now: datetime,
    half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
) -> float:
    """2^(-age_days / half_life); captures in the future count as age 0."""
    captured = record.metadata.captured_at
    if captured.tzinfo is None:
        captured = captured.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    age_days = max(0.0, (now - captured).total_seconds() / 86400.0)
    return math.pow(2.0, -age_days / half_life_days)


def metadata_completeness(record: ContentRecord) -> float:
    score = 0.0
    if record.metadata.location is not None:
        score += _LOCATION_BONUS
    if record.metadata.device_info:
        score += _DEVICE_BONUS
    if record.ai_analysis.faces:
        score += _FACES_BONUS
    if record.ai_analysis.scene_confidence > _SCENE_CONFIDENCE_MIN:
        score += _SCENE_BONUS
    return min(score, 1.0)


def score_record(
    record: ContentRecord,
    interpretation: QueryInterpretation | None,
    now: datetime,
    half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
) -> float:
    return (
        tag_relevance(record, interpretation)
        + recency(record, now, half_life_days)
        + metadata_completeness(record)
    )


def rank_results(
    records: list[ContentRecord],
    interpretation: QueryInterpretation | None,
    now: datetime,
    half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
) -> list[ContentRecord]:
    """Return copies of ``records`` with relevance_score set, best first.

    The sort is stable: records with equal scores keep their input order.
    """
    scored = [
        record.model_copy(
            update={"relevance_score": score_record(record, interpretation, now, half_life_days)}
        )
        for record in records
    ]
    return sorted(scored, key=lambda r: r.relevance_score, reverse=True)
