# tests/unit/core/test_unit_models.py — v1
"""Tests for core/models.py: domain model invariants."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from reelsearch.core.models import (
    Capability,
    DateRange,
    HealthRecord,
    HealthState,
    ImageAnalysis,
    Pagination,
    ProviderKind,
    QueryInterpretation,
    SearchFilters,
    SearchQuery,
    Tag,
)


class TestEnums:
    def test_interpretation_flag(self):
        assert Capability.QUERY_INTERPRETATION.is_interpretation
        assert not Capability.IMAGE_ANALYSIS.is_interpretation
        assert not Capability.FACE_DETECTION.is_interpretation

    def test_provider_values(self):
        assert [k.value for k in ProviderKind] == ["openai", "anthropic", "google", "ollama"]


class TestHealthRecord:
    def test_starts_unavailable_unchecked(self):
        record = HealthRecord(provider=ProviderKind.OPENAI)
        assert record.state is HealthState.UNAVAILABLE
        assert record.last_check is None

    def test_error_rate_bounded(self):
        with pytest.raises(PydanticValidationError):
            HealthRecord(provider=ProviderKind.OPENAI, error_rate=1.5)


class TestConfidenceBounds:
    def test_tag_confidence(self):
        with pytest.raises(PydanticValidationError):
            Tag(name="beach", confidence=1.2)

    def test_interpretation_confidence(self):
        with pytest.raises(PydanticValidationError):
            QueryInterpretation(
                provider=ProviderKind.OPENAI, original_query="x", confidence=-0.1
            )

    def test_image_authoritative(self):
        result = ImageAnalysis(provider=ProviderKind.GOOGLE, confidence=0.7)
        assert result.is_authoritative(0.7)
        assert not result.is_authoritative(0.8)


class TestSearchModels:
    def test_date_range_order(self):
        with pytest.raises(PydanticValidationError):
            DateRange(
                start=datetime(2026, 2, 1, tzinfo=timezone.utc),
                end=datetime(2026, 1, 1, tzinfo=timezone.utc),
            )

    def test_filters_is_set(self):
        filters = SearchFilters(people=["alice"], min_confidence=0.5)
        assert filters.is_set("people")
        assert filters.is_set("min_confidence")
        assert not filters.is_set("tags")
        assert not filters.is_set("date_range")

    def test_pagination_offset(self):
        assert Pagination(page=3, page_size=10).offset == 20

    def test_pagination_page_floor(self):
        with pytest.raises(PydanticValidationError):
            Pagination(page=0)

    def test_query_is_frozen(self):
        query = SearchQuery(text="beach")
        with pytest.raises(PydanticValidationError):
            query.text = "mountain"  # type: ignore[misc]
