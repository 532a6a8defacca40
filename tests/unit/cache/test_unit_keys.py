# tests/unit/cache/test_unit_keys.py — v1
"""Tests for cache/keys.py: deterministic query cache keys."""

from __future__ import annotations

from reelsearch.cache.keys import derive_cache_key, normalize_text
from reelsearch.core.models import Pagination, SearchFilters, SearchQuery


def _query(text: str = "beach sunset", **filters) -> SearchQuery:
    return SearchQuery(text=text, filters=SearchFilters(**filters))


class TestNormalizeText:
    def test_case_and_whitespace(self):
        assert normalize_text("  Beach \t  SUNSET\n") == "beach sunset"


class TestDeriveCacheKey:
    def test_prefix_and_hash(self):
        key = derive_cache_key(_query())
        assert key.startswith("search:")
        assert len(key) == len("search:") + 64

    def test_deterministic(self):
        assert derive_cache_key(_query()) == derive_cache_key(_query())

    def test_text_normalized(self):
        assert derive_cache_key(_query("Beach   Sunset ")) == derive_cache_key(_query("beach sunset"))

    def test_filter_list_order_and_duplicates(self):
        a = _query(people=["bob", "alice"], tags=["sea", "sun"])
        b = _query(people=["alice", "bob", "alice"], tags=["sun", "sea"])
        assert derive_cache_key(a) == derive_cache_key(b)

    def test_filter_dict_order(self):
        a = SearchQuery.model_validate(
            {"text": "x", "filters": {"people": ["a"], "content_types": ["image/png"]}}
        )
        b = SearchQuery.model_validate(
            {"text": "x", "filters": {"content_types": ["image/png"], "people": ["a"]}}
        )
        assert derive_cache_key(a) == derive_cache_key(b)

    def test_different_filters_differ(self):
        assert derive_cache_key(_query(people=["alice"])) != derive_cache_key(_query(people=["bob"]))

    def test_pagination_distinguishes(self):
        a = SearchQuery(text="x", pagination=Pagination(page=1))
        b = SearchQuery(text="x", pagination=Pagination(page=2))
        assert derive_cache_key(a) != derive_cache_key(b)
