# src/search/filters.py — v1
"""Merging of explicit and AI-inferred search filters."""

from __future__ import annotations

from reelsearch.core.models import SearchFilters


def merge_filters(explicit: SearchFilters, inferred: SearchFilters | None) -> SearchFilters:
    """Combine filters field by field.

    An explicitly set field always wins; a field the caller left unset takes
    the inferred value.
    """
    if inferred is None:
        return explicit
    merged = {
        name: getattr(explicit, name) if explicit.is_set(name) else getattr(inferred, name)
        for name in SearchFilters.model_fields
    }
    return SearchFilters(**merged)
