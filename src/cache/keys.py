# src/cache/keys.py — v1
"""Deterministic cache key derivation for search queries.

Semantically identical queries (case, surrounding or repeated whitespace,
filter list order or duplicates) map to the same key.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from reelsearch.core.models import SearchQuery

KEY_PREFIX = "search:"


def normalize_text(text: str) -> str:
    """Lower-case and collapse runs of whitespace."""
    return " ".join(text.lower().split())


def _canonical(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _canonical(v) for k, v in value.items()}
    if isinstance(value, list):
        items = [_canonical(v) for v in value]
        if all(isinstance(v, str) for v in items):
            return sorted(set(items))
        return items
    return value


def derive_cache_key(query: SearchQuery) -> str:
    """Return ``search:<sha256>`` over the canonical form of the query."""
    payload = {
        "text": normalize_text(query.text),
        "filters": _canonical(query.filters.model_dump(mode="json")),
        "pagination": query.pagination.model_dump(mode="json"),
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return KEY_PREFIX + hashlib.sha256(canonical.encode("utf-8")).hexdigest()
