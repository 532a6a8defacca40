# src/search/validation.py — v1
"""Ingress validation of search queries.

Runs once, before any cache or provider I/O. Failures raise
``ValidationError`` listing only the offending field names.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from reelsearch.core.errors import ValidationError
from reelsearch.core.models import SearchQuery

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 500
MAX_PAGE_SIZE = 100
MAX_FILTER_TAGS = 20

_FORBIDDEN_CHARS = re.compile(r"[<>{}]")


def _field_name(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc if not isinstance(part, int)) or "query"


def validate_query(
    raw: SearchQuery | Mapping[str, Any],
    max_page_size: int = MAX_PAGE_SIZE,
    max_query_length: int = MAX_QUERY_LENGTH,
    default_page_size: int | None = None,
) -> SearchQuery:
    """Parse and check a search query, returning the immutable SearchQuery.

    Args:
        raw: Either a SearchQuery or a mapping with ``text``, ``filters``
            and ``pagination`` keys.
        max_page_size: Upper bound for ``pagination.page_size``.
        max_query_length: Upper bound for the stripped query text.
        default_page_size: Page size used when a mapping omits one.

    Raises:
        ValidationError: On any violated constraint.
    """
    if isinstance(raw, SearchQuery):
        query = raw
    else:
        if not isinstance(raw, Mapping):
            raise ValidationError("Search query must be an object", fields=["query"])
        data = dict(raw)
        if default_page_size is not None:
            pagination = data.get("pagination") or {}
            if isinstance(pagination, Mapping) and "page_size" not in pagination:
                data["pagination"] = {**pagination, "page_size": default_page_size}
        try:
            query = SearchQuery.model_validate(data)
        except PydanticValidationError as exc:
            fields = sorted({_field_name(err["loc"]) for err in exc.errors()})
            raise ValidationError(
                f"Invalid search query: {', '.join(fields)}", fields=fields
            ) from exc

    fields: list[str] = []
    text = query.text.strip()
    if not text or len(text) > max_query_length or _FORBIDDEN_CHARS.search(text):
        fields.append("text")
    if query.pagination.page_size > max_page_size:
        fields.append("pagination.page_size")
    if len(query.filters.tags) > MAX_FILTER_TAGS:
        fields.append("filters.tags")

    if fields:
        logger.debug("Rejected search query, invalid fields: %s", fields)
        raise ValidationError(f"Invalid search query: {', '.join(fields)}", fields=fields)

    if text != query.text:
        query = query.model_copy(update={"text": text})
    return query
