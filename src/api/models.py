# src/api/models.py — v1
"""API-level models: SearchRequest, SearchResponse, ErrorResponse."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from reelsearch.core.models import ContentRecord, SearchAggregations, SearchResultSet


class SearchRequest(BaseModel):
    """Inbound search payload.

    Only the envelope is checked here; query constraints are enforced by
    the search validator so every entry point shares one rule set.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    query: Any = None
    filters: dict[str, Any] = Field(default_factory=dict)
    pagination: dict[str, Any] = Field(default_factory=dict)
    preferred_provider: str | None = Field(default=None, alias="preferredProvider")

    def to_query_payload(self) -> dict[str, Any]:
        return {"text": self.query, "filters": self.filters, "pagination": self.pagination}


class SearchResponse(BaseModel):
    """Successful search response (``hasMore`` on the wire)."""

    items: list[ContentRecord] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    has_more: bool = Field(default=False, serialization_alias="hasMore")
    aggregations: SearchAggregations = Field(default_factory=SearchAggregations)

    @classmethod
    def from_result(cls, result: SearchResultSet) -> SearchResponse:
        return cls(
            items=result.items,
            total=result.total,
            page=result.page,
            has_more=result.has_more,
            aggregations=result.aggregations,
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ErrorBody(BaseModel):
    code: str
    message: str
    fields: list[str] | None = None


class ErrorResponse(BaseModel):
    """Error envelope: stable code and a generic message, nothing upstream."""

    error: ErrorBody

    @classmethod
    def build(cls, code: str, message: str, fields: list[str] | None = None) -> ErrorResponse:
        return cls(error=ErrorBody(code=code, message=message, fields=fields or None))

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
