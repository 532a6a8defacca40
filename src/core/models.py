# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


# === ENUMERATIONS ===


class ProviderKind(str, Enum):
    """External analysis providers."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    OLLAMA = "ollama"


class Capability(str, Enum):
    """Operation kinds a provider may offer."""

    IMAGE_ANALYSIS = "image_analysis"
    FACE_DETECTION = "face_detection"
    QUERY_INTERPRETATION = "query_interpretation"

    @property
    def is_interpretation(self) -> bool:
        return self is Capability.QUERY_INTERPRETATION


class HealthState(str, Enum):
    """Three-state provider health signal."""

    AVAILABLE = "available"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"


class AttemptStatus(str, Enum):
    """Outcome of a single provider attempt within a failover sequence."""

    SUCCESS = "success"
    TIMEOUT = "timeout"
    ERROR = "error"
    BELOW_THRESHOLD = "below_threshold"


# === PROVIDER HEALTH ===


class HealthRecord(BaseModel):
    """Per-provider health, replaced wholesale on every check."""

    model_config = ConfigDict(frozen=True)

    provider: ProviderKind
    state: HealthState = HealthState.UNAVAILABLE
    last_check: datetime | None = None
    error_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    latency_ms: float = Field(default=0.0, ge=0.0)
    detail: str | None = None


class ProviderStatus(BaseModel):
    """Self-reported status returned by a provider's status probe."""

    state: HealthState = HealthState.AVAILABLE
    detail: str | None = None


# === ANALYSIS ===


class AnalysisRequest(BaseModel):
    """One analysis call routed through the failover orchestrator."""

    operation: Capability
    payload: bytes | str
    preferred_provider: ProviderKind | None = None
    params: dict[str, Any] = Field(default_factory=dict)


class Tag(BaseModel):
    """AI-generated label attached to an image."""

    name: str
    confidence: float = Field(ge=0.0, le=1.0)
    category: str = "scene"


class BoundingBox(BaseModel):
    """Face region in normalized image coordinates."""

    x: float = Field(ge=0.0, le=1.0)
    y: float = Field(ge=0.0, le=1.0)
    width: float = Field(ge=0.0, le=1.0)
    height: float = Field(ge=0.0, le=1.0)


class DetectedFace(BaseModel):
    """A single detected face."""

    box: BoundingBox
    confidence: float = Field(ge=0.0, le=1.0)
    attributes: dict[str, Any] = Field(default_factory=dict)


class ImageAnalysis(BaseModel):
    """Structured image analysis / face detection result."""

    provider: ProviderKind
    tags: list[Tag] = Field(default_factory=list)
    faces: list[DetectedFace] = Field(default_factory=list)
    scene: str | None = None
    confidence: float = Field(ge=0.0, le=1.0)
    processing_ms: float = 0.0

    def is_authoritative(self, threshold: float) -> bool:
        """Whether the result clears the acceptance threshold."""
        return self.confidence >= threshold


class QueryEntity(BaseModel):
    """Entity extracted from a natural-language query."""

    type: str = "keyword"
    value: str
    confidence: float = Field(ge=0.0, le=1.0)


# === SEARCH ===


class DateRange(BaseModel):
    """Inclusive capture-date window."""

    start: datetime | None = None
    end: datetime | None = None

    @model_validator(mode="after")
    def validate_order(self) -> DateRange:
        if self.start and self.end and self.end < self.start:
            raise ValueError("date_range.end must not precede date_range.start")
        return self


class SearchFilters(BaseModel):
    """Structured filters, supplied explicitly or inferred from query text."""

    content_types: list[str] = Field(default_factory=list)
    date_range: DateRange | None = None
    people: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    min_confidence: float | None = Field(default=None, ge=0.0, le=1.0)

    def is_set(self, field_name: str) -> bool:
        """Whether a field carries a value (non-empty list or non-None)."""
        value = getattr(self, field_name)
        if isinstance(value, list):
            return bool(value)
        return value is not None


class QueryInterpretation(BaseModel):
    """Structured interpretation of free-text query."""

    provider: ProviderKind
    original_query: str
    intent: str = "search"
    entities: list[QueryEntity] = Field(default_factory=list)
    filters: SearchFilters = Field(default_factory=SearchFilters)
    confidence: float = Field(ge=0.0, le=1.0)


AnalysisResult = Union[ImageAnalysis, QueryInterpretation]


class Pagination(BaseModel):
    """Pagination window. The upper page-size bound is enforced at ingress."""

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class SearchQuery(BaseModel):
    """Validated, immutable search query."""

    model_config = ConfigDict(frozen=True)

    text: str
    filters: SearchFilters = Field(default_factory=SearchFilters)
    pagination: Pagination = Field(default_factory=Pagination)


# === CONTENT ===


class GeoPoint(BaseModel):
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class ContentMetadata(BaseModel):
    """Capture metadata of a media item."""

    captured_at: datetime
    location: GeoPoint | None = None
    device_info: str | None = None


class ContentAnalysis(BaseModel):
    """AI analysis persisted alongside a media item."""

    tags: list[Tag] = Field(default_factory=list)
    faces: list[DetectedFace] = Field(default_factory=list)
    scene_confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class ContentRecord(BaseModel):
    """Read model of a media item returned by the content lookup."""

    id: str
    content_type: str
    metadata: ContentMetadata
    ai_analysis: ContentAnalysis = Field(default_factory=ContentAnalysis)
    people: list[str] = Field(default_factory=list)
    relevance_score: float | None = None


class ContentPage(BaseModel):
    """One page of content lookup results."""

    items: list[ContentRecord] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)


class DateBucket(BaseModel):
    day: date
    count: int


class SearchAggregations(BaseModel):
    """Facet counts over the returned page."""

    tag_counts: dict[str, int] = Field(default_factory=dict)
    content_type_counts: dict[str, int] = Field(default_factory=dict)
    date_histogram: list[DateBucket] = Field(default_factory=list)


class SearchResultSet(BaseModel):
    """Ranked, paginated search response."""

    items: list[ContentRecord] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20
    has_more: bool = False
    aggregations: SearchAggregations = Field(default_factory=SearchAggregations)
