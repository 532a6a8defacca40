# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides a scriptable fake provider, seeded health stores, sample content
records and fixed clocks. No network access: every provider is faked.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from reelsearch.config.settings import Settings
from reelsearch.core.models import (
    AnalysisResult,
    BoundingBox,
    Capability,
    ContentAnalysis,
    ContentMetadata,
    ContentRecord,
    DetectedFace,
    GeoPoint,
    HealthState,
    ImageAnalysis,
    ProviderKind,
    ProviderStatus,
    QueryEntity,
    QueryInterpretation,
    SearchFilters,
    Tag,
)
from reelsearch.providers.base_provider import BaseAnalysisProvider
from reelsearch.providers.health import HealthStore
from reelsearch.providers.registry import ProviderRegistry

FIXED_NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


# === Fake provider ===


class FakeProvider(BaseAnalysisProvider):
    """Scriptable provider.

    ``behavior`` is either a result to return, an exception to raise, or a
    callable ``(payload, capability) -> result`` for per-call scripting.
    ``delay_s`` sleeps before answering (to trigger timeouts).
    """

    def __init__(
        self,
        kind: ProviderKind,
        behavior: Any = None,
        capabilities: frozenset[Capability] | None = None,
        delay_s: float = 0.0,
        status: ProviderStatus | BaseException | None = None,
        status_delay_s: float = 0.0,
    ) -> None:
        self._kind = kind
        self.behavior = behavior
        self._capabilities = capabilities if capabilities is not None else frozenset(Capability)
        self.delay_s = delay_s
        self.status = status if status is not None else ProviderStatus()
        self.status_delay_s = status_delay_s
        self.calls: list[tuple[Any, Capability]] = []
        self.status_calls = 0

    @property
    def kind(self) -> ProviderKind:
        return self._kind

    @property
    def capabilities(self) -> frozenset[Capability]:
        return self._capabilities

    async def analyze(
        self,
        payload: bytes | str,
        capability: Capability,
        params: dict[str, Any] | None = None,
    ) -> AnalysisResult:
        self.calls.append((payload, capability))
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        behavior = self.behavior
        if isinstance(behavior, BaseException):
            raise behavior
        if callable(behavior):
            return behavior(payload, capability)
        if behavior is None:
            return make_interpretation(self._kind, confidence=0.9)
        return behavior

    async def get_status(self) -> ProviderStatus:
        self.status_calls += 1
        if self.status_delay_s:
            await asyncio.sleep(self.status_delay_s)
        if isinstance(self.status, BaseException):
            raise self.status
        return self.status


def make_interpretation(
    provider: ProviderKind = ProviderKind.OPENAI,
    confidence: float = 0.9,
    entities: list[tuple[str, float]] | None = None,
    filters: SearchFilters | None = None,
    query: str = "beach sunset family",
) -> QueryInterpretation:
    return QueryInterpretation(
        provider=provider,
        original_query=query,
        entities=[QueryEntity(value=v, confidence=c) for v, c in (entities or [])],
        filters=filters or SearchFilters(),
        confidence=confidence,
    )


def make_image_analysis(
    provider: ProviderKind = ProviderKind.OPENAI, confidence: float = 0.9
) -> ImageAnalysis:
    return ImageAnalysis(
        provider=provider,
        tags=[Tag(name="beach", confidence=0.9)],
        confidence=confidence,
    )


def make_record(
    record_id: str,
    captured_at: datetime = FIXED_NOW,
    tags: list[tuple[str, float]] | None = None,
    content_type: str = "image/jpeg",
    people: list[str] | None = None,
    location: bool = False,
    device: bool = False,
    faces: int = 0,
    scene_confidence: float = 0.0,
) -> ContentRecord:
    return ContentRecord(
        id=record_id,
        content_type=content_type,
        metadata=ContentMetadata(
            captured_at=captured_at,
            location=GeoPoint(latitude=43.3, longitude=5.4) if location else None,
            device_info="Pixel 8" if device else None,
        ),
        ai_analysis=ContentAnalysis(
            tags=[Tag(name=n, confidence=c) for n, c in (tags or [])],
            faces=[
                DetectedFace(
                    box=BoundingBox(x=0.1, y=0.1, width=0.2, height=0.2),
                    confidence=0.9,
                )
                for _ in range(faces)
            ],
            scene_confidence=scene_confidence,
        ),
        people=people or [],
    )


# === FIXTURES ===


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fake_provider_cls() -> type[FakeProvider]:
    return FakeProvider


@pytest.fixture
def interpretation_factory() -> Callable[..., QueryInterpretation]:
    return make_interpretation


@pytest.fixture
def image_analysis_factory() -> Callable[..., ImageAnalysis]:
    return make_image_analysis


@pytest.fixture
def record_factory() -> Callable[..., ContentRecord]:
    return make_record


@pytest.fixture
def settings() -> Settings:
    """Defaults, isolated from any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def make_registry() -> Callable[..., ProviderRegistry]:
    def _make(*providers: BaseAnalysisProvider) -> ProviderRegistry:
        registry = ProviderRegistry()
        for provider in providers:
            registry.register(provider)
        return registry
    return _make


@pytest.fixture
def make_health() -> Callable[..., HealthStore]:
    """Build a HealthStore with every given kind seeded to a state."""
    def _make(states: dict[ProviderKind, HealthState]) -> HealthStore:
        store = HealthStore(states)
        for kind, state in states.items():
            store.seed(kind, state)
        return store
    return _make


@pytest.fixture
def sample_records() -> list[ContentRecord]:
    """Small library spanning several days, tags, people and types."""
    return [
        make_record(
            "beach-sunset",
            captured_at=FIXED_NOW - timedelta(days=1),
            tags=[("beach", 0.95), ("sunset", 0.9)],
            people=["alice"],
            location=True,
            faces=2,
        ),
        make_record(
            "mountain",
            captured_at=FIXED_NOW - timedelta(days=3),
            tags=[("mountain", 0.9), ("snow", 0.8)],
            people=["bob"],
        ),
        make_record(
            "beach-video",
            captured_at=FIXED_NOW - timedelta(days=10),
            tags=[("beach", 0.7)],
            content_type="video/mp4",
            people=["alice", "bob"],
        ),
        make_record(
            "city",
            captured_at=FIXED_NOW - timedelta(days=40),
            tags=[("city skyline", 0.85)],
            device=True,
        ),
    ]
