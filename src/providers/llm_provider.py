# src/providers/llm_provider.py — v1
"""Analysis provider built on a multimodal LLM.

Concrete adapters only supply text completion, vision completion and a
status probe. Prompt rendering, JSON parsing and mapping onto
ImageAnalysis / QueryInterpretation live here.
"""

from __future__ import annotations

import json
import logging
import time
from abc import abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError as PydanticValidationError

from reelsearch.core.models import (
    AnalysisResult,
    BoundingBox,
    Capability,
    DetectedFace,
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

logger = logging.getLogger(__name__)

_PROMPT_DIR = Path(__file__).parent / "prompts"

_SYSTEM_PROMPT = (
    "You are a media analysis service for a photo library. "
    "Respond only with valid JSON."
)

# Magic-byte prefixes for the image formats the library accepts.
_IMAGE_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)


class ProviderResponseError(ValueError):
    """Provider answered, but the answer could not be mapped to a result."""


def detect_media_type(data: bytes) -> str:
    """Sniff the image media type from its leading bytes (JPEG if unknown)."""
    for signature, media_type in _IMAGE_SIGNATURES:
        if data.startswith(signature):
            return media_type
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def parse_json_response(content: str) -> dict[str, Any]:
    """Parse a JSON object from model output, tolerating markdown fences."""
    text = content.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        lines = [ln for ln in lines if not ln.strip().startswith("```")]
        text = "\n".join(lines)
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProviderResponseError(f"Response is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ProviderResponseError("Response JSON is not an object")
    return parsed


def _clamp(value: Any, default: float = 0.0) -> float:
    try:
        return min(1.0, max(0.0, float(value)))
    except (TypeError, ValueError):
        return default


class LLMAnalysisProvider(BaseAnalysisProvider):
    """Base class for LLM-backed providers."""

    provider_kind: ProviderKind

    def __init__(
        self,
        model: str,
        degraded_latency_ms: float = 2000.0,
        max_tokens: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._model = model
        self._degraded_latency_ms = degraded_latency_ms
        self._max_tokens = max_tokens
        self._clock = clock
        self._prompts: dict[str, str] = {}

    @property
    def kind(self) -> ProviderKind:
        return self.provider_kind

    @property
    def model(self) -> str:
        return self._model

    @property
    def supports_vision(self) -> bool:
        return True

    @property
    def capabilities(self) -> frozenset[Capability]:
        if self.supports_vision:
            return frozenset(Capability)
        return frozenset({Capability.QUERY_INTERPRETATION})

    async def analyze(
        self,
        payload: bytes | str,
        capability: Capability,
        params: dict[str, Any] | None = None,
    ) -> AnalysisResult:
        params = params or {}
        start = self._clock()

        if capability.is_interpretation:
            if not isinstance(payload, str):
                raise TypeError("query interpretation expects a text payload")
            prompt = self._render(
                "query_interpretation.txt",
                query=payload,
                today=datetime.now(timezone.utc).date().isoformat(),
            )
            content = await self._complete(_SYSTEM_PROMPT, prompt, self._max_tokens)
            return self._build_interpretation(payload, parse_json_response(content))

        if not isinstance(payload, (bytes, bytearray)):
            raise TypeError(f"{capability.value} expects a binary image payload")
        template = (
            "face_detection.txt"
            if capability is Capability.FACE_DETECTION
            else "image_analysis.txt"
        )
        prompt = self._render(template, max_tags=int(params.get("max_tags", 20)))
        image = bytes(payload)
        content = await self._complete_vision(
            _SYSTEM_PROMPT, prompt, image, detect_media_type(image), self._max_tokens,
        )
        elapsed_ms = (self._clock() - start) * 1000.0
        return self._build_image_analysis(parse_json_response(content), elapsed_ms)

    async def get_status(self) -> ProviderStatus:
        """Probe the provider API; a slow answer reports DEGRADED."""
        start = self._clock()
        await self._probe()
        latency_ms = (self._clock() - start) * 1000.0
        if latency_ms > self._degraded_latency_ms:
            return ProviderStatus(
                state=HealthState.DEGRADED,
                detail=f"slow status probe: {latency_ms:.0f}ms",
            )
        return ProviderStatus(state=HealthState.AVAILABLE)

    # --- Adapter primitives ---

    @abstractmethod
    async def _complete(self, system: str, prompt: str, max_tokens: int) -> str:
        """Text completion returning the raw model text."""

    @abstractmethod
    async def _complete_vision(
        self,
        system: str,
        prompt: str,
        image: bytes,
        media_type: str,
        max_tokens: int,
    ) -> str:
        """Vision completion over a single image."""

    @abstractmethod
    async def _probe(self) -> None:
        """Cheapest authenticated call the provider offers."""

    # --- Internal helpers ---

    def _render(self, template_name: str, **values: Any) -> str:
        if template_name not in self._prompts:
            self._prompts[template_name] = (_PROMPT_DIR / template_name).read_text(
                encoding="utf-8"
            )
        return self._prompts[template_name].format(**values)

    def _build_interpretation(
        self, query: str, raw: dict[str, Any]
    ) -> QueryInterpretation:
        entities: list[QueryEntity] = []
        for item in raw.get("entities") or []:
            try:
                entities.append(
                    QueryEntity(
                        type=str(item.get("type") or "keyword"),
                        value=str(item["value"]).strip().lower(),
                        confidence=_clamp(item.get("confidence"), 0.5),
                    )
                )
            except (KeyError, AttributeError) as exc:
                logger.debug("Skipping malformed entity %r: %s", item, exc)

        try:
            filters = SearchFilters.model_validate(raw.get("filters") or {})
        except PydanticValidationError as exc:
            logger.debug("Discarding malformed inferred filters: %s", exc)
            filters = SearchFilters()

        return QueryInterpretation(
            provider=self.kind,
            original_query=query,
            intent=str(raw.get("intent") or "search"),
            entities=[e for e in entities if e.value],
            filters=filters,
            confidence=_clamp(raw.get("confidence")),
        )

    def _build_image_analysis(
        self, raw: dict[str, Any], elapsed_ms: float
    ) -> ImageAnalysis:
        tags: list[Tag] = []
        for item in raw.get("tags") or []:
            try:
                tags.append(
                    Tag(
                        name=str(item["name"]).strip().lower(),
                        confidence=_clamp(item.get("confidence"), 0.5),
                        category=str(item.get("category") or "scene"),
                    )
                )
            except (KeyError, AttributeError, TypeError, ValueError) as exc:
                logger.debug("Skipping malformed tag %r: %s", item, exc)

        faces: list[DetectedFace] = []
        for item in raw.get("faces") or []:
            try:
                box = item["box"]
                faces.append(
                    DetectedFace(
                        box=BoundingBox(
                            x=_clamp(box.get("x")),
                            y=_clamp(box.get("y")),
                            width=_clamp(box.get("width")),
                            height=_clamp(box.get("height")),
                        ),
                        confidence=_clamp(item.get("confidence"), 0.5),
                        attributes=dict(item.get("attributes") or {}),
                    )
                )
            except (KeyError, AttributeError, TypeError, ValueError) as exc:
                logger.debug("Skipping malformed face %r: %s", item, exc)

        return ImageAnalysis(
            provider=self.kind,
            tags=tags,
            faces=faces,
            scene=raw.get("scene"),
            confidence=_clamp(raw.get("confidence")),
            processing_ms=elapsed_ms,
        )
