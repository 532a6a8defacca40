# src/providers/adapters/anthropic_provider.py — v1
"""Anthropic Claude analysis provider.

Uses the official anthropic SDK. Images travel as base64 content blocks.
"""

from __future__ import annotations

import base64
import logging
from typing import Any

from reelsearch.core.models import ProviderKind
from reelsearch.providers.llm_provider import LLMAnalysisProvider

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMAnalysisProvider):
    """Adapter for Anthropic Claude models."""

    provider_kind = ProviderKind.ANTHROPIC

    def __init__(
        self,
        model: str = "claude-sonnet-4-20250514",
        api_key: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(model=model, **kwargs)
        self._api_key = api_key
        self.__client = None  # Lazy initialization

    @property
    def _client(self):
        """Lazy-init Anthropic client (only on first API call)."""
        if self.__client is None:
            try:
                import anthropic
            except ImportError as e:
                raise ImportError(
                    "anthropic package required: pip install anthropic"
                ) from e
            self.__client = anthropic.AsyncAnthropic(api_key=self._api_key or "")
        return self.__client

    async def _complete(self, system: str, prompt: str, max_tokens: int) -> str:
        response = await self._client.messages.create(
            model=self._model,
            max_tokens=max_tokens,
            temperature=0.1,
            system=system,
            messages=[{"role": "user", "content": prompt}],
        )
        return self._extract_text(response)

    async def _complete_vision(
        self,
        system: str,
        prompt: str,
        image: bytes,
        media_type: str,
        max_tokens: int,
    ) -> str:
        content_blocks: list[dict[str, Any]] = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": media_type,
                    "data": base64.b64encode(image).decode("ascii"),
                },
            },
            {"type": "text", "text": prompt},
        ]
        response = await self._client.messages.create(
            model=self._model,
            max_tokens=max_tokens,
            system=system,
            messages=[{"role": "user", "content": content_blocks}],
        )
        return self._extract_text(response)

    async def _probe(self) -> None:
        await self._client.models.list(limit=1)

    @staticmethod
    def _extract_text(response: Any) -> str:
        for block in response.content:
            if getattr(block, "type", None) == "text":
                return block.text
        return ""
