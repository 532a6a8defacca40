# src/providers/adapters/openai_provider.py — v1
"""OpenAI analysis provider.

Uses the official openai SDK with JSON-object response format.
"""

from __future__ import annotations

import base64
from typing import Any

from reelsearch.core.models import ProviderKind
from reelsearch.providers.llm_provider import LLMAnalysisProvider


class OpenAIProvider(LLMAnalysisProvider):
    """OpenAI GPT provider."""

    provider_kind = ProviderKind.OPENAI

    def __init__(self, model: str = "gpt-4o-mini", api_key: str = "", **kwargs: Any):
        super().__init__(model=model, **kwargs)
        self._api_key = api_key
        self.__client = None

    @property
    def _client(self):
        """Lazy-init OpenAI client (only on first API call)."""
        if self.__client is None:
            import openai

            self.__client = openai.AsyncOpenAI(api_key=self._api_key)
        return self.__client

    async def _complete(self, system: str, prompt: str, max_tokens: int) -> str:
        resp = await self._client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            max_tokens=max_tokens,
            temperature=0.1,
            response_format={"type": "json_object"},
        )
        return resp.choices[0].message.content or ""

    async def _complete_vision(
        self,
        system: str,
        prompt: str,
        image: bytes,
        media_type: str,
        max_tokens: int,
    ) -> str:
        b64 = base64.b64encode(image).decode()
        resp = await self._client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": system},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:{media_type};base64,{b64}"},
                        },
                    ],
                },
            ],
            max_tokens=max_tokens,
            response_format={"type": "json_object"},
        )
        return resp.choices[0].message.content or ""

    async def _probe(self) -> None:
        await self._client.models.list()
