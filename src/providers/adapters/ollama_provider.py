# src/providers/adapters/ollama_provider.py — v1
"""Ollama local analysis provider.

Uses the ollama Python SDK. Vision support is model-dependent; text-only
models serve query interpretation only.
"""

from __future__ import annotations

import base64
from typing import Any

from reelsearch.core.models import ProviderKind
from reelsearch.providers.llm_provider import LLMAnalysisProvider

# Models known to support vision
_VISION_MODELS = {"llava", "bakllava", "llava-llama3", "moondream", "llama3.2-vision"}


class OllamaProvider(LLMAnalysisProvider):
    """Ollama local inference provider."""

    provider_kind = ProviderKind.OLLAMA

    def __init__(
        self, model: str = "llava", host: str = "http://localhost:11434", **kwargs: Any,
    ):
        super().__init__(model=model, **kwargs)
        self._host = host
        self.__client = None

    @property
    def _client(self):
        if self.__client is None:
            import ollama

            self.__client = ollama.AsyncClient(host=self._host)
        return self.__client

    @property
    def supports_vision(self) -> bool:
        return any(v in self._model.lower() for v in _VISION_MODELS)

    async def _complete(self, system: str, prompt: str, max_tokens: int) -> str:
        resp = await self._client.chat(
            model=self._model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            format="json",
            options={"num_predict": max_tokens, "temperature": 0.1},
        )
        return resp["message"]["content"]

    async def _complete_vision(
        self,
        system: str,
        prompt: str,
        image: bytes,
        media_type: str,
        max_tokens: int,
    ) -> str:
        resp = await self._client.chat(
            model=self._model,
            messages=[
                {"role": "system", "content": system},
                {
                    "role": "user",
                    "content": prompt,
                    "images": [base64.b64encode(image).decode()],
                },
            ],
            format="json",
            options={"num_predict": max_tokens},
        )
        return resp["message"]["content"]

    async def _probe(self) -> None:
        await self._client.list()
