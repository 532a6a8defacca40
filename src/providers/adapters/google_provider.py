# src/providers/adapters/google_provider.py — v1
"""Google Gemini analysis provider.

Uses the google-generativeai SDK; Gemini models are natively multimodal.
"""

from __future__ import annotations

import asyncio
from typing import Any

from reelsearch.core.models import ProviderKind
from reelsearch.providers.llm_provider import LLMAnalysisProvider


class GoogleProvider(LLMAnalysisProvider):
    """Google Gemini provider."""

    provider_kind = ProviderKind.GOOGLE

    def __init__(self, model: str = "gemini-1.5-flash", api_key: str = "", **kwargs: Any):
        super().__init__(model=model, **kwargs)
        self._api_key = api_key

    def _model_for(self, system: str):
        import google.generativeai as genai

        genai.configure(api_key=self._api_key)
        return genai.GenerativeModel(self._model, system_instruction=system)

    async def _complete(self, system: str, prompt: str, max_tokens: int) -> str:
        model = self._model_for(system)
        resp = await model.generate_content_async(
            [{"role": "user", "parts": [{"text": prompt}]}],
            generation_config={
                "max_output_tokens": max_tokens,
                "temperature": 0.1,
                "response_mime_type": "application/json",
            },
        )
        return resp.text or ""

    async def _complete_vision(
        self,
        system: str,
        prompt: str,
        image: bytes,
        media_type: str,
        max_tokens: int,
    ) -> str:
        model = self._model_for(system)
        parts: list[dict[str, Any]] = [
            {"text": prompt},
            {"inline_data": {"mime_type": media_type, "data": image}},
        ]
        resp = await model.generate_content_async(
            parts,
            generation_config={
                "max_output_tokens": max_tokens,
                "response_mime_type": "application/json",
            },
        )
        return resp.text or ""

    async def _probe(self) -> None:
        import google.generativeai as genai

        genai.configure(api_key=self._api_key)
        name = self._model if self._model.startswith("models/") else f"models/{self._model}"
        # get_model is synchronous in the SDK
        await asyncio.to_thread(genai.get_model, name)
