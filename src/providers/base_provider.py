# src/providers/base_provider.py — v1
"""Abstract analysis provider interface.

One implementation per provider kind. The failover orchestrator and the
health monitor only ever talk to providers through this seam.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from reelsearch.core.models import AnalysisResult, Capability, ProviderKind, ProviderStatus


class BaseAnalysisProvider(ABC):
    """Unified interface for all external analysis providers."""

    @property
    @abstractmethod
    def kind(self) -> ProviderKind:
        """Provider identity."""

    @property
    @abstractmethod
    def capabilities(self) -> frozenset[Capability]:
        """Operations this provider can serve."""

    @abstractmethod
    async def analyze(
        self,
        payload: bytes | str,
        capability: Capability,
        params: dict[str, Any] | None = None,
    ) -> AnalysisResult:
        """Run one capability on a binary image or free-text query."""

    @abstractmethod
    async def get_status(self) -> ProviderStatus:
        """Lightweight status probe. Raises on transport failure."""

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r})"
