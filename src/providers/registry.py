# src/providers/registry.py — v1
"""Provider registry: one instance per configured analysis provider.

Registration order is the default failover priority. The registry is
populated at startup and read-only afterwards.
"""

from __future__ import annotations

import logging

from reelsearch.config.settings import ConfigurationError
from reelsearch.core.models import Capability, ProviderKind
from reelsearch.providers.base_provider import BaseAnalysisProvider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Ordered registry of analysis providers keyed by kind."""

    def __init__(self) -> None:
        self._providers: dict[ProviderKind, BaseAnalysisProvider] = {}

    def register(self, provider: BaseAnalysisProvider) -> None:
        """Register a provider; its position sets its tie-break priority.

        Raises:
            ConfigurationError: If the kind is already registered.
        """
        if provider.kind in self._providers:
            raise ConfigurationError(
                f"Provider {provider.kind.value!r} is already registered"
            )
        self._providers[provider.kind] = provider
        logger.info(
            "Registered provider: %s (%s)",
            provider.kind.value,
            ", ".join(sorted(c.value for c in provider.capabilities)),
        )

    def get(self, kind: ProviderKind) -> BaseAnalysisProvider:
        """Get provider by kind.

        Raises:
            ConfigurationError: If the kind was never registered.
        """
        provider = self._providers.get(kind)
        if provider is None:
            raise ConfigurationError(f"Provider {kind.value!r} is not registered")
        return provider

    def all_kinds(self) -> list[ProviderKind]:
        """Registered kinds in registration order."""
        return list(self._providers)

    def providers_for(self, capability: Capability) -> list[BaseAnalysisProvider]:
        """Providers supporting a capability, in registration order."""
        return [p for p in self._providers.values() if p.supports(capability)]

    def __contains__(self, kind: object) -> bool:
        return kind in self._providers

    def __len__(self) -> int:
        return len(self._providers)
