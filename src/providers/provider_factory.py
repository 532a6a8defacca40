# src/providers/provider_factory.py — v1
"""Factory: instantiate analysis providers from settings.

Adapters are imported lazily, so an SDK is only needed for providers that
are actually configured.
"""

from __future__ import annotations

import importlib
import logging

from reelsearch.config.settings import ConfigurationError, Settings
from reelsearch.core.models import ProviderKind
from reelsearch.providers.base_provider import BaseAnalysisProvider
from reelsearch.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)

# Registry of provider kind → adapter class path (lazy import).
_PROVIDER_CLASSES: dict[str, str] = {
    "openai": "reelsearch.providers.adapters.openai_provider.OpenAIProvider",
    "anthropic": "reelsearch.providers.adapters.anthropic_provider.AnthropicProvider",
    "google": "reelsearch.providers.adapters.google_provider.GoogleProvider",
    "ollama": "reelsearch.providers.adapters.ollama_provider.OllamaProvider",
}


def create_provider(kind: ProviderKind | str, settings: Settings) -> BaseAnalysisProvider:
    """Instantiate the adapter for one provider kind.

    Raises:
        ConfigurationError: If no adapter class is registered for the kind.
    """
    name = kind.value if isinstance(kind, ProviderKind) else kind
    class_path = _PROVIDER_CLASSES.get(name)
    if class_path is None:
        raise ConfigurationError(
            f"Unsupported provider: {name!r}. "
            f"Available: {', '.join(sorted(_PROVIDER_CLASSES))}"
        )

    init_kwargs: dict[str, object] = {
        "degraded_latency_ms": settings.provider_degraded_latency_ms,
    }
    if name == "openai":
        init_kwargs.update(model=settings.openai_model, api_key=settings.openai_api_key)
    elif name == "anthropic":
        init_kwargs.update(model=settings.anthropic_model, api_key=settings.anthropic_api_key)
    elif name == "google":
        init_kwargs.update(model=settings.google_model, api_key=settings.google_api_key)
    elif name == "ollama":
        init_kwargs.update(model=settings.ollama_model, host=settings.ollama_base_url)

    logger.debug("Creating provider: %s", name)
    return _import_class(class_path)(**init_kwargs)


def register_provider_class(name: str, class_path: str) -> None:
    """Register (or override) the adapter class used for a provider kind."""
    _PROVIDER_CLASSES[name] = class_path
    logger.info("Registered provider class: %s → %s", name, class_path)


def is_configured(kind: ProviderKind, settings: Settings) -> bool:
    """Whether settings carry what the provider needs to be usable."""
    if kind is ProviderKind.OPENAI:
        return bool(settings.openai_api_key)
    if kind is ProviderKind.ANTHROPIC:
        return bool(settings.anthropic_api_key)
    if kind is ProviderKind.GOOGLE:
        return bool(settings.google_api_key)
    return settings.ollama_enabled


def build_registry(settings: Settings) -> ProviderRegistry:
    """Register every configured provider in ``provider_order``.

    Providers without credentials (or Ollama when disabled) are skipped.
    """
    registry = ProviderRegistry()
    for name in settings.provider_order_list:
        kind = ProviderKind(name)
        if not is_configured(kind, settings):
            logger.info("Skipping provider %s: not configured", name)
            continue
        registry.register(create_provider(kind, settings))
    if not len(registry):
        logger.warning("No analysis providers configured")
    return registry


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
