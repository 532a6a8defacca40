# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for provider routing, failover, health polling,
search, cache, analytics and logging settings. Cross-field rules are
checked once at load time and reported together as a ConfigurationError.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_KNOWN_PROVIDERS = ("openai", "anthropic", "google", "ollama")


class ConfigurationError(Exception):
    """Raised when configuration or provider registration is inconsistent."""

    code = "CONFIGURATION_ERROR"
    public_message = "Service is misconfigured"


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === PROVIDERS ===
    # Registration order doubles as the default failover priority.
    provider_order: str = "openai,anthropic,google,ollama"
    provider_preferred: str = "openai"
    provider_degraded_latency_ms: float = 2000.0

    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    google_api_key: str = ""
    google_model: str = "gemini-1.5-flash"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llava"
    ollama_enabled: bool = False

    # === Failover ===
    failover_attempt_timeout_s: float = 10.0
    failover_confidence_threshold: float = 0.7

    # === Health monitor ===
    health_check_interval_s: float = 60.0
    health_check_timeout_s: float = 5.0
    health_degraded_error_rate: float = 0.2
    health_min_samples: int = 5

    # === Metrics ===
    metrics_window_size: int = 100

    # === Search ===
    search_timeout_s: float = 30.0
    search_default_page_size: int = 20
    search_max_page_size: int = 100
    search_max_query_length: int = 500
    ranking_half_life_days: float = 30.0

    # === Cache ===
    cache_enabled: bool = True
    cache_backend: Literal["memory", "redis"] = "memory"
    cache_ttl_s: int = 300
    cache_redis_url: str = ""
    cache_timeout_s: float = 1.0
    cache_max_entries: int = 10_000

    # === Analytics ===
    analytics_enabled: bool = True
    analytics_file: Path | None = None

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator(
        "failover_confidence_threshold", "health_degraded_error_rate",
    )
    @classmethod
    def validate_unit_interval(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("must be within [0, 1]")
        return v

    @field_validator(
        "failover_attempt_timeout_s",
        "health_check_interval_s",
        "health_check_timeout_s",
        "search_timeout_s",
        "cache_timeout_s",
        "ranking_half_life_days",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        order = self.provider_order_list
        if not order:
            errors.append("PROVIDER_ORDER must name at least one provider")
        unknown = [p for p in order if p not in _KNOWN_PROVIDERS]
        if unknown:
            errors.append(f"PROVIDER_ORDER has unknown providers: {', '.join(unknown)}")
        if len(set(order)) != len(order):
            errors.append("PROVIDER_ORDER lists a provider twice")

        if self.provider_preferred and self.provider_preferred not in order:
            errors.append("PROVIDER_PREFERRED must appear in PROVIDER_ORDER")

        if self.health_check_timeout_s >= self.health_check_interval_s:
            errors.append(
                "HEALTH_CHECK_TIMEOUT_S must be < HEALTH_CHECK_INTERVAL_S"
            )

        if not 1 <= self.search_default_page_size <= self.search_max_page_size:
            errors.append(
                "SEARCH_DEFAULT_PAGE_SIZE must be within [1, SEARCH_MAX_PAGE_SIZE]"
            )

        if self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_BACKEND=redis requires CACHE_REDIS_URL")

        if self.cache_ttl_s <= 0:
            errors.append("CACHE_TTL_S must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def provider_order_list(self) -> list[str]:
        """Parse comma-separated provider order."""
        return [p.strip() for p in self.provider_order.split(",") if p.strip()]


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or embedding).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
