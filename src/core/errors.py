# src/core/errors.py — v1
"""Error taxonomy surfaced at the search / analysis boundary.

Every error carries a stable ``code`` and a generic ``public_message``.
The API facade only ever exposes those two, never provider identities or
raw upstream messages.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from reelsearch.config.settings import ConfigurationError
from reelsearch.core.models import AttemptStatus

if TYPE_CHECKING:
    from reelsearch.core.models import Capability


class ReelSearchError(Exception):
    """Base class for all taxonomy errors."""

    code = "INTERNAL_ERROR"
    public_message = "Internal error"


class ValidationError(ReelSearchError):
    """Malformed input, rejected before any I/O."""

    code = "VALIDATION_ERROR"
    public_message = "Invalid search request"

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        self.fields = fields or []
        super().__init__(message)


class CapabilityUnsupportedError(ReelSearchError):
    """No provider is registered for the requested capability."""

    code = "CAPABILITY_UNSUPPORTED"
    public_message = "Requested analysis is not supported"

    def __init__(self, capability: Capability) -> None:
        self.capability = capability
        super().__init__(f"No provider registered for capability {capability.value!r}")


class ProviderExhaustedError(ReelSearchError):
    """Every attempted provider failed or returned sub-threshold confidence."""

    code = "PROVIDER_EXHAUSTED"
    public_message = "Analysis providers are currently unable to serve the request"

    def __init__(
        self,
        capability: Capability,
        attempts: list[Any],
        last_error: BaseException | None,
    ) -> None:
        self.capability = capability
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"All {len(attempts)} provider attempts failed for "
            f"{capability.value!r}: {last_error}"
        )


class ServiceUnavailableError(ReelSearchError):
    """Overall deadline exceeded or the content lookup failed."""

    code = "SERVICE_UNAVAILABLE"
    public_message = "Service temporarily unavailable"


class BelowThresholdError(Exception):
    """Interpretation confidence below the acceptance threshold.

    Internal to the failover sequence; recorded on the attempt outcome and
    surfaced only as ``ProviderExhaustedError.last_error``.
    """

    def __init__(self, confidence: float, threshold: float) -> None:
        self.confidence = confidence
        self.threshold = threshold
        super().__init__(f"confidence {confidence:.2f} below threshold {threshold:.2f}")



def classify_failure(error: BaseException) -> AttemptStatus:
    """Distinguish timeouts (expected) from hard transport / provider errors.

    SDK-specific timeouts (e.g. ``APITimeoutError``) are matched by type name.
    """
    if isinstance(error, asyncio.TimeoutError):
        return AttemptStatus.TIMEOUT
    if "timeout" in type(error).__name__.lower():
        return AttemptStatus.TIMEOUT
    return AttemptStatus.ERROR

TAXONOMY: tuple[type[Exception], ...] = (
    ValidationError,
    CapabilityUnsupportedError,
    ProviderExhaustedError,
    ServiceUnavailableError,
    ConfigurationError,
)

__all__ = [
    "BelowThresholdError",
    "CapabilityUnsupportedError",
    "ConfigurationError",
    "ProviderExhaustedError",
    "ReelSearchError",
    "ServiceUnavailableError",
    "TAXONOMY",
    "ValidationError",
    "classify_failure",
]
