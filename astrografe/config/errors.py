"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from astrografe.config.errors import ErrorCode, AstrografeError

    raise AstrografeError(ErrorCode.CONFIG_INVALID, "OPENROUTER_API_KEY not set")

Provider failures are split by how the extraction loop must react to them:

- TransientProviderError: 429/5xx or transport failure, retried on another provider
- ProviderTimeoutError: call aborted by the caller's deadline, retried, breaker untouched
- FatalProviderError: any other non-success status, retried once at most
- PayloadValidationError: well-formed response with unusable content
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Extraction errors
    EXTRACTION_INVALID_PAYLOAD = "EXTRACTION_INVALID_PAYLOAD"
    EXTRACTION_MISSING_FIELD = "EXTRACTION_MISSING_FIELD"

    # Provider errors
    PROVIDER_TRANSIENT = "PROVIDER_TRANSIENT"
    PROVIDER_TIMEOUT = "PROVIDER_TIMEOUT"
    PROVIDER_FATAL = "PROVIDER_FATAL"
    PROVIDERS_UNAVAILABLE = "PROVIDERS_UNAVAILABLE"

    # Configuration errors
    CONFIG_INVALID = "CONFIG_INVALID"


class AstrografeError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(AstrografeError):
    """Missing or inconsistent configuration."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.CONFIG_INVALID, message, details)


# --- Provider errors ---


class ProviderError(AstrografeError):
    """Failure reported by a generation/embedding provider."""

    def __init__(
        self,
        code: ErrorCode,
        provider_id: str,
        message: str,
        status: int | None = None,
        body: str = "",
    ) -> None:
        self.provider_id = provider_id
        self.status = status
        self.body = body
        details: dict[str, Any] = {"provider_id": provider_id}
        if status is not None:
            details["status"] = status
        super().__init__(code, message, details)

    @property
    def is_transient(self) -> bool:
        """Whether the failure may clear up on another provider or later."""
        return False


class TransientProviderError(ProviderError):
    """Rate limit, server-side or transport failure."""

    def __init__(
        self,
        provider_id: str,
        message: str,
        status: int | None = None,
        body: str = "",
        code: ErrorCode = ErrorCode.PROVIDER_TRANSIENT,
    ) -> None:
        super().__init__(code, provider_id, message, status, body)

    @property
    def is_transient(self) -> bool:
        return True


class ProviderTimeoutError(TransientProviderError):
    """Provider call aborted by the caller's deadline."""

    def __init__(self, provider_id: str, timeout: float | None = None) -> None:
        self.timeout = timeout
        message = f"{provider_id} did not answer"
        if timeout is not None:
            message += f" within {timeout:.1f}s"
        super().__init__(provider_id, message, code=ErrorCode.PROVIDER_TIMEOUT)


class FatalProviderError(ProviderError):
    """Configuration, auth or bad-request class failure."""

    def __init__(
        self,
        provider_id: str,
        message: str,
        status: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(ErrorCode.PROVIDER_FATAL, provider_id, message, status, body)


class AllProvidersUnavailableError(AstrografeError):
    """Every provider in the pool is cooling down."""

    def __init__(self, provider_ids: list[str] | None = None) -> None:
        super().__init__(
            ErrorCode.PROVIDERS_UNAVAILABLE,
            "All models are in cooldown. Try again later.",
            {"provider_ids": list(provider_ids or [])},
        )


# --- Extraction payload errors ---


class PayloadValidationError(AstrografeError):
    """Generated content could not be turned into a result."""


class InvalidPayloadError(PayloadValidationError):
    """Generated text is not a JSON object."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EXTRACTION_INVALID_PAYLOAD, message, details)


class MissingFieldError(PayloadValidationError):
    """A required field is absent or empty in the generated object."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(
            ErrorCode.EXTRACTION_MISSING_FIELD,
            f"missing {field} in LLM response",
            {"field": field},
        )


def is_transient_status(status: int) -> bool:
    """HTTP 429 and 5xx are worth retrying elsewhere; everything else is not."""
    return status == 429 or status >= 500


def provider_error_for_status(
    provider_id: str,
    status: int,
    body: str = "",
) -> ProviderError:
    """Build the classified error for a non-success HTTP status."""
    message = f"OpenRouter error {status}: {body[:200]}"
    if is_transient_status(status):
        return TransientProviderError(provider_id, message, status, body)
    return FatalProviderError(provider_id, message, status, body)
