"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    AllProvidersUnavailableError,
    AstrografeError,
    ConfigurationError,
    ErrorCode,
    FatalProviderError,
    InvalidPayloadError,
    MissingFieldError,
    PayloadValidationError,
    ProviderError,
    ProviderTimeoutError,
    TransientProviderError,
    is_transient_status,
    provider_error_for_status,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "AstrografeError",
    "ConfigurationError",
    "ProviderError",
    "TransientProviderError",
    "ProviderTimeoutError",
    "FatalProviderError",
    "AllProvidersUnavailableError",
    "PayloadValidationError",
    "InvalidPayloadError",
    "MissingFieldError",
    # Classification
    "is_transient_status",
    "provider_error_for_status",
]
