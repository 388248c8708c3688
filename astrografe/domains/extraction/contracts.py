"""
Extraction Contracts - Interfaces for extraction domain.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from astrografe.adapters.openrouter.models import ChatMessage, ChatResponse

from .models import ExtractionResult


@runtime_checkable
class GenerationClient(Protocol):
    """
    Contract for the structured text generation boundary.

    Implementations raise TransientProviderError for 429/5xx and
    FatalProviderError for any other non-success status, and never retry.
    """

    async def generate(
        self,
        provider_id: str,
        messages: Sequence[ChatMessage],
        response_format: dict[str, str] | None = None,
        temperature: float | None = None,
    ) -> ChatResponse:
        """Run one completion against provider_id."""
        ...


@runtime_checkable
class ProviderSelector(Protocol):
    """
    Contract for provider health tracking and selection.

    Example:
        >>> from astrografe.domains.orchestration import ProviderPool
        >>> assert isinstance(ProviderPool(["a"]), ProviderSelector)
    """

    @property
    def size(self) -> int:
        """Number of providers."""
        ...

    @property
    def provider_ids(self) -> Sequence[str]:
        """Provider identifiers in rotation order."""
        ...

    def next_healthy(self) -> str | None:
        """Next provider in rotation that is not cooling down."""
        ...

    def record_success(self, provider_id: str) -> None:
        ...

    def record_failure(self, provider_id: str) -> None:
        ...


@runtime_checkable
class Extractor(Protocol):
    """Contract for text to structured record extraction."""

    async def extract(
        self,
        normalized_text: str,
        pool: ProviderSelector,
        timeout: float | None = None,
    ) -> ExtractionResult:
        """
        Extract a validated record from normalized text.

        Args:
            normalized_text: Output of normalize_text, possibly length-capped
            pool: Shared provider pool
            timeout: Per provider call deadline in seconds

        Returns:
            Extraction result

        Raises:
            AllProvidersUnavailableError: Every provider is cooling down
            ProviderError / PayloadValidationError: Retry budget exhausted
        """
        ...
