"""
Orchestration Contracts - Interfaces for orchestration domain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from astrografe.adapters.openrouter.models import EmbeddingResponse

from .models import IngestionOutcome


@runtime_checkable
class EmbeddingClient(Protocol):
    """Contract for embedding generation."""

    async def embed(self, provider_id: str, text: str) -> EmbeddingResponse:
        """
        Embed text with the given model.

        Args:
            provider_id: Embedding model identifier
            text: Input text

        Returns:
            Vector plus serving model
        """
        ...


@runtime_checkable
class Ingestor(Protocol):
    """Contract for the raw-text to structured-record pipeline."""

    async def ingest(
        self,
        raw_text: str,
        timeout: float | None = None,
    ) -> IngestionOutcome:
        """
        Normalize, extract and embed one document.

        Args:
            raw_text: Decoded document text
            timeout: Per provider call deadline in seconds

        Returns:
            Extraction result plus optional embedding
        """
        ...
