"""
Ingestion Pipeline - Raw document text to extraction result.

Steps:
1. normalize and cap the text
2. extract through the shared provider pool
3. embed the extracted description (best effort)

Persistence stays with the caller.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from astrografe.adapters.openrouter import OpenRouterClient, OpenRouterConfig
from astrografe.config import ProviderError
from astrografe.domains.extraction import ExtractionRequest, ResilientExtractor

from .models import IngestionOutcome
from .pool import ProviderPool

if TYPE_CHECKING:
    from astrografe.config import Settings
    from astrografe.domains.extraction import Extractor

    from .contracts import EmbeddingClient

logger = logging.getLogger(__name__)

__all__ = ["IngestionPipeline", "build_client", "build_provider_pool"]


def build_provider_pool(settings: Settings) -> ProviderPool:
    """Create the process-wide pool from the configured models."""
    return ProviderPool(settings.provider_ids)


def build_client(settings: Settings) -> OpenRouterClient:
    """Create an OpenRouter client from settings."""
    return OpenRouterClient(
        OpenRouterConfig(
            api_key=settings.require_api_key(),
            base_url=settings.openrouter_base_url,
            referer=settings.openrouter_referer,
            app_title=settings.openrouter_app_title,
            temperature=settings.generation_temperature,
            timeout_seconds=settings.request_timeout_seconds,
        )
    )


class IngestionPipeline:
    """
    Main ingestion pipeline.

    Example:
        >>> settings = get_settings()
        >>> pool = build_provider_pool(settings)  # once per process
        >>> pipeline = IngestionPipeline.from_settings(settings, pool)
        >>> outcome = await pipeline.ingest(raw_text)
        >>> save(outcome.result, outcome.embedding)
    """

    def __init__(
        self,
        extractor: Extractor,
        pool: ProviderPool,
        embedder: EmbeddingClient | None = None,
        embedding_model: str | None = None,
        max_input_chars: int | None = 50_000,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            extractor: Extractor to run against the pool
            pool: Shared provider pool, never recreated here
            embedder: Optional embedding client; None skips embedding
            embedding_model: Model used for the embedding step
            max_input_chars: Cap on normalized text sent to the model
        """
        self._extractor = extractor
        self._pool = pool
        self._embedder = embedder
        self._embedding_model = embedding_model
        self._max_input_chars = max_input_chars

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        pool: ProviderPool,
        client: OpenRouterClient | None = None,
        embed: bool = True,
    ) -> IngestionPipeline:
        """Wire an OpenRouter-backed pipeline around an existing pool."""
        client = client or build_client(settings)
        return cls(
            extractor=ResilientExtractor(client),
            pool=pool,
            embedder=client if embed else None,
            embedding_model=settings.model_embedding,
            max_input_chars=settings.max_input_chars,
        )

    @property
    def pool(self) -> ProviderPool:
        return self._pool

    async def ingest(
        self,
        raw_text: str,
        timeout: float | None = None,
    ) -> IngestionOutcome:
        """
        Run one document through the pipeline.

        Args:
            raw_text: Decoded document text
            timeout: Per provider call deadline in seconds

        Returns:
            Extraction result plus the embedding when it could be produced

        Raises:
            AstrografeError: Extraction failed (embedding failures never raise)
        """
        start_time = time.time()

        request = ExtractionRequest.from_raw(raw_text, self._max_input_chars)
        if request.truncated:
            logger.info(
                "Input capped at %d of %d normalized chars",
                len(request.text),
                request.original_chars,
            )

        result = await self._extractor.extract(request.text, self._pool, timeout)

        embedding: list[float] | None = None
        embedding_model: str | None = None
        if self._embedder is not None and self._embedding_model:
            try:
                response = await self._embedder.embed(self._embedding_model, result.descricao)
                embedding = response.embedding
                embedding_model = response.model
            except ProviderError as e:
                logger.warning("Embedding skipped: %s", e.message)

        outcome = IngestionOutcome(
            result=result,
            embedding=embedding,
            embedding_model=embedding_model,
            input_chars=len(request.text),
            truncated=request.truncated,
            processing_seconds=time.time() - start_time,
        )
        logger.info(
            "Ingested document via %s in %.1fs (embedding: %s)",
            result.model_used,
            outcome.processing_seconds,
            "yes" if outcome.has_embedding else "no",
        )
        return outcome
