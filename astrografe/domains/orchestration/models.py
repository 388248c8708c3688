"""
Orchestration Models - Data types for orchestration domain.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from astrografe.domains.extraction.models import ExtractionResult


class BreakerStatus(str, Enum):
    """Circuit breaker states."""

    HEALTHY = "healthy"
    COOLING_DOWN = "cooling_down"


class BreakerState(BaseModel):
    """Point-in-time view of one provider's breaker."""

    provider_id: str
    fail_count: int = Field(default=0, ge=0)
    cooldown_until: float = 0.0  # monotonic clock instant, 0 = never
    status: BreakerStatus = BreakerStatus.HEALTHY
    remaining_seconds: float = 0.0

    model_config = {"frozen": True}


class IngestionOutcome(BaseModel):
    """Result of running one document through the ingestion pipeline."""

    result: ExtractionResult
    embedding: list[float] | None = None
    embedding_model: str | None = None
    input_chars: int = 0
    truncated: bool = False
    processing_seconds: float = 0.0

    @property
    def has_embedding(self) -> bool:
        """Whether the best-effort embedding step succeeded."""
        return self.embedding is not None
