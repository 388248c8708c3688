"""
Orchestration Domain - Provider health, selection and the ingestion pipeline.

This domain handles:
- Per-provider circuit breakers with exponential backoff
- Round-robin selection over healthy providers
- Normalize, extract and embed orchestration
"""

from .breaker import CircuitBreaker
from .contracts import EmbeddingClient, Ingestor
from .models import BreakerState, BreakerStatus, IngestionOutcome
from .pipeline import IngestionPipeline, build_client, build_provider_pool
from .pool import ProviderPool

__all__ = [
    # Contracts
    "EmbeddingClient",
    "Ingestor",
    # Models
    "BreakerState",
    "BreakerStatus",
    "IngestionOutcome",
    # Implementations
    "CircuitBreaker",
    "ProviderPool",
    "IngestionPipeline",
    "build_client",
    "build_provider_pool",
]
