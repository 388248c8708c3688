"""
OpenRouter Adapter - Chat completion and embedding client.

This is the ONLY place that calls the generation service.
All domains depend on the GenerationClient contract instead.
"""

from .client import JSON_OBJECT, OpenRouterClient
from .models import ChatMessage, ChatResponse, EmbeddingResponse, OpenRouterConfig

__all__ = [
    "OpenRouterClient",
    "OpenRouterConfig",
    "ChatMessage",
    "ChatResponse",
    "EmbeddingResponse",
    "JSON_OBJECT",
]
