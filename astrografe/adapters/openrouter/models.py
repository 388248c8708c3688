"""
OpenRouter Models - Request/Response types for the OpenRouter API.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["system", "user", "assistant"]


class OpenRouterConfig(BaseModel):
    """Configuration for OpenRouter client."""

    api_key: str
    base_url: str = Field(default="https://openrouter.ai/api/v1")
    referer: str = Field(default="https://github.com/Imacx-maria/astrografe")
    app_title: str = Field(default="Astrografe Quote Parser")
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    timeout_seconds: float = Field(default=60.0, gt=0)

    model_config = {"frozen": True}


class ChatMessage(BaseModel):
    """Role-tagged chat message."""

    role: Role
    content: str

    model_config = {"frozen": True}


class ChatResponse(BaseModel):
    """Chat completion result."""

    content: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        """Prompt plus completion tokens."""
        return self.prompt_tokens + self.completion_tokens


class EmbeddingResponse(BaseModel):
    """Embedding result."""

    embedding: list[float]
    model: str

    @property
    def dimension(self) -> int:
        """Vector length."""
        return len(self.embedding)
