"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings."""

    # OpenRouter
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_referer: str = "https://github.com/Imacx-maria/astrografe"
    openrouter_app_title: str = "Astrografe Quote Parser"

    # Models by role, tried in this order
    model_fast: str = "google/gemini-flash-1.5"
    model_strong: str = "anthropic/claude-3-5-sonnet"
    model_backup: str = "openai/gpt-4o-mini"
    model_embedding: str = "openai/text-embedding-3-small"

    # Generation
    generation_temperature: float = 0.1
    request_timeout_seconds: float = 60.0

    # Stay within model context limits
    max_input_chars: int = 50_000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def provider_ids(self) -> list[str]:
        """Generation models in rotation order, duplicates dropped."""
        ordered = [self.model_fast, self.model_strong, self.model_backup]
        return [m for i, m in enumerate(ordered) if m and m not in ordered[:i]]

    def require_api_key(self) -> str:
        """Return the API key or fail loudly."""
        if not self.openrouter_api_key:
            raise ConfigurationError(
                "OPENROUTER_API_KEY not set",
                {"hint": "Set it in the environment or in .env"},
            )
        return self.openrouter_api_key


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
