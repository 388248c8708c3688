"""
Adapters - External service integrations.

All external API calls are wrapped here to isolate domains from third-party changes.
"""

from .openrouter import OpenRouterClient, OpenRouterConfig

__all__ = [
    "OpenRouterClient",
    "OpenRouterConfig",
]
