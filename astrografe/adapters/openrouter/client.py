"""
OpenRouter Client - Chat completions and embeddings over HTTP.

This is the only place that talks to the generation service.

Failure classification:
- 429 and 5xx raise TransientProviderError
- any other non-success status raises FatalProviderError
- transport failures raise TransientProviderError, timeouts ProviderTimeoutError
- a success body that does not fit the expected shape raises TransientProviderError

The client never retries; retry decisions belong to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from astrografe.config import (
    ProviderTimeoutError,
    TransientProviderError,
    provider_error_for_status,
)

from .models import ChatMessage, ChatResponse, EmbeddingResponse, OpenRouterConfig

logger = logging.getLogger(__name__)

__all__ = ["OpenRouterClient"]

JSON_OBJECT = {"type": "json_object"}


class OpenRouterClient:
    """
    OpenRouter API client.

    Example:
        >>> client = OpenRouterClient(OpenRouterConfig(api_key="sk-or-..."))
        >>> response = await client.generate(
        ...     "openai/gpt-4o-mini",
        ...     [ChatMessage(role="user", content="Olá")],
        ... )
        >>> print(response.content)
    """

    def __init__(
        self,
        config: OpenRouterConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize OpenRouter client.

        Args:
            config: Client configuration
            transport: Optional transport override (tests)
        """
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url.rstrip("/"),
                timeout=self.config.timeout_seconds,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Content-Type": "application/json",
                    "HTTP-Referer": self.config.referer,
                    "X-Title": self.config.app_title,
                },
            )
        return self._client

    async def generate(
        self,
        provider_id: str,
        messages: Sequence[ChatMessage],
        response_format: dict[str, str] | None = None,
        temperature: float | None = None,
    ) -> ChatResponse:
        """
        Run a chat completion.

        Args:
            provider_id: Model identifier (e.g. "openai/gpt-4o-mini")
            messages: Ordered role-tagged messages
            response_format: Optional format hint, e.g. {"type": "json_object"}
            temperature: Override configured temperature

        Returns:
            ChatResponse with generated text and serving model

        Raises:
            TransientProviderError: 429/5xx or transport failure
            ProviderTimeoutError: request timed out
            FatalProviderError: any other non-success status
        """
        payload: dict[str, Any] = {
            "model": provider_id,
            "messages": [m.model_dump() for m in messages],
            "temperature": (
                self.config.temperature if temperature is None else temperature
            ),
        }
        if response_format:
            payload["response_format"] = response_format

        data = await self._post(provider_id, "/chat/completions", payload)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise TransientProviderError(
                provider_id, f"Malformed completion envelope: {e!r}"
            ) from e

        usage = data.get("usage")
        if not isinstance(usage, dict):
            usage = {}

        try:
            return ChatResponse(
                content=content or "",
                model=data.get("model") or provider_id,
                prompt_tokens=usage.get("prompt_tokens") or 0,
                completion_tokens=usage.get("completion_tokens") or 0,
            )
        except ValidationError as e:
            raise TransientProviderError(
                provider_id, f"Malformed completion envelope: {e.error_count()} invalid field(s)"
            ) from e

    async def embed(self, provider_id: str, text: str) -> EmbeddingResponse:
        """
        Create an embedding vector.

        Args:
            provider_id: Embedding model identifier
            text: Input text

        Returns:
            EmbeddingResponse with the vector and serving model
        """
        data = await self._post(
            provider_id, "/embeddings", {"model": provider_id, "input": text}
        )

        try:
            embedding = data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise TransientProviderError(
                provider_id, f"Malformed embedding envelope: {e!r}"
            ) from e

        try:
            return EmbeddingResponse(
                embedding=embedding,
                model=data.get("model") or provider_id,
            )
        except ValidationError as e:
            raise TransientProviderError(
                provider_id, f"Malformed embedding envelope: {e.error_count()} invalid field(s)"
            ) from e

    async def _post(
        self,
        provider_id: str,
        path: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        """POST a JSON payload and return the decoded body, classifying failures."""
        client = await self._get_client()

        try:
            response = await client.post(path, json=payload)
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(provider_id, self.config.timeout_seconds) from e
        except httpx.TransportError as e:
            raise TransientProviderError(provider_id, f"Transport error: {e}") from e

        if not response.is_success:
            logger.warning(
                "OpenRouter %s failed for %s: HTTP %d",
                path,
                provider_id,
                response.status_code,
            )
            raise provider_error_for_status(
                provider_id, response.status_code, response.text
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TransientProviderError(
                provider_id, "Response body is not JSON", response.status_code
            ) from e

        if not isinstance(data, dict):
            raise TransientProviderError(
                provider_id, "Response body is not a JSON object", response.status_code
            )

        logger.debug("OpenRouter %s ok for %s", path, provider_id)
        return data

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> OpenRouterClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
