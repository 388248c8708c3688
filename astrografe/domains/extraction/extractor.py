"""
Resilient Extractor - Validated extraction across a pool of providers.

One document is a strictly sequential chain of attempts, at most
pool.size + 1 of them:

- transient provider failure: breaker penalized, next provider
- fatal provider failure: breaker penalized, retried only after the first attempt
- invalid payload: breaker untouched, retried only after the first attempt
- timeout: breaker untouched, retried like a transient failure
- no healthy provider: AllProvidersUnavailableError right away
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from tenacity import AsyncRetrying, RetryCallState, before_sleep_log, stop_after_attempt

from astrografe.adapters.openrouter.client import JSON_OBJECT
from astrografe.config import (
    AllProvidersUnavailableError,
    AstrografeError,
    FatalProviderError,
    PayloadValidationError,
    ProviderError,
    ProviderTimeoutError,
    TransientProviderError,
)

from .contracts import GenerationClient, ProviderSelector
from .models import ExtractionResult
from .parser import parse_extraction_response
from .prompts import build_messages

logger = logging.getLogger(__name__)

__all__ = ["ResilientExtractor", "should_retry"]


def should_retry(retry_state: RetryCallState) -> bool:
    """
    Decide whether a failed attempt gets another one.

    Fatal provider errors and payload errors share a single extra attempt:
    they are only retried when they happen on the first attempt.
    """
    outcome = retry_state.outcome
    if outcome is None or not outcome.failed:
        return False

    error = outcome.exception()
    if isinstance(error, TransientProviderError):
        return True
    if isinstance(error, (FatalProviderError, PayloadValidationError)):
        return retry_state.attempt_number == 1
    return False


class ResilientExtractor:
    """
    Extractor that rotates through a provider pool.

    Example:
        >>> client = OpenRouterClient(OpenRouterConfig(api_key="sk-or-..."))
        >>> pool = ProviderPool(["google/gemini-flash-1.5", "openai/gpt-4o-mini"])
        >>> extractor = ResilientExtractor(client)
        >>> result = await extractor.extract(normalize_text(raw), pool)
        >>> print(result.descricao, result.model_used)
    """

    def __init__(
        self,
        client: GenerationClient,
        temperature: float | None = None,
    ) -> None:
        """
        Initialize extractor.

        Args:
            client: Generation client (classifies failures, never retries)
            temperature: Override client temperature
        """
        self._client = client
        self._temperature = temperature

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
            pool: Process-wide provider pool
            timeout: Per provider call deadline in seconds

        Returns:
            Extraction result with model_used set to the serving provider id

        Raises:
            AllProvidersUnavailableError: Every provider is cooling down
            ProviderError: Provider failures exhausted the retry budget
            PayloadValidationError: Generated content stayed unusable
        """
        max_attempts = pool.size + 1
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            retry=should_retry,
            before_sleep=before_sleep_log(logger, logging.INFO),
            reraise=True,
        )
        return await retrying(self._attempt, normalized_text, pool, timeout)

    async def _attempt(
        self,
        normalized_text: str,
        pool: ProviderSelector,
        timeout: float | None,
    ) -> ExtractionResult:
        """Run one provider call and validate its output."""
        provider_id = pool.next_healthy()
        if provider_id is None:
            raise AllProvidersUnavailableError(list(pool.provider_ids))

        logger.info("Extracting with %s (%d chars)", provider_id, len(normalized_text))

        try:
            response = await asyncio.wait_for(
                self._client.generate(
                    provider_id,
                    build_messages(normalized_text),
                    response_format=JSON_OBJECT,
                    temperature=self._temperature,
                ),
                timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning("%s timed out after %.1fs", provider_id, timeout or 0.0)
            raise ProviderTimeoutError(provider_id, timeout) from e
        except ProviderTimeoutError:
            logger.warning("%s timed out", provider_id)
            raise
        except ProviderError as e:
            pool.record_failure(provider_id)
            logger.warning("%s failed: %s", provider_id, e.message)
            raise

        if response.model and response.model != provider_id:
            logger.debug("%s was served by %s", provider_id, response.model)

        try:
            result = parse_extraction_response(response.content, model_used=provider_id)
        except PayloadValidationError as e:
            logger.warning("%s returned an unusable payload: %s", provider_id, e.message)
            raise

        pool.record_success(provider_id)
        logger.info(
            "Extraction complete via %s: confidence=%.2f, %d line item(s), %d warning(s)",
            provider_id,
            result.confidence,
            result.line_item_count,
            len(result.warnings),
        )
        return result

    async def extract_batch(
        self,
        texts: Sequence[str],
        pool: ProviderSelector,
        max_concurrent: int = 5,
        timeout: float | None = None,
    ) -> list[ExtractionResult | AstrografeError]:
        """
        Extract several documents concurrently against one shared pool.

        Each document still runs its own sequential attempt chain.

        Args:
            texts: Normalized document texts
            pool: Shared provider pool
            max_concurrent: Maximum documents in flight
            timeout: Per provider call deadline in seconds

        Returns:
            One entry per input, in order: the result or the classified error
        """
        semaphore = asyncio.Semaphore(max_concurrent)

        async def extract_with_limit(text: str) -> ExtractionResult:
            async with semaphore:
                return await self.extract(text, pool, timeout)

        outcomes = await asyncio.gather(
            *(extract_with_limit(text) for text in texts),
            return_exceptions=True,
        )

        results: list[ExtractionResult | AstrografeError] = []
        for index, outcome in enumerate(outcomes):
            if isinstance(outcome, AstrografeError):
                logger.error("Failed to extract document %d: %s", index, outcome)
                results.append(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)
        return results
