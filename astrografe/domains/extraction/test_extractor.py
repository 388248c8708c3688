"""
Tests for the resilient extractor retry protocol.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from astrografe.adapters.openrouter.models import ChatResponse
from astrografe.config import (
    AllProvidersUnavailableError,
    FatalProviderError,
    InvalidPayloadError,
    MissingFieldError,
    ProviderTimeoutError,
    TransientProviderError,
)
from astrografe.domains.orchestration.models import BreakerStatus
from astrografe.domains.orchestration.pool import ProviderPool
from astrografe.domains.orchestration.testing import FakeClock

from .contracts import Extractor, ProviderSelector
from .extractor import ResilientExtractor
from .prompts import SYSTEM_PROMPT

VALID = '{"descricao": "Caixa em cartão microcanelado", "confidence": 0.9, "warnings": []}'
NOT_JSON = "Desculpe, não consigo ajudar."
NO_DESCRICAO = '{"confidence": 0.9}'


def ok(content: str = VALID, model: str = "served") -> ChatResponse:
    return ChatResponse(content=content, model=model, prompt_tokens=100, completion_tokens=20)


def transient(provider_id: str = "x", status: int = 503) -> TransientProviderError:
    return TransientProviderError(provider_id, "busy", status)


def fatal(provider_id: str = "x", status: int = 401) -> FatalProviderError:
    return FatalProviderError(provider_id, "unauthorized", status)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(100.0)


@pytest.fixture
def pool(clock: FakeClock) -> ProviderPool:
    return ProviderPool(["fast", "strong", "backup"], clock=clock)


@pytest.fixture
def client() -> AsyncMock:
    """Generation client stub; tests set side_effect per call."""
    mock = AsyncMock()
    mock.generate.return_value = ok()
    return mock


@pytest.fixture
def extractor(client: AsyncMock) -> ResilientExtractor:
    return ResilientExtractor(client)


def called_providers(client: AsyncMock) -> list[str]:
    return [c.args[0] for c in client.generate.call_args_list]


# --- Contracts ---


def test_implements_contracts(extractor: ResilientExtractor, pool: ProviderPool) -> None:
    """Test concrete classes satisfy the domain protocols."""
    assert isinstance(extractor, Extractor)
    assert isinstance(pool, ProviderSelector)


# --- Success ---


async def test_first_attempt_success(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test a valid first response is returned with the provider recorded."""
    result = await extractor.extract("Caixa em cartão", pool)

    assert result.descricao == "Caixa em cartão microcanelado"
    assert result.confidence == 0.9
    assert result.model_used == "fast"
    assert called_providers(client) == ["fast"]


async def test_request_shape(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test the call carries the system prompt, the text and a JSON hint."""
    await extractor.extract("Caixa em cartão 20 x 30 cm", pool)

    call = client.generate.call_args
    messages = call.args[1]
    assert [m.role for m in messages] == ["system", "user"]
    assert messages[0].content == SYSTEM_PROMPT
    assert "Caixa em cartão 20 x 30 cm" in messages[1].content
    assert call.kwargs["response_format"] == {"type": "json_object"}


async def test_model_used_is_requested_provider(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test model_used is the pool identifier even if another model served it."""
    client.generate.return_value = ok(model="google/gemini-flash-1.5-002")
    result = await extractor.extract("x", pool)
    assert result.model_used == "fast"


async def test_success_heals_breaker(
    extractor: ResilientExtractor, pool: ProviderPool, clock: FakeClock
) -> None:
    """Test success resets the provider's failure history."""
    pool.record_failure("fast")
    clock.advance(30)
    await extractor.extract("x", pool)
    assert pool.breaker("fast").fail_count == 0


# --- Transient failures ---


async def test_transient_failure_moves_to_next_provider(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test a 429/5xx penalizes the provider and retries on the next one."""
    client.generate.side_effect = [transient("fast", 429), ok()]

    result = await extractor.extract("x", pool)

    assert result.model_used == "strong"
    assert called_providers(client) == ["fast", "strong"]
    assert not pool.breaker("fast").is_healthy()
    assert pool.breaker("strong").is_healthy()


async def test_transient_failures_use_whole_budget(
    client: AsyncMock, clock: FakeClock
) -> None:
    """Test a two-provider pool gets three attempts when the first heals in time."""
    pool = ProviderPool(["fast", "strong"], clock=clock)
    extractor = ResilientExtractor(client)

    async def heal_then_fail(*args: object, **kwargs: object) -> ChatResponse:
        clock.advance(30)
        raise transient(str(args[0]))

    client.generate.side_effect = heal_then_fail

    with pytest.raises(TransientProviderError):
        await extractor.extract("x", pool)

    assert called_providers(client) == ["fast", "strong", "fast"]


async def test_all_transient_exhausts_pool(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test once every provider is cooling down the pool reports unavailability."""
    client.generate.side_effect = [transient("fast"), transient("strong"), transient("backup")]

    with pytest.raises(AllProvidersUnavailableError):
        await extractor.extract("x", pool)

    assert called_providers(client) == ["fast", "strong", "backup"]
    assert all(s.status == BreakerStatus.COOLING_DOWN for s in pool.snapshot())


# --- Fatal failures ---


async def test_fatal_on_first_attempt_is_retried_once(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test a fatal error on attempt one penalizes and tries the next provider."""
    client.generate.side_effect = [fatal("fast"), ok()]

    result = await extractor.extract("x", pool)

    assert result.model_used == "strong"
    assert not pool.breaker("fast").is_healthy()


async def test_fatal_after_first_attempt_propagates(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test a fatal error on a later attempt stops the chain."""
    client.generate.side_effect = [transient("fast"), fatal("strong", 400), ok()]

    with pytest.raises(FatalProviderError) as exc_info:
        await extractor.extract("x", pool)

    assert exc_info.value.status == 400
    assert called_providers(client) == ["fast", "strong"]
    assert not pool.breaker("strong").is_healthy()


async def test_two_fatal_errors_propagate(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test the single extra attempt is not renewed by a second fatal error."""
    client.generate.side_effect = [fatal("fast"), fatal("strong"), ok()]

    with pytest.raises(FatalProviderError):
        await extractor.extract("x", pool)

    assert called_providers(client) == ["fast", "strong"]


# --- Validation failures ---


async def test_invalid_payload_retried_without_penalty(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test bad JSON on attempt one retries and leaves the breaker alone."""
    client.generate.side_effect = [ok(NOT_JSON), ok()]

    result = await extractor.extract("x", pool)

    assert result.model_used == "strong"
    assert pool.breaker("fast").is_healthy()
    assert pool.breaker("fast").fail_count == 0


async def test_missing_field_twice_propagates(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test a second validation failure is surfaced."""
    client.generate.side_effect = [ok(NO_DESCRICAO), ok(NO_DESCRICAO), ok()]

    with pytest.raises(MissingFieldError):
        await extractor.extract("x", pool)

    assert called_providers(client) == ["fast", "strong"]
    assert all(s.fail_count == 0 for s in pool.snapshot())


async def test_fatal_then_invalid_payload_share_one_retry(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test fatal and validation errors share the same single extra attempt."""
    client.generate.side_effect = [fatal("fast"), ok(NOT_JSON), ok()]

    with pytest.raises(InvalidPayloadError):
        await extractor.extract("x", pool)

    assert called_providers(client) == ["fast", "strong"]


async def test_invalid_payload_after_transient_propagates(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test a validation failure on attempt two is terminal."""
    client.generate.side_effect = [transient("fast"), ok(NOT_JSON), ok()]

    with pytest.raises(InvalidPayloadError):
        await extractor.extract("x", pool)


# --- Pool exhaustion ---


async def test_no_healthy_provider_fails_before_calling(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test no network call is made when everything is cooling down."""
    for provider_id in pool.provider_ids:
        pool.record_failure(provider_id)

    with pytest.raises(AllProvidersUnavailableError) as exc_info:
        await extractor.extract("x", pool)

    assert exc_info.value.to_dict()["code"] == "PROVIDERS_UNAVAILABLE"
    assert exc_info.value.details["provider_ids"] == ["fast", "strong", "backup"]
    client.generate.assert_not_called()


async def test_unexpected_error_is_not_retried(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test errors outside the taxonomy propagate at once."""
    client.generate.side_effect = RuntimeError("bug")

    with pytest.raises(RuntimeError):
        await extractor.extract("x", pool)

    assert called_providers(client) == ["fast"]
    assert pool.breaker("fast").is_healthy()


# --- Timeouts ---


async def test_deadline_aborts_call_without_penalty(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test a call over the deadline is retried and the breaker untouched."""

    async def slow_then_fast(provider_id: str, *args: object, **kwargs: object) -> ChatResponse:
        if provider_id == "fast":
            await asyncio.sleep(10)
        return ok()

    client.generate.side_effect = slow_then_fast

    result = await extractor.extract("x", pool, timeout=0.05)

    assert result.model_used == "strong"
    assert pool.breaker("fast").is_healthy()
    assert pool.breaker("fast").fail_count == 0


async def test_client_timeout_is_not_penalized(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test a timeout reported by the client does not touch the breaker."""
    client.generate.side_effect = [ProviderTimeoutError("fast", 60.0), ok()]

    result = await extractor.extract("x", pool)

    assert result.model_used == "strong"
    assert pool.breaker("fast").fail_count == 0


async def test_timeouts_exhaust_budget(
    extractor: ResilientExtractor, client: AsyncMock, pool: ProviderPool
) -> None:
    """Test repeated timeouts use pool.size + 1 attempts then surface."""
    client.generate.side_effect = ProviderTimeoutError("any", 1.0)

    with pytest.raises(ProviderTimeoutError):
        await extractor.extract("x", pool)

    assert called_providers(client) == ["fast", "strong", "backup", "fast"]


# --- Batch ---


async def test_extract_batch_keeps_order_and_errors(
    extractor: ResilientExtractor, client: AsyncMock, clock: FakeClock
) -> None:
    """Test batch extraction returns one entry per input, errors in place."""
    pool = ProviderPool(["only"], clock=clock)

    async def by_text(provider_id: str, messages: list, **kwargs: object) -> ChatResponse:
        if "broken" in messages[1].content:
            return ok(NOT_JSON)
        return ok()

    client.generate.side_effect = by_text

    results = await extractor.extract_batch(["doc one", "broken doc", "doc three"], pool)

    assert len(results) == 3
    assert results[0].model_used == "only"  # type: ignore[union-attr]
    assert isinstance(results[1], InvalidPayloadError)
    assert results[2].model_used == "only"  # type: ignore[union-attr]
