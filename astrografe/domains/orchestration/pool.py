"""
Provider Pool - Round-robin selection over circuit-broken providers.

Built once per process from the configured model list and shared by every
extraction. Selection scans from the cursor, skips providers in cooldown and
moves the cursor past whatever it hands out.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable

from .breaker import CircuitBreaker, Clock
from .models import BreakerState

logger = logging.getLogger(__name__)

__all__ = ["ProviderPool"]


class ProviderPool:
    """
    Fixed, ordered set of providers with one breaker each.

    Example:
        >>> pool = ProviderPool(["fast", "strong", "backup"])
        >>> [pool.next_healthy() for _ in range(4)]
        ['fast', 'strong', 'backup', 'fast']
    """

    def __init__(self, provider_ids: Iterable[str], clock: Clock = time.monotonic) -> None:
        """
        Initialize pool.

        Args:
            provider_ids: Provider identifiers in rotation order
            clock: Seconds source shared by all breakers

        Raises:
            ValueError: Empty list or duplicate identifiers
        """
        ids = list(provider_ids)
        if not ids:
            raise ValueError("ProviderPool needs at least one provider")
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate provider identifiers: {ids}")

        self._providers = tuple(ids)
        self._breakers = {pid: CircuitBreaker(pid, clock) for pid in ids}
        self._cursor = 0
        self._cursor_lock = threading.Lock()

    @property
    def size(self) -> int:
        """Number of providers."""
        return len(self._providers)

    @property
    def provider_ids(self) -> tuple[str, ...]:
        return self._providers

    def __len__(self) -> int:
        return self.size

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._breakers

    def next_healthy(self) -> str | None:
        """
        Pick the next healthy provider in rotation.

        Returns:
            Provider identifier, or None when every provider is cooling down
        """
        with self._cursor_lock:
            count = len(self._providers)
            for offset in range(count):
                index = (self._cursor + offset) % count
                provider_id = self._providers[index]
                if self._breakers[provider_id].is_healthy():
                    self._cursor = (index + 1) % count
                    return provider_id

        logger.warning("No healthy provider among %d", len(self._providers))
        return None

    def record_success(self, provider_id: str) -> None:
        """Report a successful call; unknown identifiers are ignored."""
        breaker = self._breakers.get(provider_id)
        if breaker is not None:
            breaker.record_success()

    def record_failure(self, provider_id: str) -> None:
        """Report a failed call; unknown identifiers are ignored."""
        breaker = self._breakers.get(provider_id)
        if breaker is not None:
            breaker.record_failure()

    def breaker(self, provider_id: str) -> CircuitBreaker:
        """
        Breaker guarding provider_id, for diagnostics alongside snapshot().

        Raises:
            KeyError: provider_id is not in the pool
        """
        return self._breakers[provider_id]

    def snapshot(self) -> list[BreakerState]:
        """Breaker states in rotation order."""
        return [self._breakers[pid].state() for pid in self._providers]
