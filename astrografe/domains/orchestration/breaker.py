"""
Circuit Breaker - Per-provider health with exponential-backoff cooldown.

A failure puts the provider in cooldown for 30s * 2^(failures-1), capped at
10 minutes. A success clears the history. Recovery is time based: once the
cooldown has elapsed the provider is healthy again without any call.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from .models import BreakerState, BreakerStatus

logger = logging.getLogger(__name__)

__all__ = ["CircuitBreaker", "BASE_COOLDOWN_SECONDS", "MAX_COOLDOWN_SECONDS"]

BASE_COOLDOWN_SECONDS = 30.0
MAX_COOLDOWN_SECONDS = 600.0

Clock = Callable[[], float]


def cooldown_for(fail_count: int) -> float:
    """Cooldown length after the given number of consecutive failures."""
    if fail_count <= 0:
        return 0.0
    # Exponent is bounded so huge failure counts don't overflow the float
    exponent = min(fail_count - 1, 32)
    return min(BASE_COOLDOWN_SECONDS * 2**exponent, MAX_COOLDOWN_SECONDS)


class CircuitBreaker:
    """
    Health tracker for a single provider.

    Example:
        >>> breaker = CircuitBreaker("openai/gpt-4o-mini")
        >>> breaker.record_failure()
        >>> breaker.is_healthy()
        False
    """

    def __init__(self, provider_id: str, clock: Clock = time.monotonic) -> None:
        """
        Initialize breaker.

        Args:
            provider_id: Provider this breaker guards
            clock: Seconds source, monotonic by default
        """
        self.provider_id = provider_id
        self._clock = clock
        self._lock = threading.Lock()
        self._fail_count = 0
        self._cooldown_until = 0.0

    @property
    def fail_count(self) -> int:
        return self._fail_count

    @property
    def cooldown_until(self) -> float:
        return self._cooldown_until

    def is_healthy(self) -> bool:
        """True once the current cooldown (if any) has elapsed."""
        with self._lock:
            return self._clock() >= self._cooldown_until

    def record_success(self) -> None:
        """Clear failure history and return to healthy immediately."""
        with self._lock:
            if self._fail_count:
                logger.info(
                    "Provider %s recovered after %d failure(s)",
                    self.provider_id,
                    self._fail_count,
                )
            self._fail_count = 0
            self._cooldown_until = 0.0

    def record_failure(self) -> None:
        """Count a failure and start (or extend) the cooldown."""
        with self._lock:
            self._fail_count += 1
            cooldown = cooldown_for(self._fail_count)
            self._cooldown_until = max(self._cooldown_until, self._clock() + cooldown)
            logger.warning(
                "Provider %s failed (%d in a row), cooling down for %.0fs",
                self.provider_id,
                self._fail_count,
                cooldown,
            )

    def state(self) -> BreakerState:
        """Snapshot of the breaker."""
        with self._lock:
            remaining = max(0.0, self._cooldown_until - self._clock())
            return BreakerState(
                provider_id=self.provider_id,
                fail_count=self._fail_count,
                cooldown_until=self._cooldown_until,
                status=BreakerStatus.COOLING_DOWN if remaining > 0 else BreakerStatus.HEALTHY,
                remaining_seconds=remaining,
            )
