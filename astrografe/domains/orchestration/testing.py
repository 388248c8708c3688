"""
Test helpers for time-dependent orchestration code.
"""

from __future__ import annotations

__all__ = ["FakeClock"]


class FakeClock:
    """Manually advanced replacement for time.monotonic."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
