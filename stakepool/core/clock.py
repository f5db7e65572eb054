"""Millisecond clock sources."""
import time
from typing import Protocol


class Clock(Protocol):
    def now_ms(self) -> int:
        ...


class SystemClock:
    """Wall clock in milliseconds since the epoch."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)


class ManualClock:
    """Clock that only moves when told to. Used for simulations and tests."""

    def __init__(self, start_ms: int = 0):
        self._now = start_ms

    def now_ms(self) -> int:
        return self._now

    def set(self, timestamp_ms: int) -> None:
        if timestamp_ms < self._now:
            raise ValueError(f"Clock cannot move backwards ({timestamp_ms} < {self._now})")
        self._now = timestamp_ms

    def advance(self, ms: int) -> None:
        self.set(self._now + ms)
