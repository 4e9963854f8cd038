from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Monotonic time source in milliseconds."""

    def now_ms(self) -> float:
        ...


class MonotonicClock:
    def now_ms(self) -> float:
        return time.monotonic() * 1000.0


class ManualClock:
    """Clock advanced explicitly; lets tests step through cooldown windows."""

    def __init__(self, start_ms: float = 0.0):
        self._now = start_ms

    def now_ms(self) -> float:
        return self._now

    def advance(self, ms: float) -> None:
        if ms < 0:
            raise ValueError("time cannot go backwards")
        self._now += ms
