from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from dialogue_tutor.navigation.clock import Clock, MonotonicClock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Cooldown:
    expires_at_ms: float


CoalescerState = Union[Idle, Cooldown]


class GestureCoalescer:
    """
    Collapse a burst of wheel or touch events into one logical step.

    The coalescer is either `Idle` or in `Cooldown(expires_at_ms)`. `try_acquire`
    succeeds only when idle (or when the cooldown has expired by the clock), and
    moves it into a fresh cooldown; events arriving during the cooldown are dropped.
    Time comes from an injected clock, so the window can be exercised without sleeping.
    """

    def __init__(self, cooldown_ms: float = 300.0, clock: Optional[Clock] = None):
        if cooldown_ms < 0:
            raise ValueError("cooldown_ms must be non-negative")
        self.cooldown_ms = cooldown_ms
        self.clock = clock or MonotonicClock()
        self._state: CoalescerState = Idle()

    @property
    def state(self) -> CoalescerState:
        if isinstance(self._state, Cooldown) and self.clock.now_ms() >= self._state.expires_at_ms:
            self._state = Idle()
        return self._state

    def is_cooling_down(self) -> bool:
        return isinstance(self.state, Cooldown)

    def try_acquire(self) -> bool:
        if self.is_cooling_down():
            logger.debug("Gesture dropped during cooldown")
            return False
        self._state = Cooldown(self.clock.now_ms() + self.cooldown_ms)
        return True

    def reset(self) -> None:
        self._state = Idle()
