from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from dialogue_tutor.learning.models import SessionState
from dialogue_tutor.session import SessionCoordinator

logger = logging.getLogger(__name__)


class AutoplayScheduler:
    """
    Drive `SessionCoordinator.autoplay_tick` from the asyncio event loop.

    The scheduler keeps at most one pending timer. It follows the session through
    state notifications: switching autoplay on arms a timer for the current speed,
    switching it off (manually, by the pause toggle, or at the last turn) cancels it,
    and a speed change while active replaces the pending timer with one for the new
    interval, counted from the moment of the change.

    Must be started from inside a running event loop.

    Examples
    --------
    >>> async def play():
    ...     scheduler = AutoplayScheduler(session)
    ...     scheduler.start()
    ...     session.set_autoplay(True)
    ...     await scheduler.wait_until_stopped()
    ...     scheduler.stop()
    """

    def __init__(self, session: SessionCoordinator):
        self.session = session
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._scheduled_speed_ms: Optional[int] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._stopped: Optional[asyncio.Event] = None

    @property
    def is_pending(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._unsubscribe is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._stopped = asyncio.Event()
        self._unsubscribe = self.session.subscribe(self._on_state)
        self._on_state(self.session.state)

    def stop(self) -> None:
        self._cancel()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._stopped is not None:
            self._stopped.set()

    async def wait_until_stopped(self) -> None:
        """Return once autoplay is off (or the scheduler was stopped)."""
        if self._stopped is None:
            raise RuntimeError("AutoplayScheduler.start() has not been called")
        if not self.session.is_autoplay:
            return
        await self._stopped.wait()

    def _on_state(self, state: SessionState) -> None:
        if not state.is_autoplay:
            if self._handle is not None:
                logger.info("Autoplay timer cancelled at message %s", state.current_index)
            self._cancel()
            if self._stopped is not None:
                self._stopped.set()
            return
        if self._stopped is not None:
            self._stopped.clear()
        if self._handle is None:
            self._schedule(state.autoplay_speed_ms)
        elif state.autoplay_speed_ms != self._scheduled_speed_ms:
            logger.info("Autoplay rescheduled for %s ms", state.autoplay_speed_ms)
            self._cancel()
            self._schedule(state.autoplay_speed_ms)

    def _schedule(self, speed_ms: int) -> None:
        if self._loop is None:
            raise RuntimeError("AutoplayScheduler.start() has not been called")
        self._scheduled_speed_ms = speed_ms
        self._handle = self._loop.call_later(speed_ms / 1000.0, self._fire)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._scheduled_speed_ms = None

    def _fire(self) -> None:
        self._handle = None
        self._scheduled_speed_ms = None
        self.session.autoplay_tick()
        if self.session.is_autoplay and self._handle is None:
            self._schedule(self.session.autoplay_speed_ms)
