from __future__ import annotations

import logging
from typing import Optional

from dialogue_tutor.config import NavigationConfig
from dialogue_tutor.data_models import SectionId
from dialogue_tutor.navigation.clock import Clock
from dialogue_tutor.navigation.coalescer import GestureCoalescer
from dialogue_tutor.navigation.events import KeyEvent, TouchPoint, WheelEvent
from dialogue_tutor.session import SessionCoordinator

logger = logging.getLogger(__name__)

NEXT_KEYS = frozenset({"ArrowDown"})
PREVIOUS_KEYS = frozenset({"ArrowUp"})


class NavigationController:
    """
    Turn wheel, touch and keyboard input into single-step moves of the session.

    Wheel and touch share one `GestureCoalescer`: the first accepted event of a
    physical gesture steps once and opens the cooldown window, and everything else
    from either channel is dropped until the window closes. Arrow keys step
    immediately and ignore the window, but not while the focus is in an editable
    control or a modifier key is held. Events that originate in the sidebar never
    navigate.

    Every handler returns True when it accepted the event as a step. An accepted step
    at a boundary still counts (and still pauses autoplay) even though the index is
    clamped.
    """

    def __init__(
        self,
        session: SessionCoordinator,
        config: Optional[NavigationConfig] = None,
        clock: Optional[Clock] = None,
        coalescer: Optional[GestureCoalescer] = None,
    ):
        self.session = session
        self.config = config or NavigationConfig()
        self.coalescer = coalescer or GestureCoalescer(self.config.cooldown_ms, clock)
        self._touch_start: Optional[TouchPoint] = None

    def _step(self, direction: int, source: str) -> bool:
        before = self.session.current_index
        if direction > 0:
            self.session.advance()
        else:
            self.session.retreat()
        logger.debug("%s step accepted: %s -> %s", source, before, self.session.current_index)
        return True

    # ------------------------------------------------------------------
    # Wheel
    # ------------------------------------------------------------------

    def handle_wheel(self, event: WheelEvent) -> bool:
        if event.in_sidebar:
            return False
        if abs(event.delta_y) <= self.config.wheel_threshold:
            return False
        if not self.coalescer.try_acquire():
            return False
        return self._step(1 if event.delta_y > 0 else -1, "wheel")

    # ------------------------------------------------------------------
    # Touch
    # ------------------------------------------------------------------

    def handle_touch_start(self, point: TouchPoint) -> None:
        self._touch_start = None if point.in_sidebar else point

    def handle_touch_move(self, point: TouchPoint) -> bool:
        """
        Step once the finger has travelled far enough vertically.

        Swiping up (the finger moving towards the top of the screen) goes to the next
        turn. Mostly horizontal swipes are ignored.
        """
        start = self._touch_start
        if start is None or point.in_sidebar:
            return False
        delta_y = start.y - point.y
        delta_x = abs(start.x - point.x)
        if abs(delta_y) < self.config.touch_min_distance_px or delta_x > abs(delta_y):
            return False
        if not self.coalescer.try_acquire():
            return False
        return self._step(1 if delta_y > 0 else -1, "touch")

    def handle_touch_end(self) -> None:
        self._touch_start = None

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    def handle_key(self, event: KeyEvent) -> bool:
        if event.in_sidebar or event.target_editable or event.has_modifier:
            return False
        if event.key in NEXT_KEYS:
            return self._step(1, "keyboard")
        if event.key in PREVIOUS_KEYS:
            return self._step(-1, "keyboard")
        return False

    # ------------------------------------------------------------------
    # Buttons and menus
    # ------------------------------------------------------------------

    def next(self) -> bool:
        """Next button: only acts away from the last turn."""
        if self.session.current_index >= self.session.index.last_index:
            return False
        return self.session.advance()

    def previous(self) -> bool:
        if self.session.current_index <= 0:
            return False
        return self.session.retreat()

    def restart(self) -> bool:
        self.session.jump_to(0)
        return True

    def jump_to_turn(self, section_id: SectionId, subsection_id: SectionId, offset: int = 0) -> bool:
        """Table-of-contents jump. An unknown target leaves the session untouched."""
        target = self.session.index.locate(section_id, subsection_id, offset)
        if target is None:
            logger.debug("No turn for section %s / subsection %s (offset %s)", section_id, subsection_id, offset)
            return False
        self.session.jump_to(target)
        return True
