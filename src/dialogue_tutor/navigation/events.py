from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WheelEvent:
    """One wheel tick; positive `delta_y` scrolls down (towards the next turn)."""

    delta_y: float
    in_sidebar: bool = False


@dataclass(frozen=True)
class TouchPoint:
    x: float
    y: float
    in_sidebar: bool = False


@dataclass(frozen=True)
class KeyEvent:
    key: str
    ctrl: bool = False
    meta: bool = False
    alt: bool = False
    shift: bool = False
    target_editable: bool = False
    in_sidebar: bool = False

    @property
    def has_modifier(self) -> bool:
        return self.ctrl or self.meta or self.alt or self.shift
