from .autoplay import AutoplayScheduler
from .clock import Clock, ManualClock, MonotonicClock
from .coalescer import Cooldown, GestureCoalescer, Idle
from .controller import NavigationController
from .events import KeyEvent, TouchPoint, WheelEvent

__all__ = [
    "AutoplayScheduler",
    "Clock",
    "ManualClock",
    "MonotonicClock",
    "GestureCoalescer",
    "Idle",
    "Cooldown",
    "NavigationController",
    "KeyEvent",
    "TouchPoint",
    "WheelEvent",
]
