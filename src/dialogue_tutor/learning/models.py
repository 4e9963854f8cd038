from __future__ import annotations

from dataclasses import dataclass, field
from typing import Hashable, Set


@dataclass
class SessionState:
    """Position and autoplay flag for the single active session."""

    current_index: int = 0
    is_autoplay: bool = False
    autoplay_speed_ms: int = 3000


@dataclass
class Stats:
    """Monotone engagement record; every set only grows within a session."""

    messages_viewed: Set[int] = field(default_factory=set)
    sections_visited: Set[Hashable] = field(default_factory=set)
    subsections_visited: Set[str] = field(default_factory=set)
    images_viewed: Set[str] = field(default_factory=set)
    videos_watched: Set[str] = field(default_factory=set)
    quizzes_completed: Set[str] = field(default_factory=set)
    correct_answers: int = 0
    total_quiz_attempts: int = 0


@dataclass(frozen=True)
class CourseTotals:
    """Denominators for the statistics report."""

    total_turns: int = 0
    total_sections: int = 0
    total_subsections: int = 0
    total_quizzes: int = 0
    total_images: int = 0
    total_videos: int = 0
