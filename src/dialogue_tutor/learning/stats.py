from __future__ import annotations

import logging
import math
from typing import Any, Dict

from dialogue_tutor.data_models import MediaKind, Turn
from dialogue_tutor.learning.models import CourseTotals, Stats

logger = logging.getLogger(__name__)


def percentage(part: int | float, whole: int | float) -> int:
    """Whole-number percentage rounded half up; 0 when `whole` is 0."""
    if not whole:
        return 0
    return int(math.floor(part * 100 / whole + 0.5))


def media_key(turn_index: int, kind: MediaKind | str, offset: int) -> str:
    """Composite identity of one media item: `turnIndex:mediaType:mediaOffset`."""
    return f"{turn_index}:{MediaKind(kind).value}:{offset}"


class StatisticsAggregator:
    """
    Idempotent, monotone record of learner engagement.

    Every tracked collection is a set, so repeating an event for the same turn or media
    item leaves the counts unchanged. Only the quiz counters are plain integers: each
    submission the aggregator receives increments `total_quiz_attempts`, and correct ones
    also increment `correct_answers`. Whether a learner may resubmit is decided by the
    caller, not here.

    The aggregator mutates `self.stats` in place; persisting it is the caller's job.
    """

    def __init__(self, stats: Stats | None = None):
        self.stats = stats or Stats()

    def record_turn(self, turn: Turn) -> bool:
        """Mark a turn, its section and its subsection as seen. Returns True if anything was new."""
        before = (
            len(self.stats.messages_viewed),
            len(self.stats.sections_visited),
            len(self.stats.subsections_visited),
        )
        self.stats.messages_viewed.add(turn.index)
        self.stats.sections_visited.add(turn.section_id)
        self.stats.subsections_visited.add(turn.subsection_key)
        after = (
            len(self.stats.messages_viewed),
            len(self.stats.sections_visited),
            len(self.stats.subsections_visited),
        )
        return after != before

    def record_media_view(self, turn_index: int, kind: MediaKind | str, offset: int) -> bool:
        """Record an opened image or video. Returns True the first time the item is seen."""
        kind = MediaKind(kind)
        if kind is MediaKind.IMAGE:
            target = self.stats.images_viewed
        elif kind is MediaKind.VIDEO:
            target = self.stats.videos_watched
        else:
            # quizzes count as completed only when answered
            return False
        key = media_key(turn_index, kind, offset)
        if key in target:
            return False
        target.add(key)
        logger.debug("Recorded %s view %s", kind.value, key)
        return True

    def record_quiz_answer(self, turn_index: int, offset: int, is_correct: bool) -> None:
        """Count one quiz submission."""
        self.stats.quizzes_completed.add(media_key(turn_index, MediaKind.QUIZ, offset))
        self.stats.total_quiz_attempts += 1
        if is_correct:
            self.stats.correct_answers += 1

    def completion_percentage(self, total_turns: int) -> int:
        return min(100, percentage(len(self.stats.messages_viewed), total_turns))

    def discard_turns_outside(self, total_turns: int) -> int:
        """Drop viewed-message indices that do not exist in a course of `total_turns`. Returns how many."""
        stale = {index for index in self.stats.messages_viewed if not 0 <= index < total_turns}
        self.stats.messages_viewed -= stale
        return len(stale)

    def accuracy(self) -> int:
        return percentage(self.stats.correct_answers, self.stats.total_quiz_attempts)

    def reset(self) -> None:
        self.stats = Stats()

    def report(self, totals: CourseTotals) -> Dict[str, Any]:
        """
        Summarize engagement against course totals.

        Returns
        -------
        dict
            Counts for every tracked set next to its course-wide total, plus
            `completion_percentage`, `accuracy`, and `media_engagement`
            (images viewed + videos watched).
        """
        stats = self.stats
        return {
            "messages_viewed": len(stats.messages_viewed),
            "total_messages": totals.total_turns,
            "completion_percentage": self.completion_percentage(totals.total_turns),
            "sections_visited": len(stats.sections_visited),
            "total_sections": totals.total_sections,
            "subsections_visited": len(stats.subsections_visited),
            "total_subsections": totals.total_subsections,
            "quizzes_completed": len(stats.quizzes_completed),
            "total_quizzes": totals.total_quizzes,
            "correct_answers": stats.correct_answers,
            "total_quiz_attempts": stats.total_quiz_attempts,
            "accuracy": self.accuracy(),
            "images_viewed": len(stats.images_viewed),
            "total_images": totals.total_images,
            "videos_watched": len(stats.videos_watched),
            "total_videos": totals.total_videos,
            "media_engagement": len(stats.images_viewed) + len(stats.videos_watched),
        }
