from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from dialogue_tutor.config import AutoplayConfig
from dialogue_tutor.data_models import MediaKind, ProgressSummary, Turn, utc_now
from dialogue_tutor.learning.dialogue_index import DialogueIndex
from dialogue_tutor.learning.models import SessionState, Stats
from dialogue_tutor.learning.progress import ProgressStore
from dialogue_tutor.learning.quiz import QuizScorer
from dialogue_tutor.learning.stats import StatisticsAggregator

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionState], None]


class SessionCoordinator:
    """
    Sole owner of the current position and the autoplay flag.

    Every input source (wheel, touch, keyboard, buttons, menu jumps, the autoplay
    timer) moves the session through `advance`, `retreat` or `jump_to`. Manual moves
    switch autoplay off before the index changes, in the same call, so no timer tick
    can land between the two. Each index change is recorded in the statistics and
    mirrored to the progress store before listeners are notified.

    Parameters
    ----------
    index : DialogueIndex
        The flattened course.
    store : ProgressStore
        Persistence for index, stats and the progress summary.
    autoplay : AutoplayConfig
        Default speed and the bounds of the speed slider.
    """

    def __init__(self, index: DialogueIndex, store: ProgressStore, autoplay: Optional[AutoplayConfig] = None):
        self.index = index
        self.store = store
        self.autoplay_config = autoplay or AutoplayConfig()
        self.aggregator = StatisticsAggregator(store.load_stats())
        dropped = self.aggregator.discard_turns_outside(len(index))
        if dropped:
            logger.warning("Discarded %s viewed messages outside course of %s turns", dropped, len(index))
            store.save_stats(self.aggregator.stats)
        self._listeners: List[StateListener] = []
        self._answered_quizzes: Dict[int, bool] = {}

        summary = store.load_progress_summary()
        if summary is not None and summary.current_turn > 0:
            logger.info(
                "Welcome back! Resuming from message %s of %s (course completion: %s%%)",
                summary.current_turn + 1,
                summary.total_turns,
                summary.completion_percentage,
            )

        saved = store.load_current_index()
        start = min(saved, max(index.last_index, 0))
        if start != saved:
            logger.warning("Saved index %s outside course of %s turns; clamped to %s", saved, len(index), start)
        self._state = SessionState(
            current_index=start,
            is_autoplay=False,
            autoplay_speed_ms=self.autoplay_config.default_speed_ms,
        )
        if len(index):
            self._record_position()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return replace(self._state)

    @property
    def current_index(self) -> int:
        return self._state.current_index

    @property
    def is_autoplay(self) -> bool:
        return self._state.is_autoplay

    @property
    def autoplay_speed_ms(self) -> int:
        return self._state.autoplay_speed_ms

    @property
    def stats(self) -> Stats:
        return self.aggregator.stats

    def current_turn(self) -> Optional[Turn]:
        if not len(self.index):
            return None
        return self.index.at(self._state.current_index)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.state
        for listener in list(self._listeners):
            listener(snapshot)

    # ------------------------------------------------------------------
    # Mutation surface
    # ------------------------------------------------------------------

    def advance(self, manual: bool = True) -> bool:
        return self.jump_to(self._state.current_index + 1, manual=manual)

    def retreat(self, manual: bool = True) -> bool:
        return self.jump_to(self._state.current_index - 1, manual=manual)

    def jump_to(self, target: int, manual: bool = True) -> bool:
        """
        Move to `target`, clamped into the course. Returns True if the index changed.

        A manual move is accepted even when clamping leaves the index where it was;
        autoplay is switched off either way.
        """
        if not len(self.index):
            return False
        changed_flag = False
        if manual and self._state.is_autoplay:
            self._state.is_autoplay = False
            changed_flag = True
            logger.info("Autoplay paused by manual navigation")
        clamped = min(max(target, 0), self.index.last_index)
        previous = self._state.current_index
        if clamped == previous:
            logger.debug("Navigation to %s clamped at %s", target, clamped)
            if changed_flag:
                self._notify()
            return False
        self._state.current_index = clamped
        self._answered_quizzes.clear()
        logger.debug("Moved from %s to %s (%s)", previous, clamped, "manual" if manual else "autoplay")
        self._record_position()
        self._notify()
        return True

    def set_autoplay(self, enabled: bool) -> bool:
        """Switch autoplay; it cannot be switched on at the last turn. Returns the new flag."""
        if enabled and self._state.current_index >= self.index.last_index:
            logger.info("Autoplay not started: already at the last message")
            enabled = False
        if enabled != self._state.is_autoplay:
            self._state.is_autoplay = enabled
            logger.info("Autoplay %s at message %s", "started" if enabled else "stopped", self._state.current_index)
            self._notify()
        return self._state.is_autoplay

    def toggle_autoplay(self) -> bool:
        return self.set_autoplay(not self._state.is_autoplay)

    def set_autoplay_speed(self, speed_ms: int) -> int:
        cfg = self.autoplay_config
        clamped = int(min(max(speed_ms, cfg.min_speed_ms), cfg.max_speed_ms))
        if clamped != self._state.autoplay_speed_ms:
            self._state.autoplay_speed_ms = clamped
            logger.info("Autoplay speed set to %s ms", clamped)
            self._notify()
        return clamped

    def autoplay_tick(self) -> bool:
        """
        One timer step. A tick that arrives after autoplay was switched off is ignored.

        Reaching the last turn switches autoplay off.
        """
        if not self._state.is_autoplay:
            return False
        if self._state.current_index >= self.index.last_index:
            self.set_autoplay(False)
            return False
        moved = self.advance(manual=False)
        if self._state.current_index >= self.index.last_index:
            self.set_autoplay(False)
        return moved

    # ------------------------------------------------------------------
    # Media and quizzes on the current turn
    # ------------------------------------------------------------------

    def open_media(self, kind: MediaKind | str, offset: int) -> bool:
        """Record that the image or video at `offset` of the current turn was opened."""
        turn = self.current_turn()
        if turn is None or not 0 <= offset < len(turn.media_of_kind(kind)):
            return False
        if self.aggregator.record_media_view(turn.index, kind, offset):
            self.store.save_stats(self.aggregator.stats)
            return True
        return False

    def answer_quiz(self, offset: int, selected: int) -> Optional[bool]:
        """
        Submit an answer to a quiz on the current turn. Returns whether it was correct.

        Only the first answer to a quiz per visit of the turn counts; later clicks
        return the first result. None is returned for an unknown quiz.
        """
        turn = self.current_turn()
        if turn is None:
            return None
        quizzes = turn.media_of_kind(MediaKind.QUIZ)
        if not 0 <= offset < len(quizzes):
            return None
        if offset in self._answered_quizzes:
            return self._answered_quizzes[offset]
        quiz = quizzes[offset]
        is_correct = QuizScorer.score_choice(selected, quiz.correct_answer)
        self._answered_quizzes[offset] = is_correct
        self.aggregator.record_quiz_answer(turn.index, offset, is_correct)
        self.store.save_stats(self.aggregator.stats)
        logger.info("Quiz %s:%s answered %s", turn.index, offset, "correctly" if is_correct else "incorrectly")
        return is_correct

    def clear_all_progress(self) -> None:
        """Forget position and statistics; notes and Q&A history are left alone."""
        self.store.clear_progress()
        self.aggregator.reset()
        self._answered_quizzes.clear()
        self._state.current_index = 0
        self._state.is_autoplay = False
        logger.info("All progress cleared")
        if len(self.index):
            self._record_position()
        self._notify()

    # ------------------------------------------------------------------
    # Reporting and persistence
    # ------------------------------------------------------------------

    def completion_percentage(self) -> int:
        return self.aggregator.completion_percentage(len(self.index))

    def report(self) -> dict:
        return self.aggregator.report(self.index.totals)

    def progress_summary(self) -> ProgressSummary:
        return ProgressSummary(
            last_accessed=utc_now(),
            current_turn=self._state.current_index,
            total_turns=len(self.index),
            completion_percentage=self.completion_percentage(),
        )

    def _record_position(self) -> None:
        turn = self.index.at(self._state.current_index)
        if self.aggregator.record_turn(turn):
            self.store.save_stats(self.aggregator.stats)
        self.store.save_current_index(self._state.current_index)
        self.store.save_progress_summary(self.progress_summary())
