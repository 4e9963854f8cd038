from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from dialogue_tutor.data_models import Note, ProgressSummary, QAResponse
from dialogue_tutor.errors import PersistenceReadError
from dialogue_tutor.learning.models import Stats
from dialogue_tutor.storage import KeyValueStore

logger = logging.getLogger(__name__)

_NOTES_ADAPTER = TypeAdapter(List[Note])
_QA_ADAPTER = TypeAdapter(List[QAResponse])


@dataclass(frozen=True)
class StorageKeys:
    """The namespaced keys owned by one course."""

    current_index: str
    stats: str
    notes: str
    ai_responses: str
    progress: str

    @classmethod
    def for_prefix(cls, prefix: str) -> "StorageKeys":
        return cls(
            current_index=f"{prefix}_current_index",
            stats=f"{prefix}_stats",
            notes=f"{prefix}_notes",
            ai_responses=f"{prefix}_ai_responses",
            progress=f"{prefix}_progress",
        )


class StatsRecord(BaseModel):
    """On-disk shape of `Stats`: sets become arrays, counters stay integers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, strict=True)

    messages_viewed: List[int] = Field(default_factory=list)
    sections_visited: List[Union[int, str]] = Field(default_factory=list)
    subsections_visited: List[str] = Field(default_factory=list)
    images_viewed: List[str] = Field(default_factory=list)
    videos_watched: List[str] = Field(default_factory=list)
    quizzes_completed: List[str] = Field(default_factory=list)
    correct_answers: int = Field(0, ge=0)
    total_quiz_attempts: int = Field(0, ge=0)

    @model_validator(mode="after")
    def check_counters(self) -> "StatsRecord":
        if self.correct_answers > self.total_quiz_attempts:
            raise ValueError("correctAnswers cannot exceed totalQuizAttempts")
        return self


def _ordered(values: Iterable[Hashable]) -> List[Any]:
    """Deterministic array form of a set: numbers first (ascending), then strings."""
    return sorted(values, key=lambda value: (0, value, "") if isinstance(value, int) else (1, 0, str(value)))


def serialize_stats(stats: Stats) -> Dict[str, Any]:
    """Map in-memory `Stats` to its JSON-ready form."""
    record = StatsRecord(
        messages_viewed=_ordered(stats.messages_viewed),
        sections_visited=_ordered(stats.sections_visited),
        subsections_visited=_ordered(stats.subsections_visited),
        images_viewed=_ordered(stats.images_viewed),
        videos_watched=_ordered(stats.videos_watched),
        quizzes_completed=_ordered(stats.quizzes_completed),
        correct_answers=stats.correct_answers,
        total_quiz_attempts=stats.total_quiz_attempts,
    )
    return record.model_dump(by_alias=True)


def deserialize_stats(payload: Any, key: str = "stats") -> Stats:
    """Inverse of `serialize_stats`; raises PersistenceReadError on any malformed field."""
    try:
        record = StatsRecord.model_validate(payload)
    except ValidationError as exc:
        raise PersistenceReadError(key, str(exc)) from exc
    return Stats(
        messages_viewed=set(record.messages_viewed),
        sections_visited=set(record.sections_visited),
        subsections_visited=set(record.subsections_visited),
        images_viewed=set(record.images_viewed),
        videos_watched=set(record.videos_watched),
        quizzes_completed=set(record.quizzes_completed),
        correct_answers=record.correct_answers,
        total_quiz_attempts=record.total_quiz_attempts,
    )


class ProgressStore:
    """
    Typed persistence for session progress over a flat key-value medium.

    Four value groups are stored under independent keys namespaced by a prefix:
    the current turn index, the engagement statistics, the notes list, and the
    Q&A history. A fifth key holds a derived progress summary used to greet a
    returning learner. Each group is written immediately after the in-memory
    mutation that changed it; there is no batching and no cross-key transaction,
    so a crash loses at most the latest single write.

    Storage Format
    --------------
    Every value is a JSON document stored as a string. With prefix
    ``chemistry_course`` the medium holds::

        chemistry_course_current_index  7
        chemistry_course_stats          {"messagesViewed": [0, 1, 2], "sectionsVisited": [1],
                                         "subsectionsVisited": ["1:1.1"], "imagesViewed": [],
                                         "videosWatched": [], "quizzesCompleted": ["2:quiz:0"],
                                         "correctAnswers": 1, "totalQuizAttempts": 1}
        chemistry_course_notes          [{"id": 1718000000000, "title": "...", ...}]
        chemistry_course_ai_responses   [{"id": 1718000000001, "question": "...", ...}]
        chemistry_course_progress       {"lastAccessed": "...", "currentTurn": 7, ...}

    Sets are written as sorted arrays and read back into sets, so membership
    survives a round trip while insertion order does not matter.

    Failure Handling
    ----------------
    A missing key yields that group's default (index 0, empty stats, empty
    lists). A malformed value is logged and also yields the default, for that
    key only. Write failures from the medium are logged and not raised.

    Examples
    --------
    >>> store = ProgressStore(InMemoryKeyValueStore(), prefix="chem")
    >>> stats = store.load_stats()
    >>> stats.messages_viewed.add(3)
    >>> store.save_stats(stats)
    >>> store.load_stats().messages_viewed
    {3}
    """

    def __init__(self, medium: KeyValueStore, prefix: str):
        """
        Parameters
        ----------
        medium : KeyValueStore
            Backing string store (in-memory or JSON file).
        prefix : str
            Namespace for this course's keys.
        """
        self.medium = medium
        self.keys = StorageKeys.for_prefix(prefix)

    # ------------------------------------------------------------------
    # Raw access
    # ------------------------------------------------------------------

    def _read_json(self, key: str) -> Any:
        raw = self.medium.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PersistenceReadError(key, f"invalid JSON ({exc.msg})") from exc

    def _write_json(self, key: str, payload: Any) -> None:
        try:
            self.medium.set(key, json.dumps(payload, ensure_ascii=False))
        except OSError as exc:
            logger.warning("Failed to save %s: %s", key, exc)

    def _fallback(self, error: PersistenceReadError, default: Any) -> Any:
        logger.warning("%s; using default %r", error, default)
        return default

    # ------------------------------------------------------------------
    # Current index
    # ------------------------------------------------------------------

    def load_current_index(self) -> int:
        """Return the saved turn index, or 0 when missing or not a non-negative integer."""
        key = self.keys.current_index
        try:
            value = self._read_json(key)
            if value is None:
                return 0
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise PersistenceReadError(key, f"expected a non-negative integer, got {value!r}")
        except PersistenceReadError as err:
            return self._fallback(err, 0)
        return value

    def save_current_index(self, index: int) -> None:
        self._write_json(self.keys.current_index, index)

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def load_stats(self) -> Stats:
        key = self.keys.stats
        try:
            payload = self._read_json(key)
            if payload is None:
                return Stats()
            return deserialize_stats(payload, key)
        except PersistenceReadError as err:
            return self._fallback(err, Stats())

    def save_stats(self, stats: Stats) -> None:
        self._write_json(self.keys.stats, serialize_stats(stats))

    # ------------------------------------------------------------------
    # Notes and Q&A history
    # ------------------------------------------------------------------

    def load_notes(self) -> List[Note]:
        return self._load_list(self.keys.notes, _NOTES_ADAPTER)

    def save_notes(self, notes: List[Note]) -> None:
        self._write_json(self.keys.notes, _NOTES_ADAPTER.dump_python(notes, mode="json", by_alias=True))

    def load_qa_history(self) -> List[QAResponse]:
        return self._load_list(self.keys.ai_responses, _QA_ADAPTER)

    def save_qa_history(self, responses: List[QAResponse]) -> None:
        self._write_json(
            self.keys.ai_responses,
            _QA_ADAPTER.dump_python(responses, mode="json", by_alias=True),
        )

    def _load_list(self, key: str, adapter: TypeAdapter) -> list:
        try:
            payload = self._read_json(key)
            if payload is None:
                return []
            try:
                return adapter.validate_python(payload)
            except ValidationError as exc:
                raise PersistenceReadError(key, str(exc)) from exc
        except PersistenceReadError as err:
            return self._fallback(err, [])

    # ------------------------------------------------------------------
    # Progress summary
    # ------------------------------------------------------------------

    def load_progress_summary(self) -> Optional[ProgressSummary]:
        key = self.keys.progress
        try:
            payload = self._read_json(key)
            if payload is None:
                return None
            try:
                return ProgressSummary.model_validate(payload)
            except ValidationError as exc:
                raise PersistenceReadError(key, str(exc)) from exc
        except PersistenceReadError as err:
            return self._fallback(err, None)

    def save_progress_summary(self, summary: ProgressSummary) -> None:
        self._write_json(self.keys.progress, summary.model_dump(mode="json", by_alias=True))

    def clear_progress(self) -> None:
        """Forget position, statistics and summary; notes and Q&A history are kept."""
        for key in (self.keys.current_index, self.keys.stats, self.keys.progress):
            try:
                self.medium.delete(key)
            except OSError as exc:
                logger.warning("Failed to clear %s: %s", key, exc)
