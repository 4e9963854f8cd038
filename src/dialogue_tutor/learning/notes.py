from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from dialogue_tutor.data_models import Note, Turn, utc_now
from dialogue_tutor.errors import InputValidationError
from dialogue_tutor.learning.progress import ProgressStore

logger = logging.getLogger(__name__)


def _millis() -> int:
    return int(time.time() * 1000)


class NotesManager:
    """
    CRUD over the learner's notes, persisted on every mutation.

    A note is identified by the millisecond timestamp of its creation (made strictly
    increasing so two notes saved within the same millisecond still get distinct ids).
    Title and content must be non-empty after trimming; a rejected save raises
    `InputValidationError` and leaves both the list and the store untouched.

    The manager also carries the single "note being edited" slot of the notes panel:
    `begin_edit` selects a note, `save` then updates it instead of creating a new one,
    and deleting the selected note cancels the edit.
    """

    def __init__(self, store: ProgressStore, clock_ms: Callable[[], int] = _millis):
        self.store = store
        self._clock_ms = clock_ms
        self._notes: List[Note] = store.load_notes()
        self._last_id = max((note.id for note in self._notes), default=0)
        self.editing_id: Optional[int] = None

    @property
    def notes(self) -> List[Note]:
        return list(self._notes)

    def __len__(self) -> int:
        return len(self._notes)

    def get(self, note_id: int) -> Optional[Note]:
        for note in self._notes:
            if note.id == note_id:
                return note
        return None

    def _next_id(self) -> int:
        self._last_id = max(self._clock_ms(), self._last_id + 1)
        return self._last_id

    @staticmethod
    def _validated(title: str, content: str) -> tuple[str, str]:
        title, content = (title or "").strip(), (content or "").strip()
        if not title or not content:
            raise InputValidationError("Please enter both title and content for your note.")
        return title, content

    def _persist(self) -> None:
        self.store.save_notes(self._notes)

    def create(self, title: str, content: str, turn: Optional[Turn] = None) -> Note:
        title, content = self._validated(title, content)
        note = Note(
            id=self._next_id(),
            title=title,
            content=content,
            timestamp=utc_now(),
            section_title=turn.section_title if turn else "",
            subsection_title=turn.subsection_title if turn else "",
            turn_index=turn.index if turn else 0,
        )
        self._notes.append(note)
        self._persist()
        logger.info("Created note %s", note.id)
        return note

    def update(self, note_id: int, title: str, content: str, turn: Optional[Turn] = None) -> Optional[Note]:
        """Replace a note in place, keeping its id. Returns None for an unknown id."""
        title, content = self._validated(title, content)
        for position, existing in enumerate(self._notes):
            if existing.id != note_id:
                continue
            changes = {"title": title, "content": content, "timestamp": utc_now()}
            if turn is not None:
                changes.update(
                    section_title=turn.section_title,
                    subsection_title=turn.subsection_title,
                    turn_index=turn.index,
                )
            updated = existing.model_copy(update=changes)
            self._notes[position] = updated
            self._persist()
            logger.info("Updated note %s", note_id)
            return updated
        logger.warning("Cannot update unknown note %s", note_id)
        return None

    def begin_edit(self, note_id: int) -> Note:
        note = self.get(note_id)
        if note is None:
            raise KeyError(note_id)
        self.editing_id = note_id
        return note

    def cancel_edit(self) -> None:
        self.editing_id = None

    def save(self, title: str, content: str, turn: Optional[Turn] = None) -> Note:
        """Create a note, or update the one being edited; either way the edit slot is cleared."""
        if self.editing_id is not None:
            updated = self.update(self.editing_id, title, content, turn)
            self.editing_id = None
            if updated is not None:
                return updated
        return self.create(title, content, turn)

    def delete(self, note_id: int, confirm: bool) -> bool:
        if not confirm:
            return False
        remaining = [note for note in self._notes if note.id != note_id]
        if len(remaining) == len(self._notes):
            logger.warning("Cannot delete unknown note %s", note_id)
            return False
        self._notes = remaining
        if self.editing_id == note_id:
            self.cancel_edit()
        self._persist()
        logger.info("Deleted note %s", note_id)
        return True

    def clear_all(self, confirm: bool) -> bool:
        if not confirm:
            return False
        self._notes = []
        self.cancel_edit()
        self._persist()
        logger.info("Cleared all notes")
        return True

    def sorted_by_time(self) -> List[Note]:
        return sorted(self._notes, key=lambda note: (note.timestamp, note.id))
