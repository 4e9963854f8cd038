from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple

from dialogue_tutor.data_models import CourseContent, MediaKind, SectionId, Turn
from dialogue_tutor.learning.models import CourseTotals


class DialogueIndex:
    """
    Flatten a nested course into one zero-based, document-ordered sequence of turns.

    Turns are emitted section by section, then subsection by subsection, then in
    conversation order, each stamped with its owning section/subsection ids and titles.
    The index is built once and never changes; an empty course yields an empty index on
    which no navigation is possible.

    Examples
    --------
    >>> index = DialogueIndex(course)
    >>> len(index)
    42
    >>> index.at(0).section_title
    'Importance of Chemistry'
    >>> index.locate(2, "2.1", offset=1)
    13
    """

    def __init__(self, course: CourseContent):
        turns: List[Turn] = []
        spans: Dict[Tuple[SectionId, SectionId], Tuple[int, int]] = {}
        for section in course.sections:
            for subsection in section.subsections:
                start = len(turns)
                for entry in subsection.conversations:
                    turns.append(
                        Turn(
                            index=len(turns),
                            speaker=entry.speaker,
                            text=entry.text,
                            section_id=section.id,
                            section_title=section.title,
                            subsection_id=subsection.id,
                            subsection_title=subsection.title,
                            sidebar_content=entry.sidebar_content,
                        )
                    )
                spans.setdefault((section.id, subsection.id), (start, len(turns) - start))
        self._turns: Tuple[Turn, ...] = tuple(turns)
        self._spans = spans
        self._totals = CourseTotals(
            total_turns=len(turns),
            total_sections=len(course.sections),
            total_subsections=sum(len(section.subsections) for section in course.sections),
            total_quizzes=sum(len(turn.media_of_kind(MediaKind.QUIZ)) for turn in turns),
            total_images=sum(len(turn.media_of_kind(MediaKind.IMAGE)) for turn in turns),
            total_videos=sum(len(turn.media_of_kind(MediaKind.VIDEO)) for turn in turns),
        )

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self._turns)

    def length(self) -> int:
        return len(self._turns)

    @property
    def last_index(self) -> int:
        """Highest valid index, or -1 for an empty course."""
        return len(self._turns) - 1

    @property
    def turns(self) -> Tuple[Turn, ...]:
        return self._turns

    @property
    def totals(self) -> CourseTotals:
        return self._totals

    def at(self, index: int) -> Turn:
        if not 0 <= index < len(self._turns):
            raise IndexError(f"turn index {index} outside [0, {len(self._turns) - 1}]")
        return self._turns[index]

    def window(self, start: int, stop: int) -> Tuple[Turn, ...]:
        """Turns with start <= index < stop, clipped to the sequence."""
        return self._turns[max(0, start):max(0, stop)]

    def turns_in_section(self, section_id: SectionId) -> List[Turn]:
        return [turn for turn in self._turns if turn.section_id == section_id]

    def turns_in_subsection(self, section_id: SectionId, subsection_id: SectionId) -> List[Turn]:
        span = self._spans.get((section_id, subsection_id))
        if span is None:
            return []
        start, count = span
        return list(self._turns[start:start + count])

    def locate(
        self,
        section_id: SectionId,
        subsection_id: SectionId,
        offset: int = 0,
    ) -> Optional[int]:
        """
        Resolve a table-of-contents target to a global turn index.

        Returns the index of the subsection's first turn plus `offset`, or None when the
        section/subsection pair is unknown or the offset falls outside that subsection.
        """
        span = self._spans.get((section_id, subsection_id))
        if span is None:
            return None
        start, count = span
        if not 0 <= offset < count:
            return None
        return start + offset
