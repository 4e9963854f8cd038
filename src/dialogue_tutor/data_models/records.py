from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _StoredRecord(BaseModel):
    """Records persisted as JSON use camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Note(_StoredRecord):
    """Learner-authored note anchored to the turn it was written at."""

    id: int
    title: str
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    section_title: str = ""
    subsection_title: str = ""
    turn_index: int = Field(0, ge=0)


class QAResponse(_StoredRecord):
    """Append-only record of one question put to the AI collaborator."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    question: str
    answer: str
    context_index: int = Field(ge=0)
    timestamp: datetime = Field(default_factory=utc_now)
    section_title: str = ""
    subsection_title: str = ""
    is_error: bool = False


class ProgressSummary(_StoredRecord):
    """Derived snapshot stored for the resume message."""

    last_accessed: datetime = Field(default_factory=utc_now)
    current_turn: int = Field(0, ge=0)
    total_turns: int = Field(0, ge=0)
    completion_percentage: int = Field(0, ge=0, le=100)
