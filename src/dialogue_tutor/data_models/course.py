from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

SectionId = Union[int, str]


class Speaker(str, Enum):
    """Who says a dialogue line."""

    INSTRUCTOR = "Instructor"
    LEARNER = "Learner"

    @classmethod
    def _missing_(cls, value: object) -> "Speaker | None":
        if not isinstance(value, str):
            return None
        lowered = value.strip().lower()
        aliases = {
            "instructor": cls.INSTRUCTOR,
            "teacher": cls.INSTRUCTOR,
            "tutor": cls.INSTRUCTOR,
            "learner": cls.LEARNER,
            "student": cls.LEARNER,
        }
        return aliases.get(lowered)


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    QUIZ = "quiz"


class _CourseModel(BaseModel):
    """Course JSON uses camelCase keys; Python code uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ImageMedia(_CourseModel):
    type: Literal["image"] = "image"
    src: str
    alt: str = ""


class VideoMedia(_CourseModel):
    type: Literal["video"] = "video"
    src: str
    title: str = ""


class QuizMedia(_CourseModel):
    """Single multiple-choice check attached to a turn."""

    type: Literal["quiz"] = "quiz"
    question: str
    options: Tuple[str, ...]
    correct_answer: int = Field(ge=0)
    explanation: str = ""

    @model_validator(mode="after")
    def check_answer_in_range(self) -> "QuizMedia":
        if self.correct_answer >= len(self.options):
            raise ValueError("correct_answer must index one of the options")
        return self


MediaItem = Annotated[Union[ImageMedia, VideoMedia, QuizMedia], Field(discriminator="type")]


class ConversationEntry(_CourseModel):
    """One line of dialogue as authored in the course file."""

    speaker: Speaker
    text: str
    sidebar_content: Tuple[MediaItem, ...] = ()

    @field_validator("speaker", mode="before")
    @classmethod
    def resolve_speaker_alias(cls, value: Any) -> Any:
        return Speaker(value) if isinstance(value, str) else value

    @field_validator("sidebar_content", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return () if value is None else value


class Subsection(_CourseModel):
    id: SectionId
    title: str
    conversations: Tuple[ConversationEntry, ...] = ()


class Section(_CourseModel):
    id: SectionId
    title: str
    subsections: Tuple[Subsection, ...] = ()


class CourseContent(_CourseModel):
    """Nested course input: sections -> subsections -> conversation turns."""

    sections: Tuple[Section, ...] = ()
    config: Dict[str, Any] = Field(default_factory=dict)
    resources: Tuple[Dict[str, Any], ...] = ()


class Turn(_CourseModel):
    """A flattened dialogue turn stamped with its position and ancestry."""

    index: int = Field(ge=0)
    speaker: Speaker
    text: str
    section_id: SectionId
    section_title: str
    subsection_id: SectionId
    subsection_title: str
    sidebar_content: Tuple[MediaItem, ...] = ()

    @property
    def subsection_key(self) -> str:
        return f"{self.section_id}:{self.subsection_id}"

    def media_of_kind(self, kind: MediaKind | str) -> List[MediaItem]:
        """Media of one kind, in authored order; offsets into this list identify items."""
        kind_value = MediaKind(kind).value
        return [item for item in self.sidebar_content if item.type == kind_value]

    def grouped_media(self) -> Dict[str, List[MediaItem]]:
        grouped: Dict[str, List[MediaItem]] = {}
        for item in self.sidebar_content:
            grouped.setdefault(item.type, []).append(item)
        return grouped

    def render(self) -> str:
        return f"{self.speaker.value}: {self.text}"


def load_course(path: Path) -> CourseContent:
    """Read and validate a course JSON file."""
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return CourseContent.model_validate(payload)
