from .course import (
    ConversationEntry,
    CourseContent,
    ImageMedia,
    MediaItem,
    MediaKind,
    QuizMedia,
    Section,
    SectionId,
    Speaker,
    Subsection,
    Turn,
    VideoMedia,
    load_course,
)
from .records import Note, ProgressSummary, QAResponse, utc_now

__all__ = [
    "ConversationEntry",
    "CourseContent",
    "ImageMedia",
    "MediaItem",
    "MediaKind",
    "QuizMedia",
    "Section",
    "SectionId",
    "Speaker",
    "Subsection",
    "Turn",
    "VideoMedia",
    "load_course",
    "Note",
    "ProgressSummary",
    "QAResponse",
    "utc_now",
]
