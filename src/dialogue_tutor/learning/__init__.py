from .dialogue_index import DialogueIndex
from .models import CourseTotals, SessionState, Stats
from .notes import NotesManager
from .progress import ProgressStore, deserialize_stats, serialize_stats
from .quiz import QuizEvaluation, QuizScorer, normalize_answer
from .stats import StatisticsAggregator, media_key, percentage

__all__ = [
    "DialogueIndex",
    "CourseTotals",
    "SessionState",
    "Stats",
    "NotesManager",
    "ProgressStore",
    "serialize_stats",
    "deserialize_stats",
    "QuizScorer",
    "QuizEvaluation",
    "normalize_answer",
    "StatisticsAggregator",
    "media_key",
    "percentage",
]
