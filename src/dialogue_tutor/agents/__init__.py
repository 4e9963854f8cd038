from .context_builder import ContextWindow, ContextWindowBuilder, build_messages
from .llm_client import LLMClient
from .qa import AIAnswer, AICollaborator, OpenAICollaborator, QuestionAnswerService

__all__ = [
    "ContextWindow",
    "ContextWindowBuilder",
    "build_messages",
    "LLMClient",
    "AIAnswer",
    "AICollaborator",
    "OpenAICollaborator",
    "QuestionAnswerService",
]
