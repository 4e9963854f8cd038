from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Protocol

import openai
from pydantic import BaseModel

from dialogue_tutor.agents.context_builder import ContextWindowBuilder, build_messages
from dialogue_tutor.agents.llm_client import LLMClient
from dialogue_tutor.config.schema import ModelConfig
from dialogue_tutor.data_models import QAResponse, utc_now
from dialogue_tutor.errors import ExternalCallError, InputValidationError, QuestionInFlightError
from dialogue_tutor.learning.progress import ProgressStore

logger = logging.getLogger(__name__)

ERROR_ANSWER_TEMPLATE = (
    "Error getting AI response: {error}\n\n"
    "Please check your internet connection and API configuration."
)


class AIAnswer(BaseModel):
    """Outcome of one collaborator call: an answer on success, an error message otherwise."""

    success: bool
    answer: str = ""
    error: str = ""

    @classmethod
    def ok(cls, answer: str) -> "AIAnswer":
        return cls(success=True, answer=answer)

    @classmethod
    def failure(cls, error: str) -> "AIAnswer":
        return cls(success=False, error=error or "Failed to get AI response")


class AICollaborator(Protocol):
    async def answer(self, question: str, context: str) -> AIAnswer:
        ...


class OpenAICollaborator:
    """Answer questions with a chat completion; every failure comes back as `AIAnswer.failure`."""

    def __init__(self, config: ModelConfig, client_factory: Optional[Callable[[], LLMClient]] = None):
        self.config = config
        self._client_factory = client_factory or (lambda: LLMClient(config))
        self._client: Optional[LLMClient] = None

    async def answer(self, question: str, context: str) -> AIAnswer:
        try:
            if self._client is None:
                self._client = self._client_factory()
            text = await self._client.generate(build_messages(question, context))
        except ExternalCallError as exc:
            logger.warning("AI collaborator unavailable: %s", exc)
            return AIAnswer.failure(str(exc))
        except openai.OpenAIError as exc:
            logger.warning("AI collaborator call failed: %s", exc)
            return AIAnswer.failure(str(exc))
        return AIAnswer.ok(text)


class QuestionAnswerService:
    """
    Ask the AI collaborator about a turn and keep the append-only Q&A history.

    The question is scoped to the pinned turn when one is pinned, otherwise to the
    turn currently displayed. At most one question may be pending at a time; while it
    is, `is_loading` is True and further submissions raise `QuestionInFlightError`.
    A failed call is not raised: it is stored as an error-flagged response whose
    answer carries the failure text.
    """

    def __init__(
        self,
        builder: ContextWindowBuilder,
        store: ProgressStore,
        collaborator: AICollaborator,
        current_index: Callable[[], int],
    ):
        self.builder = builder
        self.store = store
        self.collaborator = collaborator
        self._current_index = current_index
        self._history: List[QAResponse] = store.load_qa_history()
        self._last_id = max((item.id for item in self._history), default=0)
        self.pinned_index: Optional[int] = None
        self.is_loading = False

    @property
    def history(self) -> List[QAResponse]:
        return list(self._history)

    def responses_for(self, turn_index: int) -> List[QAResponse]:
        return [item for item in self._history if item.context_index == turn_index]

    def pin(self, turn_index: int) -> None:
        """Scope following questions to `turn_index` instead of the displayed turn."""
        if not 0 <= turn_index < len(self.builder.index):
            raise IndexError(f"turn index {turn_index} outside the course")
        self.pinned_index = turn_index

    def unpin(self) -> None:
        self.pinned_index = None

    def _next_id(self) -> int:
        self._last_id = max(int(time.time() * 1000), self._last_id + 1)
        return self._last_id

    async def ask(self, question: str) -> QAResponse:
        question = (question or "").strip()
        if not question:
            raise InputValidationError("Please enter a question.")
        if self.is_loading:
            raise QuestionInFlightError("A question is already awaiting its answer.")
        if not len(self.builder.index):
            raise InputValidationError("The course has no messages to ask about.")

        target = self.pinned_index if self.pinned_index is not None else self._current_index()
        window = self.builder.build(target)
        self.is_loading = True
        try:
            try:
                result = await self.collaborator.answer(question, window.render())
            except ExternalCallError as exc:
                result = AIAnswer.failure(str(exc))
        finally:
            self.is_loading = False

        if result.success:
            answer, is_error = result.answer, False
        else:
            logger.warning("Question about message %s failed: %s", target, result.error)
            answer, is_error = ERROR_ANSWER_TEMPLATE.format(error=result.error), True

        response = QAResponse(
            id=self._next_id(),
            question=question,
            answer=answer,
            context_index=target,
            timestamp=utc_now(),
            section_title=window.section_title,
            subsection_title=window.subsection_title,
            is_error=is_error,
        )
        self._history.append(response)
        self.store.save_qa_history(self._history)
        logger.info("Recorded %s response %s for message %s", "error" if is_error else "AI", response.id, target)
        return response
