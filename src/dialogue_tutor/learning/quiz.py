from __future__ import annotations

import logging
import re
import unicodedata
from typing import List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from dialogue_tutor.learning.stats import percentage

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")

QuestionId = Union[int, str]


def normalize_answer(text: str) -> str:
    """
    Fold a free-text answer into a comparable form.

    NFKC folding turns superscripts into plain digits (``10²³`` -> ``1023``), the
    multiplication sign is read as ``x``, punctuation is dropped and whitespace
    runs collapse to one space.
    """
    folded = unicodedata.normalize("NFKC", text or "").lower().replace("×", "x")
    stripped = _NON_WORD.sub("", folded)
    return _WHITESPACE.sub(" ", stripped).strip()


class QuizScorer:
    """The three answer policies: exact choice, fuzzy text and key-point partial credit."""

    @staticmethod
    def score_choice(selected: Optional[int], correct: int) -> bool:
        return selected is not None and selected == correct

    @staticmethod
    def score_fill_blank(user_answer: str, expected: str) -> bool:
        """
        Lenient text match: equal after normalization, or either contained in the other.

        Containment is checked on the whitespace-free form, so spacing around
        operators does not matter. An answer that normalizes to nothing is wrong.
        """
        user = normalize_answer(user_answer).replace(" ", "")
        target = normalize_answer(expected).replace(" ", "")
        if not user or not target:
            return False
        return user == target or target in user or user in target

    @staticmethod
    def score_short_answer(user_answer: str, key_points: Sequence[str]) -> int:
        """Percentage of key points whose lower-cased text appears in the answer."""
        answer = (user_answer or "").strip().lower()
        if not answer or not key_points:
            return 0
        found = sum(1 for point in key_points if point.lower() in answer)
        return min(100, percentage(found, len(key_points)))


class _QuizModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MultipleChoiceQuestion(_QuizModel):
    id: QuestionId
    question: str
    options: List[str]
    correct_answer: int = Field(ge=0)
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def check_answer_in_range(self) -> "MultipleChoiceQuestion":
        if self.correct_answer >= len(self.options):
            raise ValueError("correctAnswer must index one of the options")
        return self


class FillBlankQuestion(_QuizModel):
    id: QuestionId
    question: str
    answer: str
    explanation: Optional[str] = None


class ShortAnswerQuestion(_QuizModel):
    id: QuestionId
    question: str
    sample_answer: str = ""
    key_points: List[str] = Field(default_factory=list)
    explanation: Optional[str] = None


class QuizAnswerResult(_QuizModel):
    """Feedback for a single submitted answer."""

    question_id: QuestionId
    question: str
    user_answer: Optional[Union[int, str]] = None
    correct_answer: Optional[Union[int, str]] = None
    is_correct: Optional[bool] = None
    score: Optional[int] = None
    key_points: List[str] = Field(default_factory=list)
    explanation: Optional[str] = None


class QuizEvaluation(_QuizModel):
    """Aggregate result of one quiz submission."""

    score: int
    total: int
    percentage: int = Field(ge=0, le=100)
    question_results: List[QuizAnswerResult]


def evaluate_multiple_choice(
    questions: Sequence[MultipleChoiceQuestion],
    answers: Mapping[QuestionId, int],
) -> QuizEvaluation:
    results: List[QuizAnswerResult] = []
    for question in questions:
        selected = answers.get(question.id)
        results.append(
            QuizAnswerResult(
                question_id=question.id,
                question=question.question,
                user_answer=selected,
                correct_answer=question.correct_answer,
                is_correct=QuizScorer.score_choice(selected, question.correct_answer),
                explanation=question.explanation,
            )
        )
    correct = sum(1 for result in results if result.is_correct)
    logger.debug("Multiple choice quiz scored %s/%s", correct, len(results))
    return QuizEvaluation(
        score=correct,
        total=len(results),
        percentage=percentage(correct, len(results)),
        question_results=results,
    )


def evaluate_fill_blanks(
    questions: Sequence[FillBlankQuestion],
    answers: Mapping[QuestionId, str],
) -> QuizEvaluation:
    results: List[QuizAnswerResult] = []
    for question in questions:
        user_answer = answers.get(question.id) or ""
        results.append(
            QuizAnswerResult(
                question_id=question.id,
                question=question.question,
                user_answer=user_answer,
                correct_answer=question.answer,
                is_correct=QuizScorer.score_fill_blank(user_answer, question.answer),
                explanation=question.explanation,
            )
        )
    correct = sum(1 for result in results if result.is_correct)
    logger.debug("Fill-in-the-blank quiz scored %s/%s", correct, len(results))
    return QuizEvaluation(
        score=correct,
        total=len(results),
        percentage=percentage(correct, len(results)),
        question_results=results,
    )


def evaluate_short_answers(
    questions: Sequence[ShortAnswerQuestion],
    answers: Mapping[QuestionId, str],
) -> QuizEvaluation:
    """Score every answer by key points; the quiz score is the rounded mean, out of 100."""
    results: List[QuizAnswerResult] = []
    for question in questions:
        user_answer = answers.get(question.id) or ""
        results.append(
            QuizAnswerResult(
                question_id=question.id,
                question=question.question,
                user_answer=user_answer,
                correct_answer=question.sample_answer,
                score=QuizScorer.score_short_answer(user_answer, question.key_points),
                key_points=list(question.key_points),
                explanation=question.explanation,
            )
        )
    total_score = sum(result.score or 0 for result in results)
    average = percentage(total_score, len(results) * 100) if results else 0
    return QuizEvaluation(score=average, total=100, percentage=average, question_results=results)
