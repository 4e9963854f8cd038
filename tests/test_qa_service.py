"""Tests for asking the AI collaborator and recording the Q&A history."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import List, Tuple

import openai
import pytest

from dialogue_tutor.agents import AIAnswer, ContextWindowBuilder, LLMClient, OpenAICollaborator, QuestionAnswerService
from dialogue_tutor.config import ModelConfig
from dialogue_tutor.errors import ExternalCallError, InputValidationError, QuestionInFlightError
from dialogue_tutor.learning import DialogueIndex


class FakeCollaborator:
    """Records every call and replies with a canned answer."""

    def __init__(self, result: AIAnswer | None = None, error: Exception | None = None):
        self.result = result or AIAnswer.ok("Because carbon-12 defines the mole.")
        self.error = error
        self.calls: List[Tuple[str, str]] = []
        self.release = None

    async def answer(self, question: str, context: str) -> AIAnswer:
        self.calls.append((question, context))
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def current():
    return {"index": 3}


def _service(index, store, collaborator, current) -> QuestionAnswerService:
    return QuestionAnswerService(
        ContextWindowBuilder(index),
        store,
        collaborator,
        current_index=lambda: current["index"],
    )


def test_answer_is_scoped_to_current_turn_and_persisted(five_turn_index, store, current):
    collaborator = FakeCollaborator()
    service = _service(five_turn_index, store, collaborator, current)

    response = asyncio.run(service.ask("  Why 12 g?  "))

    assert response.question == "Why 12 g?"
    assert response.answer == "Because carbon-12 defines the mole."
    assert response.context_index == 3
    assert response.subsection_title == "Subsection 1.2"
    assert response.is_error is False
    assert "Current Message: Instructor: Line 1.2.0" in collaborator.calls[0][1]
    assert store.load_qa_history() == [response]


def test_pinned_turn_overrides_current(five_turn_index, store, current):
    service = _service(five_turn_index, store, FakeCollaborator(), current)
    service.pin(1)

    first = asyncio.run(service.ask("about the pinned one"))
    service.unpin()
    second = asyncio.run(service.ask("about the current one"))

    assert (first.context_index, second.context_index) == (1, 3)
    assert service.responses_for(1) == [first]


def test_pin_out_of_range(five_turn_index, store, current):
    service = _service(five_turn_index, store, FakeCollaborator(), current)

    with pytest.raises(IndexError):
        service.pin(5)


def test_failure_is_recorded_as_error_response(five_turn_index, store, current):
    service = _service(five_turn_index, store, FakeCollaborator(AIAnswer.failure("OpenAI API error: 401")), current)

    response = asyncio.run(service.ask("q"))

    assert response.is_error is True
    assert response.answer.startswith("Error getting AI response: OpenAI API error: 401")
    assert "Please check your internet connection" in response.answer
    assert service.is_loading is False


def test_raised_external_error_is_not_propagated(five_turn_index, store, current):
    service = _service(five_turn_index, store, FakeCollaborator(error=ExternalCallError("offline")), current)

    response = asyncio.run(service.ask("q"))

    assert response.is_error is True
    assert "offline" in response.answer


def test_empty_question_is_rejected_without_call(five_turn_index, store, current):
    collaborator = FakeCollaborator()
    service = _service(five_turn_index, store, collaborator, current)

    with pytest.raises(InputValidationError):
        asyncio.run(service.ask("   "))
    assert collaborator.calls == []
    assert store.medium.get(store.keys.ai_responses) is None


def test_question_on_an_empty_course_is_rejected(course_builder, store, current):
    collaborator = FakeCollaborator()
    service = _service(DialogueIndex(course_builder([])), store, collaborator, current)

    with pytest.raises(InputValidationError):
        asyncio.run(service.ask("anything?"))
    assert collaborator.calls == []


def test_only_one_question_in_flight(five_turn_index, store, current):
    collaborator = FakeCollaborator()
    service = _service(five_turn_index, store, collaborator, current)

    async def run() -> None:
        collaborator.release = asyncio.Event()
        pending = asyncio.create_task(service.ask("first"))
        await asyncio.sleep(0)
        assert service.is_loading is True
        with pytest.raises(QuestionInFlightError):
            await service.ask("second")
        collaborator.release.set()
        await pending
        assert service.is_loading is False

    asyncio.run(run())

    assert [item.question for item in service.history] == ["first"]


def test_history_survives_a_new_service(five_turn_index, store, current):
    service = _service(five_turn_index, store, FakeCollaborator(), current)
    first = asyncio.run(service.ask("q1"))

    resumed = _service(five_turn_index, store, FakeCollaborator(), current)
    second = asyncio.run(resumed.ask("q2"))

    assert [item.question for item in resumed.history] == ["q1", "q2"]
    assert second.id > first.id


class _FakeCompletions:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content="A mole is 6.022e23 entities.")
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _fake_client(completions: _FakeCompletions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_openai_collaborator_passes_model_settings():
    config = ModelConfig()
    completions = _FakeCompletions()
    collaborator = OpenAICollaborator(config, lambda: LLMClient(config, client=_fake_client(completions)))

    result = asyncio.run(collaborator.answer("What is a mole?", "ctx"))

    assert result == AIAnswer.ok("A mole is 6.022e23 entities.")
    assert completions.kwargs["model"] == "gpt-4-turbo-preview"
    assert completions.kwargs["max_tokens"] == 500
    assert completions.kwargs["messages"][1]["content"] == "What is a mole?"


def test_openai_collaborator_converts_failures():
    config = ModelConfig()
    failing = _FakeCompletions(error=openai.OpenAIError("connection refused"))
    collaborator = OpenAICollaborator(config, lambda: LLMClient(config, client=_fake_client(failing)))

    result = asyncio.run(collaborator.answer("q", "ctx"))

    assert result.success is False
    assert "connection refused" in result.error


def test_missing_api_key_becomes_failure(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    collaborator = OpenAICollaborator(ModelConfig())

    result = asyncio.run(collaborator.answer("q", "ctx"))

    assert result.success is False
    assert "API key not configured" in result.error
