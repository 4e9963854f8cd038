"""Tests for persisting session progress in a flat key-value medium."""

from __future__ import annotations

import json

import pytest

from dialogue_tutor.data_models import Note, ProgressSummary, QAResponse
from dialogue_tutor.errors import PersistenceReadError
from dialogue_tutor.learning import ProgressStore, Stats, deserialize_stats, serialize_stats
from dialogue_tutor.storage import InMemoryKeyValueStore, JsonFileKeyValueStore


def _mixed_stats() -> Stats:
    return Stats(
        messages_viewed={9, 0, 4},
        sections_visited={2, 1, "appendix"},
        subsections_visited={"2:2.1", "1:1.1"},
        images_viewed={"4:image:0"},
        videos_watched=set(),
        quizzes_completed={"9:quiz:1", "9:quiz:0"},
        correct_answers=1,
        total_quiz_attempts=2,
    )


def test_stats_round_trip_keeps_membership_and_types():
    stats = _mixed_stats()

    payload = json.loads(json.dumps(serialize_stats(stats)))
    restored = deserialize_stats(payload)

    assert restored == stats
    assert payload["messagesViewed"] == [0, 4, 9]
    assert payload["sectionsVisited"] == [1, 2, "appendix"]


def test_deserialize_rejects_inconsistent_counters():
    with pytest.raises(PersistenceReadError) as excinfo:
        deserialize_stats({"correctAnswers": 3, "totalQuizAttempts": 1}, key="x_stats")
    assert excinfo.value.key == "x_stats"


def test_deserialize_fills_missing_fields():
    restored = deserialize_stats({"messagesViewed": [1, 2]})

    assert restored.messages_viewed == {1, 2}
    assert restored.quizzes_completed == set()
    assert restored.total_quiz_attempts == 0


def test_keys_are_namespaced(store, medium):
    store.save_current_index(3)
    store.save_stats(Stats())
    store.save_notes([])
    store.save_qa_history([])
    store.save_progress_summary(ProgressSummary(current_turn=3, total_turns=5, completion_percentage=20))

    assert sorted(medium.keys()) == [
        "test_course_ai_responses",
        "test_course_current_index",
        "test_course_notes",
        "test_course_progress",
        "test_course_stats",
    ]
    assert medium.get("test_course_current_index") == "3"


def test_missing_keys_yield_defaults(store):
    assert store.load_current_index() == 0
    assert store.load_stats() == Stats()
    assert store.load_notes() == []
    assert store.load_qa_history() == []
    assert store.load_progress_summary() is None


def test_malformed_key_falls_back_alone():
    """A corrupt stats value does not prevent the index or notes from loading."""
    note = Note(id=1, title="Moles", content="6.022e23 per mole")
    medium = InMemoryKeyValueStore(
        {
            "c_current_index": "4",
            "c_stats": "{not json",
            "c_notes": json.dumps([note.model_dump(mode="json", by_alias=True)]),
            "c_ai_responses": json.dumps([{"question": "missing fields"}]),
        }
    )
    store = ProgressStore(medium, prefix="c")

    assert store.load_current_index() == 4
    assert store.load_stats() == Stats()
    assert [item.title for item in store.load_notes()] == ["Moles"]
    assert store.load_qa_history() == []


@pytest.mark.parametrize("raw", ['"3"', "-1", "true", "2.5", "[1]"])
def test_bad_index_values_fall_back_to_zero(raw):
    store = ProgressStore(InMemoryKeyValueStore({"c_current_index": raw}), prefix="c")

    assert store.load_current_index() == 0


def test_notes_and_history_round_trip(store):
    note = Note(id=10, title="T", content="C", section_title="S", subsection_title="SS", turn_index=2)
    response = QAResponse(id=11, question="Q?", answer="A.", context_index=2, is_error=False)

    store.save_notes([note])
    store.save_qa_history([response])

    assert store.load_notes() == [note]
    assert store.load_qa_history() == [response]
    saved = json.loads(store.medium.get(store.keys.ai_responses))
    assert saved[0]["contextIndex"] == 2
    assert saved[0]["isError"] is False


def test_clear_progress_keeps_notes_and_history(store, medium):
    store.save_current_index(2)
    store.save_stats(_mixed_stats())
    store.save_progress_summary(ProgressSummary(current_turn=2, total_turns=5))
    store.save_notes([Note(id=1, title="a", content="b")])
    store.save_qa_history([QAResponse(id=2, question="q", answer="a", context_index=0)])

    store.clear_progress()

    assert sorted(medium.keys()) == ["test_course_ai_responses", "test_course_notes"]


def test_write_failures_are_logged_not_raised(caplog):
    class FailingStore(InMemoryKeyValueStore):
        def set(self, key: str, value: str) -> None:
            raise OSError("quota exceeded")

    store = ProgressStore(FailingStore(), prefix="c")

    store.save_stats(Stats())

    assert "quota exceeded" in caplog.text


def test_json_file_store_persists_across_instances(temp_dir):
    path = temp_dir / "nested" / "store.json"
    first = ProgressStore(JsonFileKeyValueStore(path), prefix="c")
    first.save_current_index(7)
    first.save_stats(_mixed_stats())

    second = ProgressStore(JsonFileKeyValueStore(path), prefix="c")

    assert second.load_current_index() == 7
    assert second.load_stats() == _mixed_stats()


def test_json_file_store_ignores_corrupt_file(temp_dir):
    path = temp_dir / "store.json"
    path.write_text("[1, 2", encoding="utf-8")
    medium = JsonFileKeyValueStore(path)

    assert medium.get("anything") is None
    medium.set("k", "v")
    assert JsonFileKeyValueStore(path).get("k") == "v"
