"""Shared fixtures for the session engine tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any, Dict, List

import pytest

from dialogue_tutor.config import AutoplayConfig, NavigationConfig
from dialogue_tutor.data_models import CourseContent
from dialogue_tutor.learning import DialogueIndex, ProgressStore
from dialogue_tutor.navigation import GestureCoalescer, ManualClock, NavigationController
from dialogue_tutor.session import SessionCoordinator
from dialogue_tutor.storage import InMemoryKeyValueStore

SAMPLE_COURSE_PATH = Path(__file__).resolve().parents[1] / "data" / "sample_course.json"


def build_course(layout: List[List[int]]) -> CourseContent:
    """
    Build a course from a layout such as [[2, 3], [1]]: two sections, the first with two
    subsections of 2 and 3 turns, the second with one subsection of 1 turn.
    """
    sections: List[Dict[str, Any]] = []
    for s_pos, subsection_sizes in enumerate(layout, start=1):
        subsections = []
        for sub_pos, size in enumerate(subsection_sizes, start=1):
            subsections.append(
                {
                    "id": f"{s_pos}.{sub_pos}",
                    "title": f"Subsection {s_pos}.{sub_pos}",
                    "conversations": [
                        {
                            "speaker": "Teacher" if turn % 2 == 0 else "Student",
                            "text": f"Line {s_pos}.{sub_pos}.{turn}",
                        }
                        for turn in range(size)
                    ],
                }
            )
        sections.append({"id": s_pos, "title": f"Section {s_pos}", "subsections": subsections})
    return CourseContent.model_validate({"sections": sections})


@pytest.fixture
def five_turn_course() -> CourseContent:
    return build_course([[3, 2]])


@pytest.fixture
def five_turn_index(five_turn_course) -> DialogueIndex:
    return DialogueIndex(five_turn_course)


@pytest.fixture
def medium() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(medium) -> ProgressStore:
    return ProgressStore(medium, prefix="test_course")


@pytest.fixture
def session(five_turn_index, store) -> SessionCoordinator:
    return SessionCoordinator(five_turn_index, store, AutoplayConfig())


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def controller(session, clock) -> NavigationController:
    config = NavigationConfig()
    return NavigationController(session, config, coalescer=GestureCoalescer(config.cooldown_ms, clock))


@pytest.fixture
def temp_dir():
    """Create a temporary directory for on-disk stores."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def course_builder():
    return build_course


@pytest.fixture
def sample_course_path() -> Path:
    return SAMPLE_COURSE_PATH
