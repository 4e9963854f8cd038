from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from dialogue_tutor.agents import (
    AICollaborator,
    ContextWindowBuilder,
    LLMClient,
    OpenAICollaborator,
    QuestionAnswerService,
)
from dialogue_tutor.config import Settings, load_settings
from dialogue_tutor.data_models import CourseContent, QAResponse, load_course
from dialogue_tutor.learning import DialogueIndex, NotesManager, ProgressStore
from dialogue_tutor.navigation import NavigationController
from dialogue_tutor.navigation.clock import Clock
from dialogue_tutor.session import SessionCoordinator
from dialogue_tutor.storage import JsonFileKeyValueStore, KeyValueStore
from dialogue_tutor.utils.logging import bind_course, configure_logging

logger = logging.getLogger(__name__)


class CourseSystem:
    """
    Facade wiring one course session together.

    Attributes
    ----------
    settings : Settings
        Configuration loaded from YAML.
    index : DialogueIndex
        The flattened course; fixed for the lifetime of the system.
    store : ProgressStore
        Namespaced persistence for index, stats, notes and Q&A history.
    session : SessionCoordinator
        Single writer of the current index and the autoplay flag.
    navigation : NavigationController
        Wheel/touch/keyboard/button input mapped onto the session.
    notes : NotesManager
        Learner notes.
    qa : QuestionAnswerService
        Questions to the AI collaborator and their history.
    """

    def __init__(
        self,
        settings: Settings,
        course: CourseContent,
        medium: KeyValueStore,
        collaborator: Optional[AICollaborator] = None,
        api_key: Optional[str] = None,
        clock: Optional[Clock] = None,
    ):
        self.settings = settings
        self.course = course
        self.index = DialogueIndex(course)
        self.store = ProgressStore(medium, settings.course.storage_prefix)
        self.session = SessionCoordinator(self.index, self.store, settings.autoplay)
        self.navigation = NavigationController(self.session, settings.navigation, clock=clock)
        self.notes = NotesManager(self.store)
        self.context_builder = ContextWindowBuilder(self.index, settings.context.history_turns)
        if collaborator is None:
            collaborator = OpenAICollaborator(
                settings.model,
                client_factory=lambda: LLMClient(settings.model, api_key=api_key),
            )
        self.qa = QuestionAnswerService(
            self.context_builder,
            self.store,
            collaborator,
            current_index=lambda: self.session.current_index,
        )
        logger.info(
            "Loaded course '%s': %s messages in %s sections",
            settings.course.title,
            len(self.index),
            self.index.totals.total_sections,
        )

    @classmethod
    def from_config(
        cls,
        config_path: str | Path | None = None,
        api_key: Optional[str] = None,
        collaborator: Optional[AICollaborator] = None,
    ) -> "CourseSystem":
        """
        Build a system from a YAML configuration file.

        Parameters
        ----------
        config_path : str | Path | None, default=None
            Path to the YAML configuration. If None, config/default.yaml is used when present.
        api_key : Optional[str], default=None
            OpenAI API key. If None, OPENAI_API_KEY is read when the first question is asked.
        collaborator : Optional[AICollaborator], default=None
            Replacement for the OpenAI-backed collaborator.

        Raises
        ------
        FileNotFoundError
            If `config_path` or the course file does not exist.
        ValueError
            If the configuration or the course file is invalid.
        """
        settings = load_settings(config_path)
        settings.paths.logs_dir.mkdir(parents=True, exist_ok=True)
        configure_logging(
            settings.logging.level,
            settings.logging.use_json,
            log_file=settings.paths.logs_dir / "dialogue_tutor.log",
        )
        bind_course(settings.course.storage_prefix, settings.course.title)
        course = load_course(settings.course.content_path)
        medium = JsonFileKeyValueStore(settings.paths.store_path)
        return cls(settings, course, medium, collaborator=collaborator, api_key=api_key)

    async def ask(self, question: str, turn_index: Optional[int] = None) -> QAResponse:
        """Ask about `turn_index` (or the current message) without changing the pinned turn."""
        if turn_index is None:
            return await self.qa.ask(question)
        previous = self.qa.pinned_index
        self.qa.pin(turn_index)
        try:
            return await self.qa.ask(question)
        finally:
            self.qa.pinned_index = previous
