from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from dialogue_tutor.data_models import Turn
from dialogue_tutor.learning.dialogue_index import DialogueIndex

SYSTEM_PROMPT = (
    "You are a chemistry tutor with access to a chemistry textbook. "
    "The student is currently in a conversation about chemistry. "
    "Current context: {context}. "
    "Please provide a helpful, educational response to their question."
)


@dataclass(frozen=True)
class ContextWindow:
    """Recent dialogue surrounding the turn a question is about."""

    target_index: int
    section_title: str
    subsection_title: str
    turns: Tuple[Turn, ...]

    @property
    def current(self) -> Turn:
        return self.turns[-1]

    def recent_conversation(self) -> str:
        return "\n".join(turn.render() for turn in self.turns)

    def render(self) -> str:
        return (
            f"Current Section: {self.section_title}\n"
            f"Current Subsection: {self.subsection_title}\n"
            f"Recent Conversation:\n"
            f"{self.recent_conversation()}\n"
            f"Current Message: {self.current.render()}"
        )


class ContextWindowBuilder:
    """Slice the turns leading up to a target index, never reaching before index 0."""

    def __init__(self, index: DialogueIndex, history_turns: int = 5):
        if history_turns < 0:
            raise ValueError("history_turns must be non-negative")
        self.index = index
        self.history_turns = history_turns

    def build(self, target_index: int) -> ContextWindow:
        target = self.index.at(target_index)
        start = max(0, target_index - self.history_turns)
        return ContextWindow(
            target_index=target_index,
            section_title=target.section_title or "Unknown",
            subsection_title=target.subsection_title or "Unknown",
            turns=self.index.window(start, target_index + 1),
        )

    def render(self, target_index: int) -> str:
        return self.build(target_index).render()


def build_messages(question: str, context: str) -> List[Dict[str, str]]:
    """Compose the system and user messages for one question."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT.format(context=context)},
        {"role": "user", "content": question},
    ]
