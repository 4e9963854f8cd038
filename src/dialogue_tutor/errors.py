"""Exception types shared across the session engine.

None of these are fatal to the process: callers catch them at the handler that
triggered the operation and surface a message, leaving the rest of the session intact.
"""

from __future__ import annotations


class TutorError(Exception):
    """Base class for session engine errors."""


class InputValidationError(TutorError, ValueError):
    """Rejected user input (empty note fields, empty question). Nothing was persisted."""


class QuestionInFlightError(TutorError, RuntimeError):
    """A question was submitted while another one is still awaiting its answer."""


class ExternalCallError(TutorError):
    """The AI collaborator failed (network, auth, non-2xx, missing configuration)."""


class PersistenceReadError(TutorError):
    """A single persisted value could not be decoded."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Could not read '{key}': {reason}")
        self.key = key
        self.reason = reason
