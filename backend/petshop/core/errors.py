"""Error taxonomy for the scheduling engine.

Services raise these; ``petshop.services.appointment_actions`` turns them into
``ActionResult`` values so nothing escapes to the request handler. They derive
from ``ValueError`` so routers can keep catching the generic type.
"""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    """Stable identifiers for each failure category."""

    VALIDATION = "validation"
    STATE = "state"
    NOT_FOUND = "not_found"
    PERSISTENCE = "persistence"


class EngineError(ValueError):
    """Base class for recoverable engine failures."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def user_message(self) -> str:
        """Message suitable for showing to the end user."""
        return self.message


class ValidationError(EngineError):
    """Input rejected by a business rule (restriction, date range, discount)."""

    kind = ErrorKind.VALIDATION


class StateError(EngineError):
    """Operation not allowed for the appointment's current state."""

    kind = ErrorKind.STATE

    @property
    def user_message(self) -> str:
        return f"Operation not allowed in current state: {self.message}"


class NotFoundError(EngineError):
    """A referenced pet, service, appointment or package does not exist."""

    kind = ErrorKind.NOT_FOUND


class PersistenceError(EngineError):
    """The underlying storage write failed; nothing was applied."""

    kind = ErrorKind.PERSISTENCE

    @property
    def user_message(self) -> str:
        return "The operation could not be completed. Please try again."


__all__ = [
    "EngineError",
    "ErrorKind",
    "NotFoundError",
    "PersistenceError",
    "StateError",
    "ValidationError",
]
