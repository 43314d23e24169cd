"""Exceptions raised by the status lifecycle."""

from __future__ import annotations


class StatusValidationError(ValueError):
    """Raised when a status cannot be persisted.

    ``errors`` maps a field name to the list of messages collected for it, so
    callers can surface every problem at once rather than the first one.
    """

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = errors
        details = "; ".join(
            f"{field} {message}" for field, messages in errors.items() for message in messages
        )
        super().__init__(f"Validation failed: {details}")


class StatusNotFoundError(LookupError):
    """Raised when a referenced status identifier does not exist."""

    def __init__(self, field: str, status_id: int) -> None:
        self.field = field
        self.status_id = status_id
        super().__init__(f"{field} references missing status {status_id}")
