"""Errors raised by tracker operations."""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for failures reported synchronously to the caller."""

    status_code = 500
    default_message = "Tracker error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class AlreadyActive(TrackerError):
    status_code = 409
    default_message = "Already tracking today's session"


class NoSession(TrackerError):
    status_code = 404
    default_message = "No active session"


class AlreadyPaused(TrackerError):
    status_code = 409
    default_message = "Session is already paused"


class RecordNotFound(TrackerError):
    """The session points at a day record the ledger does not hold."""

    default_message = "Day record not found"


class LockAcquisitionFailed(TrackerError):
    default_message = "Internal error: tracker state is busy"
