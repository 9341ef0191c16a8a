"""Exceptions raised or emitted by the live client."""

from typing import Any


class LiveClientError(Exception):
    """Base class for client-side failures."""


class TransportError(LiveClientError):
    """Wrap transport or API failures when streaming a turn."""

    def __init__(self, status_code: int | None, detail: Any):
        super().__init__(str(detail))
        self.status_code = status_code
        self.detail = detail


class NotConnectedError(LiveClientError):
    """Raised when a turn is sent before connect() stored a session config."""


class TurnInProgressError(LiveClientError):
    """Raised when send() is called while a previous turn is still streaming."""
