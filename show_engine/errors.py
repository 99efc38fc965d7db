"""Error taxonomy shared by the show control engine."""
from __future__ import annotations


class ShowControlError(Exception):
    """Base class for recoverable engine failures."""


class NotFoundError(ShowControlError, FileNotFoundError):
    """Raised when the selected cue sheet does not exist."""


class ParseError(ShowControlError, ValueError):
    """Raised when a cue sheet is malformed, incomplete, or mistyped."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(f"{field}: {message}" if field else message)
        self.field = field


class WatchSetupError(ShowControlError):
    """Raised when a file watch cannot be registered."""


class TransportError(ShowControlError, OSError):
    """Raised when a trigger datagram cannot be sent."""
