"""
Sync Errors

Exception hierarchy for the script player and its renderer connection.
"""

from typing import Optional


class SyncError(RuntimeError):
    """Base exception raised by the narration sync core."""


class ConnectTimeout(SyncError):
    """Raised when the renderer connection does not open in time."""

    def __init__(self, endpoint: str, timeout: float):
        self.endpoint = endpoint
        self.timeout = timeout
        super().__init__(
            f"Timeout of {timeout * 1000:.0f}ms exceeded while connecting to {endpoint}"
        )


class ConnectError(SyncError):
    """Raised when the renderer connection fails at the transport level."""

    def __init__(self, endpoint: str, cause: Optional[BaseException] = None):
        self.endpoint = endpoint
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to connect to {endpoint}{detail}")


class ChannelClosed(SyncError):
    """Raised when a message is sent on a connection that is not open."""


class ConnectionClosed(SyncError):
    """Raised when a sprite wait is aborted because the connection closed."""

    def __init__(self, sprite_id: Optional[str] = None):
        self.sprite_id = sprite_id
        if sprite_id is None:
            message = "Connection closed before sprite ended"
        else:
            message = f"Connection closed before sprite {sprite_id} ended"
        super().__init__(message)


class MissingTimingEntry(SyncError):
    """Raised when the timing table has no entry for a line index."""

    def __init__(self, index: int):
        self.index = index
        self.key = f"part{index}"
        super().__init__(f"Timing table has no entry for {self.key}")


class MissingTerminalPunctuation(SyncError):
    """Raised when a script line does not end with sentence punctuation."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Line is missing terminal punctuation: {text!r}")


__all__ = [
    "SyncError",
    "ConnectTimeout",
    "ConnectError",
    "ChannelClosed",
    "ConnectionClosed",
    "MissingTimingEntry",
    "MissingTerminalPunctuation",
]
