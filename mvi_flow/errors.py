"""Domain exceptions raised by the MVI flow services."""

from __future__ import annotations


class MVIError(Exception):
    """Base class for errors surfaced by the MVI services."""


class SessionNotFoundError(MVIError, KeyError):
    """Raised when a session id has no stored project."""

    def __init__(self, session_id: str) -> None:
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return "Session not found"


class UnsupportedExportFormatError(MVIError, ValueError):
    """Raised when an export is requested in an unknown format."""

    def __init__(self, export_format: str) -> None:
        super().__init__(f"Unsupported export format: {export_format}")
        self.export_format = export_format


class LLMUnavailableError(MVIError):
    """Raised when the chat provider is not configured or the call failed."""


class PackNotFoundError(MVIError, KeyError):
    """Raised when a context pack id is not in the library catalog."""

    def __init__(self, pack_id: str) -> None:
        super().__init__(pack_id)
        self.pack_id = pack_id

    def __str__(self) -> str:
        return f"Context pack not found: {self.pack_id}"
