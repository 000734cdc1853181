"""Error types raised by the sessionlog core."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .history.entry import TranscriptEntry


class SessionLogError(Exception):
    """Base class for sessionlog exceptions."""


class PersistenceError(SessionLogError):
    """Raised when the byte store refuses to append or create a transcript."""

    def __init__(self, session_id: str, path: Path | str, detail: str | None = None) -> None:
        """Record the failing ``session_id`` and ``path`` for diagnostics."""
        self.session_id = session_id
        self.path = str(path)
        message = f"failed to persist entry for session {session_id} at {self.path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class HashUnavailable(SessionLogError):
    """Raised by file resolvers when the bytes of *path* cannot be read."""

    def __init__(self, path: str, detail: str | None = None) -> None:
        self.path = path
        message = f"cannot hash {path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class RenderFailure(SessionLogError):
    """Raised when rendering one entry of a batch fails."""

    def __init__(self, index: int, entry: TranscriptEntry) -> None:
        """Remember the position and entry whose render rejected."""
        self.index = index
        self.entry = entry
        super().__init__(f"failed to render transcript entry #{index} ({entry.role.value})")


__all__ = [
    "HashUnavailable",
    "PersistenceError",
    "RenderFailure",
    "SessionLogError",
]
