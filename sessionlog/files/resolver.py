"""File identity resolution used by :class:`~sessionlog.files.HashCache`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol

from ..errors import HashUnavailable
from ..util.time import mtime_millis


@dataclass(frozen=True, slots=True)
class FileHandle:
    """Resolved file: the caller-facing *path* and its location on disk."""

    path: str
    location: Path


class FileResolver(Protocol):
    """Access to files addressed by store-relative paths."""

    def resolve(self, path: str) -> FileHandle | None:
        """Return a handle for *path* or ``None`` when no such file exists."""

    def read_all(self, handle: FileHandle) -> bytes:
        """Return the full content of *handle*; raise :class:`HashUnavailable`."""

    def mtime(self, handle: FileHandle) -> float:
        """Return the modification marker of *handle*."""


class LocalFileResolver:
    """Resolve paths relative to a directory on the local filesystem.

    Modification markers are milliseconds since the epoch.
    """

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, path: str) -> FileHandle | None:
        relative = PurePosixPath(str(path).replace("\\", "/"))
        if relative.is_absolute() or ".." in relative.parts:
            return None
        location = self._root.joinpath(*relative.parts)
        if not location.is_file():
            return None
        return FileHandle(path=str(path), location=location)

    def read_all(self, handle: FileHandle) -> bytes:
        try:
            return handle.location.read_bytes()
        except OSError as exc:
            raise HashUnavailable(handle.path, str(exc)) from exc

    def mtime(self, handle: FileHandle) -> float:
        try:
            return mtime_millis(handle.location.stat().st_mtime)
        except OSError as exc:
            raise HashUnavailable(handle.path, str(exc)) from exc


__all__ = ["FileHandle", "FileResolver", "LocalFileResolver"]
