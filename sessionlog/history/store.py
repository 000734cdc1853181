"""Path-addressable byte stores backing transcript documents."""

from __future__ import annotations

import logging
import os
from pathlib import Path, PurePosixPath
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class ByteStore(Protocol):
    """Minimal persistence contract used by :class:`TranscriptLog`.

    ``append`` must concatenate *data* after the existing content without
    reading or rewriting earlier bytes.  ``read`` is only used when loading a
    transcript, never on the append path.
    """

    def exists(self, path: str) -> bool:
        """Return ``True`` when a resource is stored at *path*."""

    def append(self, path: str, data: bytes) -> None:
        """Append *data* to the existing resource at *path*."""

    def create(self, path: str, data: bytes) -> None:
        """Create the resource at *path* holding exactly *data*."""

    def read(self, path: str) -> bytes:
        """Return the full content stored at *path*."""


@runtime_checkable
class AtomicByteStore(ByteStore, Protocol):
    """Store able to append-or-create without a check-then-act race."""

    def append_or_create(self, path: str, create_data: bytes, append_data: bytes) -> bool:
        """Create *path* with *create_data* or append *append_data* to it.

        Returns ``True`` when the resource was created by this call.
        """


class FileByteStore:
    """Local filesystem store rooted at *root*.

    Writes are all-or-nothing: a failed append truncates the file back to its
    previous size and a failed create removes the partial file.
    """

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    # ------------------------------------------------------------------
    def resolve(self, path: str) -> Path:
        """Return the absolute filesystem path for store-relative *path*."""
        relative = PurePosixPath(str(path).replace("\\", "/"))
        if relative.is_absolute() or ".." in relative.parts:
            raise PermissionError(f"path escapes store root: {path}")
        return self._root.joinpath(*relative.parts)

    # ------------------------------------------------------------------
    def exists(self, path: str) -> bool:
        return self.resolve(path).is_file()

    # ------------------------------------------------------------------
    def read(self, path: str) -> bytes:
        return self.resolve(path).read_bytes()

    # ------------------------------------------------------------------
    def append(self, path: str, data: bytes) -> None:
        target = self.resolve(path)
        fd = os.open(target, os.O_WRONLY | os.O_APPEND)
        try:
            self._write_all(fd, data, rollback_size=os.fstat(fd).st_size)
        finally:
            os.close(fd)

    # ------------------------------------------------------------------
    def create(self, path: str, data: bytes) -> None:
        target = self.resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_EXCL)
        try:
            self._write_all(fd, data, rollback_size=None)
        except OSError:
            os.close(fd)
            target.unlink(missing_ok=True)
            raise
        os.close(fd)

    # ------------------------------------------------------------------
    def append_or_create(self, path: str, create_data: bytes, append_data: bytes) -> bool:
        try:
            self.create(path, create_data)
        except FileExistsError:
            self.append(path, append_data)
            return False
        return True

    # ------------------------------------------------------------------
    @staticmethod
    def _write_all(fd: int, data: bytes, *, rollback_size: int | None) -> None:
        view = memoryview(data)
        try:
            while view:
                written = os.write(fd, view)
                view = view[written:]
        except OSError:
            if rollback_size is not None:
                try:
                    os.ftruncate(fd, rollback_size)
                except OSError:  # pragma: no cover - best effort rollback
                    logger.exception("Failed to roll back partial append")
            raise


__all__ = ["AtomicByteStore", "ByteStore", "FileByteStore"]
