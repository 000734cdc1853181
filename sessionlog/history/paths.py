"""Helpers mapping session identifiers to transcript paths."""

from __future__ import annotations

import re
from pathlib import Path, PurePosixPath

from ..util.hashing import hex_digest

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]+")
_MAX_STEM_LENGTH = 80
TRANSCRIPT_SUFFIX = ".md"


def safe_file_stem(session_id: str) -> str:
    """Return a filesystem-friendly stem derived from *session_id*.

    Identifiers that had to be altered get a short digest suffix so two
    distinct ids never collapse onto the same file.
    """
    slug = _UNSAFE_CHARS_RE.sub("-", session_id).strip("-.")
    if slug == session_id and len(slug) <= _MAX_STEM_LENGTH:
        return slug
    suffix = hex_digest(session_id.encode("utf-8"))[:8]
    slug = slug[: _MAX_STEM_LENGTH - len(suffix) - 1] or "session"
    return f"{slug}-{suffix}"


def session_log_path(history_folder: str | Path, session_id: str) -> str:
    """Return the store-relative transcript path for *session_id*."""
    folder = PurePosixPath(str(history_folder).replace("\\", "/"))
    return str(folder / f"{safe_file_stem(session_id)}{TRANSCRIPT_SUFFIX}")


__all__ = ["TRANSCRIPT_SUFFIX", "safe_file_stem", "session_log_path"]
