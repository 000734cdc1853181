"""Content digests that skip re-reading files whose mtime is unchanged."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from ..errors import HashUnavailable
from ..log import log_event
from ..util.hashing import Hasher, hasher_for
from .resolver import FileResolver

logger = logging.getLogger(__name__)

DigestLookup = Callable[[str, float], str | None]


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Digest of *path* valid only for the exact *mtime* that produced it."""

    path: str
    mtime: float
    digest: str


class HashCache:
    """Compute content digests, consulting an optional external lookup first.

    The lookup is a pure query keyed by ``(path, mtime)``; this class never
    writes into it.  Populating it from returned digests is left to the
    caller (see :class:`~sessionlog.files.ContextFileMonitor`).
    """

    def __init__(
        self,
        resolver: FileResolver,
        *,
        lookup: DigestLookup | None = None,
        hasher: Hasher | None = None,
    ) -> None:
        self._resolver = resolver
        self._lookup = lookup
        self._hasher = hasher or hasher_for()

    @property
    def resolver(self) -> FileResolver:
        return self._resolver

    def stat(self, path: str) -> float | None:
        """Return the current modification marker of *path*, if it exists."""
        handle = self._resolver.resolve(path)
        if handle is None:
            return None
        return self._resolver.mtime(handle)

    def compute_hash(self, path: str) -> str:
        """Return the lowercase hex digest of *path*.

        A missing file yields ``""`` without consulting the lookup.  When the
        lookup knows a digest for the current mtime it is returned verbatim
        and no file bytes are read.  Unreadable files also yield ``""``.
        """
        handle = self._resolver.resolve(path)
        if handle is None:
            return ""
        try:
            mtime = self._resolver.mtime(handle)
            if self._lookup is not None:
                cached = self._lookup(path, mtime)
                if cached is not None:
                    return cached
            data = self._resolver.read_all(handle)
        except HashUnavailable as exc:
            logger.warning("Hash unavailable for %s: %s", path, exc)
            return ""
        digest = self._hasher()
        digest.update(data)
        value = digest.hexdigest().lower()
        log_event(logger, "hash.computed", path=path, size=len(data))
        return value

    def compute_entry(self, path: str) -> CacheEntry | None:
        """Return the digest of *path* together with the mtime it belongs to.

        The mtime is read before the digest so a concurrent modification can
        only make the entry look stale, never fresh.
        """
        try:
            mtime = self.stat(path)
        except HashUnavailable as exc:
            logger.warning("Hash unavailable for %s: %s", path, exc)
            return None
        if mtime is None:
            return None
        digest = self.compute_hash(path)
        if not digest:
            return None
        return CacheEntry(path=path, mtime=mtime, digest=digest)


class DigestCache:
    """In-memory ``(path, mtime) -> digest`` store usable as a lookup."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    def __call__(self, path: str, mtime: float) -> str | None:
        return self.lookup(path, mtime)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, path: str, mtime: float) -> str | None:
        """Return the digest remembered for *path* if *mtime* still matches."""
        entry = self._entries.get(path)
        if entry is None or entry.mtime != mtime:
            return None
        return entry.digest

    def remember(self, entry: CacheEntry) -> None:
        self._entries[entry.path] = entry

    def get(self, path: str) -> CacheEntry | None:
        return self._entries.get(path)

    def forget(self, path: str) -> None:
        self._entries.pop(path, None)


__all__ = ["CacheEntry", "DigestCache", "DigestLookup", "HashCache"]
