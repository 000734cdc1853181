"""Detect which context files changed since they were last observed."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .hash_cache import DigestCache, HashCache

logger = logging.getLogger(__name__)


class ContextFileMonitor:
    """Track digests of context files and report modifications.

    The monitor is the collaborator that feeds :class:`DigestCache`: every
    digest computed through *hash_cache* is remembered for the mtime it was
    computed at, so unchanged files are not read again on the next check.
    """

    def __init__(self, hash_cache: HashCache, cache: DigestCache) -> None:
        self._hash_cache = hash_cache
        self._cache = cache
        self._observed: dict[str, str] = {}

    @property
    def observed(self) -> dict[str, str]:
        """Return a copy of the last digest seen for each tracked path."""
        return dict(self._observed)

    def _current_digest(self, path: str) -> str:
        entry = self._hash_cache.compute_entry(path)
        if entry is None:
            self._cache.forget(path)
            return ""
        self._cache.remember(entry)
        return entry.digest

    def observe(self, paths: Iterable[str]) -> dict[str, str]:
        """Record the current digest of *paths* as the new baseline."""
        snapshot = {path: self._current_digest(path) for path in paths}
        self._observed.update(snapshot)
        return snapshot

    def changed(self, paths: Iterable[str]) -> list[str]:
        """Return the paths whose content differs from the recorded baseline.

        Paths seen for the first time count as changed.  A file that
        disappeared has an empty digest and therefore counts as changed once.
        The baseline is updated to the current digests.
        """
        result: list[str] = []
        for path in paths:
            digest = self._current_digest(path)
            previous = self._observed.get(path)
            if previous is None or previous != digest:
                result.append(path)
            self._observed[path] = digest
        if result:
            logger.debug("Context files changed: %s", ", ".join(result))
        return result

    def forget(self, path: str) -> None:
        self._observed.pop(path, None)
        self._cache.forget(path)


__all__ = ["ContextFileMonitor"]
