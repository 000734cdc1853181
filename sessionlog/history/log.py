"""Append-only transcript log for agent sessions."""

from __future__ import annotations

import logging

from ..errors import PersistenceError
from ..log import log_event
from ..settings import HistorySettings
from .entry import SessionHandle, TranscriptEntry
from .format import format_appended_block, format_new_document, parse_document
from .store import AtomicByteStore, ByteStore

logger = logging.getLogger(__name__)

_ENCODING = "utf-8"


class TranscriptLog:
    """Persist session entries as markdown with minimal I/O.

    Every entry after the first costs one append proportional to the entry
    size; the existing document is never read or rewritten.  The log does not
    lock: callers must keep at most one :meth:`append_entry` in flight per
    session unless the store implements :class:`AtomicByteStore`.
    """

    def __init__(
        self,
        store: ByteStore,
        settings: HistorySettings | None = None,
        *,
        atomic: bool | None = None,
    ) -> None:
        """Wrap *store*; *atomic* forces or disables ``append_or_create`` use."""
        self._store = store
        self._settings = settings or HistorySettings()
        if atomic is None:
            atomic = isinstance(store, AtomicByteStore)
        self._atomic = atomic

    # ------------------------------------------------------------------
    @property
    def store(self) -> ByteStore:
        return self._store

    # ------------------------------------------------------------------
    @property
    def settings(self) -> HistorySettings:
        return self._settings

    # ------------------------------------------------------------------
    @property
    def enabled(self) -> bool:
        """Return ``True`` when entries are actually persisted."""
        return self._settings.enabled

    # ------------------------------------------------------------------
    def session_for(self, session_id: str, *, title: str = "") -> SessionHandle:
        """Return a handle whose transcript lives in the configured folder."""
        return SessionHandle.for_session(
            session_id,
            history_folder=self._settings.history_folder,
            title=title,
        )

    # ------------------------------------------------------------------
    def append_entry(self, session: SessionHandle, entry: TranscriptEntry) -> None:
        """Persist *entry* at the end of the transcript of *session*.

        Existing documents receive a single append of the formatted block
        prefixed by one newline; missing documents are created once with the
        front matter followed by the block.  Store failures are raised as
        :class:`PersistenceError` and never retried here.
        """
        if not self.enabled:
            logger.debug("Chat history disabled; dropping entry for %s", session.id)
            return
        path = session.log_path
        try:
            if self._atomic:
                created = self._store.append_or_create(  # type: ignore[attr-defined]
                    path,
                    format_new_document(session, entry).encode(_ENCODING),
                    format_appended_block(entry).encode(_ENCODING),
                )
            elif self._store.exists(path):
                self._store.append(path, format_appended_block(entry).encode(_ENCODING))
                created = False
            else:
                self._store.create(path, format_new_document(session, entry).encode(_ENCODING))
                created = True
        except PersistenceError:
            raise
        except OSError as exc:
            logger.exception("Failed to persist transcript entry to %s", path)
            raise PersistenceError(session.id, path, str(exc)) from exc
        log_event(
            logger,
            "transcript.append",
            session_id=session.id,
            path=path,
            created=created,
            role=entry.role.value,
        )

    # ------------------------------------------------------------------
    def load_entries(self, session: SessionHandle) -> list[TranscriptEntry]:
        """Return the persisted entries of *session* in append order."""
        _front_matter, entries = parse_document(self._read_document(session))
        return entries

    # ------------------------------------------------------------------
    def load_front_matter(self, session: SessionHandle) -> dict[str, object]:
        """Return the front matter fields of the transcript of *session*."""
        front_matter, _entries = parse_document(self._read_document(session))
        return front_matter

    # ------------------------------------------------------------------
    def _read_document(self, session: SessionHandle) -> str:
        path = session.log_path
        try:
            if not self._store.exists(path):
                return ""
            raw = self._store.read(path)
        except OSError as exc:
            logger.exception("Failed to read transcript %s", path)
            raise PersistenceError(session.id, path, str(exc)) from exc
        return raw.decode(_ENCODING, errors="replace")


__all__ = ["TranscriptLog"]
