"""Load a saved session into a view through :class:`RenderScheduler`."""

from __future__ import annotations

import logging
from typing import Protocol

from ..errors import PersistenceError, RenderFailure
from ..history.entry import SessionHandle, TranscriptEntry
from ..history.log import TranscriptLog
from .scheduler import RenderScheduler

logger = logging.getLogger(__name__)


class SessionView(Protocol):
    """Narrow set of view callbacks the loader drives."""

    def clear_chat(self) -> None:
        """Remove all displayed messages."""

    async def display_message(self, entry: TranscriptEntry, should_scroll: bool) -> None:
        """Render *entry*, scrolling to it only when *should_scroll* is set."""

    def scroll_to_bottom(self) -> None:
        """Settle the view on the latest message."""


class SessionLoader:
    """Connect a :class:`TranscriptLog` with a :class:`SessionView`."""

    def __init__(
        self,
        log: TranscriptLog,
        view: SessionView,
        scheduler: RenderScheduler | None = None,
    ) -> None:
        self._log = log
        self._view = view
        self._scheduler = scheduler or RenderScheduler()
        self._current: SessionHandle | None = None

    @property
    def scheduler(self) -> RenderScheduler:
        return self._scheduler

    @property
    def current_session(self) -> SessionHandle | None:
        return self._current

    def set_current_session(self, session: SessionHandle | None) -> None:
        self._current = session

    async def load_session_history(self) -> list[TranscriptEntry]:
        """Render the persisted history of the current session.

        Returns the entries that were handed to the view.  Without a current
        session nothing is cleared or rendered.
        """
        session = self._current
        if session is None:
            return []
        try:
            entries = self._log.load_entries(session)
        except PersistenceError:
            logger.exception("Error loading session history for %s", session.id)
            raise
        try:
            await self._scheduler.render_batch(
                entries,
                self._view.display_message,
                self._view.scroll_to_bottom,
                self._view.clear_chat,
            )
        except RenderFailure as exc:
            logger.error(
                "Failed to render entry %d of session %s",
                exc.index,
                session.id,
                exc_info=exc.__cause__,
            )
            raise
        return entries

    async def add_entry(self, entry: TranscriptEntry) -> None:
        """Persist *entry* for the current session and display it live."""
        session = self._current
        if session is None:
            raise RuntimeError("no current session")
        self._log.append_entry(session, entry)
        await self._scheduler.render_live(entry, self._view.display_message)


__all__ = ["SessionLoader", "SessionView"]
