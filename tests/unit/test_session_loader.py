import asyncio
import datetime
import logging

import pytest

from sessionlog.errors import PersistenceError, RenderFailure
from sessionlog.history import Role, SessionHandle, TranscriptEntry, TranscriptLog
from sessionlog.render import SessionLoader
from tests.store_utils import RecordingStore

pytestmark = pytest.mark.unit

_T0 = datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.UTC)


class FakeView:
    def __init__(self, fail_on: str | None = None) -> None:
        self.calls: list[tuple[str, object]] = []
        self._fail_on = fail_on

    def clear_chat(self) -> None:
        self.calls.append(("clear_chat", None))

    async def display_message(self, entry: TranscriptEntry, should_scroll: bool) -> None:
        await asyncio.sleep(0)
        if entry.message == self._fail_on:
            raise RuntimeError("render broke")
        self.calls.append(("display_message", (entry.message, should_scroll)))

    def scroll_to_bottom(self) -> None:
        self.calls.append(("scroll_to_bottom", None))

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


def _session() -> SessionHandle:
    return SessionHandle.for_session("chat-1", history_folder="agent-sessions", created_at=_T0)


def _seeded_log(session: SessionHandle, messages: list[str]) -> tuple[TranscriptLog, RecordingStore]:
    store = RecordingStore()
    log = TranscriptLog(store)
    for index, message in enumerate(messages):
        role = Role.USER if index % 2 == 0 else Role.MODEL
        log.append_entry(
            session,
            TranscriptEntry(role, message, created_at=_T0 + datetime.timedelta(minutes=index)),
        )
    store.calls.clear()
    return log, store


def test_load_clears_once_renders_all_and_scrolls_once() -> None:
    session = _session()
    log, _store = _seeded_log(session, ["one", "two", "three"])
    view = FakeView()
    loader = SessionLoader(log, view)
    loader.set_current_session(session)

    entries = asyncio.run(loader.load_session_history())

    assert [entry.message for entry in entries] == ["one", "two", "three"]
    assert view.names().count("clear_chat") == 1
    assert view.names().count("scroll_to_bottom") == 1
    assert view.calls[0] == ("clear_chat", None)
    assert view.calls[-1] == ("scroll_to_bottom", None)
    displayed = [payload for name, payload in view.calls if name == "display_message"]
    assert sorted(displayed) == [("one", False), ("three", False), ("two", False)]


def test_load_without_session_does_nothing() -> None:
    log, store = _seeded_log(_session(), ["one"])
    view = FakeView()

    entries = asyncio.run(SessionLoader(log, view).load_session_history())

    assert entries == []
    assert view.calls == []
    assert store.calls == []


def test_empty_history_still_clears_and_scrolls() -> None:
    view = FakeView()
    loader = SessionLoader(TranscriptLog(RecordingStore()), view)
    loader.set_current_session(_session())

    entries = asyncio.run(loader.load_session_history())

    assert entries == []
    assert view.names() == ["clear_chat", "scroll_to_bottom"]


def test_read_failure_is_logged_and_raised(caplog: pytest.LogCaptureFixture) -> None:
    session = _session()
    log, store = _seeded_log(session, ["one"])
    store.fail_on.add("read")
    view = FakeView()
    loader = SessionLoader(log, view)
    loader.set_current_session(session)

    with caplog.at_level(logging.ERROR, logger="sessionlog"):
        with pytest.raises(PersistenceError):
            asyncio.run(loader.load_session_history())

    assert view.calls == []
    assert any("Error loading session history for chat-1" in r.getMessage() for r in caplog.records)


def test_render_failure_still_scrolls_once() -> None:
    session = _session()
    log, _store = _seeded_log(session, ["one", "bad", "three"])
    view = FakeView(fail_on="bad")
    loader = SessionLoader(log, view)
    loader.set_current_session(session)

    with pytest.raises(RenderFailure) as excinfo:
        asyncio.run(loader.load_session_history())

    assert excinfo.value.index == 1
    assert view.names().count("scroll_to_bottom") == 1


def test_add_entry_persists_and_renders_live() -> None:
    session = _session()
    store = RecordingStore()
    view = FakeView()
    loader = SessionLoader(TranscriptLog(store), view)
    loader.set_current_session(session)

    asyncio.run(loader.add_entry(TranscriptEntry(Role.USER, "hi", created_at=_T0)))

    assert store.operations() == ["exists", "create"]
    assert view.calls == [("display_message", ("hi", True))]


def test_add_entry_requires_session() -> None:
    loader = SessionLoader(TranscriptLog(RecordingStore()), FakeView())

    with pytest.raises(RuntimeError):
        asyncio.run(loader.add_entry(TranscriptEntry(Role.USER, "hi", created_at=_T0)))
