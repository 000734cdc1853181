import datetime
from pathlib import Path

import pytest

from sessionlog.errors import PersistenceError
from sessionlog.history import FileByteStore, Role, SessionHandle, TranscriptEntry, TranscriptLog
from sessionlog.settings import HistorySettings
from tests.store_utils import AtomicRecordingStore, RecordingStore

pytestmark = pytest.mark.unit

_T0 = datetime.datetime(2024, 5, 1, 9, 30, tzinfo=datetime.UTC)


@pytest.fixture()
def session() -> SessionHandle:
    return SessionHandle(
        id="test-session",
        log_path="agent-sessions/test-session.md",
        title="Test Session",
        created_at=_T0,
    )


def _entry(message: str, role: Role = Role.USER, seconds: int = 0) -> TranscriptEntry:
    return TranscriptEntry(
        role=role,
        message=message,
        created_at=_T0 + datetime.timedelta(seconds=seconds),
        model_id="gemini-pro",
    )


def test_existing_transcript_uses_append_only(session: SessionHandle) -> None:
    store = RecordingStore(documents={session.log_path: b"---\n---\n"})
    log = TranscriptLog(store)

    log.append_entry(session, _entry("Hello world"))

    assert store.operations() == ["exists", "append"]
    appended = store.text(session.log_path)[len("---\n---\n") :]
    assert appended.startswith("\n")
    assert "Hello world" in appended


def test_missing_transcript_is_created_once(session: SessionHandle) -> None:
    store = RecordingStore()
    log = TranscriptLog(store)

    log.append_entry(session, _entry("First message"))

    assert store.operations() == ["exists", "create"]
    text = store.text(session.log_path)
    assert text.startswith("---\nsession_id: \"test-session\"\n")
    assert "First message" in text


def test_append_cost_does_not_depend_on_transcript_size(session: SessionHandle) -> None:
    big = b"x" * 1_000_000
    store = RecordingStore(documents={session.log_path: big})
    log = TranscriptLog(store)

    log.append_entry(session, _entry("tail"))

    assert "read" not in store.operations()
    assert store.documents[session.log_path].startswith(big)


def test_round_trip_through_recording_store(session: SessionHandle) -> None:
    store = RecordingStore()
    log = TranscriptLog(store)
    entries = [
        _entry("Hello", Role.USER, 0),
        _entry("Hi there\n| a | b |\n|---|---|", Role.MODEL, 1),
        _entry("How are you?", Role.USER, 2),
    ]

    for entry in entries:
        log.append_entry(session, entry)

    assert store.operations().count("create") == 1
    assert store.operations().count("append") == 2
    assert log.load_entries(session) == entries
    assert log.load_front_matter(session)["title"] == "Test Session"


def test_atomic_store_receives_single_call(session: SessionHandle) -> None:
    store = AtomicRecordingStore()
    log = TranscriptLog(store)

    log.append_entry(session, _entry("one"))
    log.append_entry(session, _entry("two", seconds=1))

    assert store.operations() == ["append_or_create", "append_or_create"]
    assert [e.message for e in log.load_entries(session)] == ["one", "two"]


def test_atomic_detection_can_be_disabled(session: SessionHandle) -> None:
    store = AtomicRecordingStore()
    log = TranscriptLog(store, atomic=False)

    log.append_entry(session, _entry("one"))

    assert store.operations() == ["exists", "create"]


def test_disabled_history_skips_the_store(session: SessionHandle) -> None:
    store = RecordingStore()
    log = TranscriptLog(store, HistorySettings(enabled=False))

    log.append_entry(session, _entry("ignored"))

    assert store.calls == []


@pytest.mark.parametrize("operation, existing", [("append", True), ("create", False)])
def test_store_failure_raises_persistence_error(
    session: SessionHandle, operation: str, existing: bool
) -> None:
    documents = {session.log_path: b"old"} if existing else {}
    store = RecordingStore(documents=documents, fail_on={operation})
    log = TranscriptLog(store)

    with pytest.raises(PersistenceError) as excinfo:
        log.append_entry(session, _entry("lost"))

    assert excinfo.value.session_id == "test-session"
    assert excinfo.value.path == session.log_path
    assert isinstance(excinfo.value.__cause__, PermissionError)
    assert store.documents == documents


def test_load_entries_of_missing_transcript_is_empty(session: SessionHandle) -> None:
    store = RecordingStore()

    assert TranscriptLog(store).load_entries(session) == []
    assert "read" not in store.operations()


def test_file_store_round_trip(tmp_path: Path) -> None:
    log = TranscriptLog(FileByteStore(tmp_path), HistorySettings(history_folder="history"))
    session = log.session_for("abc", title="ABC")
    entries = [_entry(f"message {i}", seconds=i) for i in range(5)]

    for entry in entries:
        log.append_entry(session, entry)

    path = tmp_path / "history" / "abc.md"
    assert path.is_file()
    assert log.load_entries(session) == entries
    assert path.read_text(encoding="utf-8").count("<!-- sessionlog:entry ") == 5


def test_file_store_forced_non_atomic_round_trip(tmp_path: Path) -> None:
    log = TranscriptLog(FileByteStore(tmp_path), atomic=False)
    session = log.session_for("plain")

    log.append_entry(session, _entry("a"))
    log.append_entry(session, _entry("b", seconds=1))

    assert [e.message for e in log.load_entries(session)] == ["a", "b"]


@pytest.mark.parametrize("log_path", ["../outside.md", "/abs/outside.md"])
def test_log_path_outside_store_root_raises_persistence_error(
    tmp_path: Path, log_path: str
) -> None:
    session = SessionHandle(id="s", log_path=log_path, created_at=_T0)
    log = TranscriptLog(FileByteStore(tmp_path / "root"))

    with pytest.raises(PersistenceError) as excinfo:
        log.append_entry(session, _entry("hello"))
    assert isinstance(excinfo.value.__cause__, PermissionError)
    assert excinfo.value.session_id == "s"

    with pytest.raises(PersistenceError):
        log.load_entries(session)
    assert not (tmp_path / "outside.md").exists()
