"""Durable markdown transcripts of agent sessions."""

from .entry import Role, SessionHandle, TranscriptEntry
from .log import TranscriptLog
from .store import AtomicByteStore, ByteStore, FileByteStore

__all__ = [
    "AtomicByteStore",
    "ByteStore",
    "FileByteStore",
    "Role",
    "SessionHandle",
    "TranscriptEntry",
    "TranscriptLog",
]
