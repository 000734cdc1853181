"""Durable agent session transcripts, content hashing and batch rendering."""

from .errors import HashUnavailable, PersistenceError, RenderFailure, SessionLogError
from .files import ContextFileMonitor, DigestCache, HashCache, LocalFileResolver
from .history import FileByteStore, Role, SessionHandle, TranscriptEntry, TranscriptLog
from .markdown import reflow
from .render import RenderScheduler, SessionLoader

__all__ = [
    "ContextFileMonitor",
    "DigestCache",
    "FileByteStore",
    "HashCache",
    "HashUnavailable",
    "LocalFileResolver",
    "PersistenceError",
    "RenderFailure",
    "RenderScheduler",
    "Role",
    "SessionHandle",
    "SessionLoader",
    "SessionLogError",
    "TranscriptEntry",
    "TranscriptLog",
    "reflow",
]
