"""Content hashing for context-file change detection."""

from .hash_cache import CacheEntry, DigestCache, DigestLookup, HashCache
from .monitor import ContextFileMonitor
from .resolver import FileHandle, FileResolver, LocalFileResolver

__all__ = [
    "CacheEntry",
    "ContextFileMonitor",
    "DigestCache",
    "DigestLookup",
    "FileHandle",
    "FileResolver",
    "HashCache",
    "LocalFileResolver",
]
