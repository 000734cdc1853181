"""Utilities for hashing file content."""
from __future__ import annotations

import hashlib
from collections.abc import Callable
from typing import Protocol


class HashObject(Protocol):
    """Subset of the :mod:`hashlib` object interface used by sessionlog."""

    def update(self, data: bytes, /) -> None: ...

    def hexdigest(self) -> str: ...


Hasher = Callable[[], HashObject]

SUPPORTED_ALGORITHMS: tuple[str, ...] = ("sha256", "sha512", "blake2b")
DEFAULT_ALGORITHM = "sha256"


def hasher_for(algorithm: str = DEFAULT_ALGORITHM) -> Hasher:
    """Return a factory producing fresh hash objects for *algorithm*.

    Parameters
    ----------
    algorithm:
        One of :data:`SUPPORTED_ALGORITHMS`.
    """
    name = algorithm.strip().lower()
    if name not in SUPPORTED_ALGORITHMS:
        raise ValueError(f"unsupported hash algorithm: {algorithm}")
    return getattr(hashlib, name)


def hex_digest(data: bytes, hasher: Hasher | None = None) -> str:
    """Return the lowercase hex digest of *data* computed with *hasher*."""
    digest = (hasher or hasher_for())()
    digest.update(data)
    return digest.hexdigest().lower()


__all__ = [
    "DEFAULT_ALGORITHM",
    "HashObject",
    "Hasher",
    "SUPPORTED_ALGORITHMS",
    "hasher_for",
    "hex_digest",
]
