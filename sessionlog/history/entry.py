"""Data structures describing persisted conversation transcripts."""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any

from ..util.time import ensure_aware, parse_iso, to_iso, utc_now
from .paths import session_log_path


class Role(str, Enum):
    """Participant that produced a transcript entry."""

    USER = "user"
    MODEL = "model"
    SYSTEM = "system"
    TOOL = "tool"

    @property
    def label(self) -> str:
        return self.value.capitalize()


def _freeze_metadata(metadata: Mapping[str, Any] | None) -> Mapping[str, Any]:
    if not metadata:
        return MappingProxyType({})
    return MappingProxyType({str(key): value for key, value in metadata.items()})


@dataclass(frozen=True, slots=True)
class TranscriptEntry:
    """Single immutable turn of a conversation."""

    role: Role
    message: str
    created_at: datetime.datetime = field(default_factory=utc_now)
    model_id: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.role, Role):
            object.__setattr__(self, "role", Role(str(self.role)))
        if not isinstance(self.message, str):
            raise TypeError("message must be a string")
        object.__setattr__(self, "created_at", ensure_aware(self.created_at))
        object.__setattr__(self, "metadata", _freeze_metadata(self.metadata))

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable representation."""
        data: dict[str, Any] = {
            "role": self.role.value,
            "message": self.message,
            "created_at": to_iso(self.created_at),
        }
        if self.model_id:
            data["model_id"] = self.model_id
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> TranscriptEntry:
        """Build an entry from :meth:`to_dict` output.

        Unknown keys are ignored so newer transcripts stay readable.
        """
        if not isinstance(payload, Mapping):
            raise ValueError("transcript entry payload must be a mapping")
        role = payload.get("role")
        if not isinstance(role, str):
            raise ValueError("missing role in transcript entry payload")
        created_raw = payload.get("created_at")
        if not isinstance(created_raw, str):
            raise ValueError("missing created_at in transcript entry payload")
        metadata = payload.get("metadata")
        model_id = payload.get("model_id")
        return cls(
            role=Role(role),
            message=str(payload.get("message", "")),
            created_at=parse_iso(created_raw),
            model_id=model_id if isinstance(model_id, str) and model_id else None,
            metadata=metadata if isinstance(metadata, Mapping) else {},
        )


@dataclass(frozen=True, slots=True)
class SessionHandle:
    """Identity of one session and the path of its transcript document."""

    id: str
    log_path: str
    title: str = ""
    created_at: datetime.datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("session id must not be empty")
        object.__setattr__(self, "log_path", str(self.log_path).replace("\\", "/"))
        object.__setattr__(self, "created_at", ensure_aware(self.created_at))
        if not self.title:
            object.__setattr__(self, "title", self.id)

    @classmethod
    def for_session(
        cls,
        session_id: str,
        *,
        history_folder: str | Path,
        title: str = "",
        created_at: datetime.datetime | None = None,
    ) -> SessionHandle:
        """Return a handle whose log lives under *history_folder*."""
        return cls(
            id=session_id,
            log_path=session_log_path(history_folder, session_id),
            title=title,
            created_at=created_at or utc_now(),
        )


__all__ = ["Role", "SessionHandle", "TranscriptEntry"]
