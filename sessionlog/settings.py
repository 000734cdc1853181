"""Typed sessionlog settings with Pydantic validation."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Literal

import tomllib
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_HISTORY_FOLDER = "agent-sessions"


class HistorySettings(BaseModel):
    """Settings controlling where and whether transcripts are persisted."""

    model_config = ConfigDict(validate_assignment=True)

    enabled: bool = True
    history_folder: str = DEFAULT_HISTORY_FOLDER

    @field_validator("history_folder", mode="before")
    @classmethod
    def _normalize_history_folder(cls, value: str | Path | None) -> str:
        """Strip whitespace and trailing separators, defaulting blank values."""
        if value is None:
            return DEFAULT_HISTORY_FOLDER
        text = str(value).strip().replace("\\", "/").rstrip("/")
        return text or DEFAULT_HISTORY_FOLDER


class HashSettings(BaseModel):
    """Settings for content hashing of context files."""

    model_config = ConfigDict(validate_assignment=True)

    algorithm: Literal["sha256", "sha512", "blake2b"] = "sha256"

    @field_validator("algorithm", mode="before")
    @classmethod
    def _normalize_algorithm(cls, value: str | None) -> str:
        if value is None:
            return "sha256"
        text = str(value).strip().lower()
        return text or "sha256"


class LogSettings(BaseModel):
    """Settings for :func:`sessionlog.log.configure_logging`."""

    model_config = ConfigDict(validate_assignment=True)

    level: int = Field(default=logging.INFO)
    log_dir: str | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: int | str | None) -> int:
        """Accept level names such as ``"debug"`` as well as numbers."""
        if value is None:
            return logging.INFO
        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                return logging.INFO
            if raw.isdigit():
                return int(raw)
            resolved = logging.getLevelName(raw.upper())
            if isinstance(resolved, int):
                return resolved
            raise ValueError(f"unknown log level: {value}")
        if isinstance(value, bool):
            raise ValueError("Boolean is not a valid log level")
        return int(value)

    @field_validator("log_dir", mode="before")
    @classmethod
    def _normalize_log_dir(cls, value: str | Path | None) -> str | None:
        """Convert empty strings to ``None``."""
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class AppSettings(BaseModel):
    """Aggregate settings for sessionlog."""

    model_config = ConfigDict(validate_assignment=True)

    history: HistorySettings = Field(default_factory=HistorySettings)
    hashing: HashSettings = Field(default_factory=HashSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    def to_dict(self) -> dict:
        """Return settings as a plain dictionary."""
        return self.model_dump()


def load_app_settings(path: str | Path) -> AppSettings:
    """Load :class:`AppSettings` from *path* with validation.

    Format is detected by file extension: ``.toml`` uses :mod:`tomllib`,
    everything else is treated as JSON.  Any validation errors are wrapped into
    :class:`ValueError` with a human-friendly message.
    """
    p = Path(path)
    with p.open("rb") as fh:
        data = tomllib.load(fh) if p.suffix.lower() == ".toml" else json.load(fh)
    try:
        return AppSettings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc


__all__ = [
    "AppSettings",
    "DEFAULT_HISTORY_FOLDER",
    "HashSettings",
    "HistorySettings",
    "LogSettings",
    "load_app_settings",
]
