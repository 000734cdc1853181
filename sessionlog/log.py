"""Logging setup for sessionlog.

Three sinks hang off the ``sessionlog`` package logger: the console, a
rotating text log and a rotating JSON-lines log.  Modules emit structured
events through :func:`log_event`; the event name becomes the record message
and the fields travel in ``record.json`` so every formatter can use them.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from .util.time import utc_now_iso

LOG_DIR_ENV = "SESSIONLOG_LOG_DIR"
TEXT_LOG_NAME = "sessionlog.log"
JSON_LOG_NAME = "sessionlog.jsonl"
_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 5
_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("sessionlog")

_log_dir: Path | None = None


def log_event(
    target: logging.Logger,
    event: str,
    *,
    level: int = logging.DEBUG,
    **fields: Any,
) -> None:
    """Log *event* on *target* with *fields* attached as structured data."""
    target.log(level, event, extra={"json": {"event": event, "payload": fields}})


def _event_of(record: logging.LogRecord) -> tuple[str, dict[str, Any]] | None:
    """Return ``(event, payload)`` when *record* was produced by :func:`log_event`."""
    data = getattr(record, "json", None)
    if not isinstance(data, dict):
        return None
    event = data.get("event")
    if not isinstance(event, str) or record.msg != event:
        return None
    payload = data.get("payload")
    return event, payload if isinstance(payload, dict) else {}


class ConsoleFormatter(logging.Formatter):
    """Short ``LEVEL: message`` lines; events get their fields as ``key=value``."""

    def __init__(self) -> None:
        super().__init__("%(levelname)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        found = _event_of(record)
        if found is None or not found[1]:
            return base
        _event, payload = found
        pairs = " ".join(
            f"{key}={json.dumps(value, ensure_ascii=False, default=str)}"
            for key, value in payload.items()
        )
        return f"{base} {pairs}"


class JsonFormatter(logging.Formatter):
    """Serialise each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": utc_now_iso(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        found = _event_of(record)
        if found is not None:
            data["event"], data["payload"] = found
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False, default=str)


class JsonlHandler(RotatingFileHandler):
    """Rotating file handler writing :class:`JsonFormatter` lines."""

    def __init__(
        self,
        filename: Path | str,
        *,
        max_bytes: int = _MAX_BYTES,
        backup_count: int = _BACKUP_COUNT,
    ) -> None:
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        self.setFormatter(JsonFormatter())


def _resolve_log_dir(log_dir: str | Path | None) -> Path:
    """Pick the explicit directory, then ``$SESSIONLOG_LOG_DIR``, then the home default."""
    if log_dir is None:
        log_dir = os.environ.get(LOG_DIR_ENV) or Path.home() / ".sessionlog" / "logs"
    path = Path(log_dir).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    return path.resolve()


def _build_handlers(directory: Path, console_level: int) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if sys.stderr is not None:
        console = logging.StreamHandler()
        console.setLevel(console_level)
        console.setFormatter(ConsoleFormatter())
        handlers.append(console)

    text = RotatingFileHandler(
        directory / TEXT_LOG_NAME,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    text.setLevel(logging.DEBUG)
    text.setFormatter(logging.Formatter(_TEXT_FORMAT))
    handlers.append(text)

    structured = JsonlHandler(directory / JSON_LOG_NAME)
    structured.setLevel(logging.DEBUG)
    handlers.append(structured)
    return handlers


def configure_logging(level: int = logging.INFO, *, log_dir: str | Path | None = None) -> Path:
    """Attach the sessionlog handlers once and return the log directory.

    *level* applies to the console only; both files always receive DEBUG.
    Later calls leave the existing handlers untouched.
    """
    global _log_dir

    if logger.handlers and _log_dir is not None:
        return _log_dir
    directory = _resolve_log_dir(log_dir)
    for handler in _build_handlers(directory, level):
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    _log_dir = directory
    return directory


def reset_logging() -> None:
    """Detach and close every handler installed by :func:`configure_logging`."""
    global _log_dir

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    _log_dir = None


def get_log_directory() -> Path:
    """Return the active log directory, configuring logging on first use."""
    return _log_dir if _log_dir is not None else configure_logging()


def get_log_file_paths() -> tuple[Path, Path]:
    """Return the text and JSON-lines log paths."""
    directory = get_log_directory()
    return directory / TEXT_LOG_NAME, directory / JSON_LOG_NAME


__all__ = [
    "ConsoleFormatter",
    "JSON_LOG_NAME",
    "JsonFormatter",
    "JsonlHandler",
    "LOG_DIR_ENV",
    "TEXT_LOG_NAME",
    "configure_logging",
    "get_log_directory",
    "get_log_file_paths",
    "log_event",
    "logger",
    "reset_logging",
]
