"""Time-related helpers for sessionlog."""

from __future__ import annotations

import datetime


def utc_now() -> datetime.datetime:
    """Return the current UTC time without sub-second precision."""
    return datetime.datetime.now(datetime.UTC).replace(microsecond=0)


def utc_now_iso() -> str:
    """Return current UTC time in ISO format without sub-second precision."""
    return utc_now().isoformat(timespec="seconds")


def ensure_aware(value: datetime.datetime) -> datetime.datetime:
    """Return *value* with a timezone, assuming UTC for naive datetimes."""
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.UTC)
    return value


def to_iso(value: datetime.datetime) -> str:
    """Serialise *value* as an ISO 8601 string keeping microseconds if present."""
    return ensure_aware(value).isoformat()


def parse_iso(value: str) -> datetime.datetime:
    """Parse an ISO 8601 string produced by :func:`to_iso`.

    Invalid values raise :class:`ValueError`. A trailing ``Z`` is accepted as
    UTC so hand-edited transcripts stay readable.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"Invalid datetime: {value}") from exc
    return ensure_aware(parsed)


def format_heading_timestamp(value: datetime.datetime) -> str:
    """Return ``YYYY-MM-DD HH:MM:SS`` in UTC for transcript headings."""
    return ensure_aware(value).astimezone(datetime.UTC).strftime("%Y-%m-%d %H:%M:%S")


def mtime_millis(seconds: float) -> float:
    """Convert an ``os.stat`` modification time to milliseconds since epoch."""
    return seconds * 1000.0
