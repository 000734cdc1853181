"""Markdown serialisation of transcript documents.

A transcript document is an optional front matter block followed by one
block per entry::

    ---
    session_id: "abc"
    title: "abc"
    created: "2024-01-01T00:00:00+00:00"
    ---

    <!-- sessionlog:entry {"role": "user", "created_at": "..."} -->
    ### User · 2024-01-01 00:00:00

    message body

The HTML comment carries the structured fields and is invisible once the
markdown is rendered.  The heading is for human readers only.  Blocks are
separated by exactly one blank line, which the appending side produces by
prefixing each new block with a single ``"\\n"``.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from typing import Any

from ..util.time import format_heading_timestamp, to_iso
from .entry import SessionHandle, TranscriptEntry

logger = logging.getLogger(__name__)

ENTRY_SEPARATOR = "\n"
FRONT_MATTER_DELIMITER = "---"
_MARKER_PREFIX = "<!-- sessionlog:entry "
_MARKER_SUFFIX = " -->"
_MARKER_RE = re.compile(r"^<!-- sessionlog:entry (\{.*\}) -->$", re.MULTILINE)
_LENGTH_KEY = "length"


def _encode_marker_payload(payload: Mapping[str, Any]) -> str:
    text = json.dumps(payload, ensure_ascii=False, sort_keys=True, default=str)
    # keep "-->" out of the comment and the marker on a single line
    return text.replace(">", "\\u003e").replace("\u2028", "\\u2028").replace("\u2029", "\\u2029")


def format_heading(entry: TranscriptEntry) -> str:
    """Return the human-readable heading line for *entry*."""
    label = entry.role.label
    if entry.model_id:
        label = f"{label} ({entry.model_id})"
    return f"### {label} · {format_heading_timestamp(entry.created_at)}"


def format_entry_block(entry: TranscriptEntry) -> str:
    """Return the self-contained markdown block persisted for *entry*."""
    payload = entry.to_dict()
    payload.pop("message", None)
    payload[_LENGTH_KEY] = len(entry.message)
    marker = f"{_MARKER_PREFIX}{_encode_marker_payload(payload)}{_MARKER_SUFFIX}"
    return f"{marker}\n{format_heading(entry)}\n\n{entry.message}\n"


def format_front_matter(session: SessionHandle) -> str:
    """Return the front matter written when a transcript is created."""
    fields = {
        "session_id": session.id,
        "title": session.title,
        "created": to_iso(session.created_at),
    }
    lines = [FRONT_MATTER_DELIMITER]
    lines.extend(
        f"{key}: {json.dumps(value, ensure_ascii=False)}" for key, value in fields.items()
    )
    lines.append(FRONT_MATTER_DELIMITER)
    return "\n".join(lines) + "\n"


def format_new_document(session: SessionHandle, entry: TranscriptEntry) -> str:
    """Return the full content of a freshly created transcript."""
    return format_front_matter(session) + ENTRY_SEPARATOR + format_entry_block(entry)


def format_appended_block(entry: TranscriptEntry) -> str:
    """Return the bytes appended to an existing transcript for *entry*."""
    return ENTRY_SEPARATOR + format_entry_block(entry)


def parse_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Split *text* into front matter fields and the remaining document."""
    opening = FRONT_MATTER_DELIMITER + "\n"
    if not text.startswith(opening):
        return {}, text
    closing = "\n" + FRONT_MATTER_DELIMITER + "\n"
    end = text.find(closing, len(opening) - 1)
    if end < 0:
        return {}, text
    fields: dict[str, Any] = {}
    for line in text[len(opening) : end].splitlines():
        key, sep, raw = line.partition(":")
        if not sep or not key.strip():
            continue
        raw = raw.strip()
        try:
            fields[key.strip()] = json.loads(raw)
        except json.JSONDecodeError:
            fields[key.strip()] = raw
    return fields, text[end + len(closing) :]


def _body_start(text: str, marker_end: int) -> int:
    """Return the offset where the body following the marker at *marker_end* begins."""
    position = marker_end + 1 if text.startswith("\n", marker_end) else marker_end
    heading_end = text.find("\n", position)
    if heading_end < 0:
        return len(text)
    position = heading_end + 1
    return position + 1 if text.startswith("\n", position) else position


def _scan_body(text: str, start: int) -> tuple[str, int]:
    """Return the body running up to the next marker, for blocks without a length."""
    following = _MARKER_RE.search(text, start)
    end = following.start() if following else len(text)
    body = text[start:end]
    trailer = "\n\n" if following else "\n"
    if body.endswith(trailer):
        body = body[: -len(trailer)]
    elif body.endswith("\n"):
        body = body[:-1]
    return body, end


def parse_entries(text: str) -> list[TranscriptEntry]:
    """Return entries found in the body of a transcript document, in order.

    Each marker records the length of its body, so body text that happens
    to look like a marker is never taken for a block boundary.  Blocks whose
    marker cannot be decoded are skipped with a warning.
    """
    entries: list[TranscriptEntry] = []
    position = 0
    index = 0
    while (match := _MARKER_RE.search(text, position)) is not None:
        start = _body_start(text, match.end())
        try:
            payload = json.loads(match.group(1))
            if not isinstance(payload, dict):
                raise ValueError("marker payload is not an object")
        except ValueError as exc:
            logger.warning("Skipping unreadable transcript block #%d: %s", index, exc)
            position = match.end()
            index += 1
            continue
        length = payload.pop(_LENGTH_KEY, None)
        valid = isinstance(length, int) and not isinstance(length, bool) and length >= 0
        end = start + length if valid else -1
        if 0 <= end <= len(text) and (end == len(text) or text.startswith("\n", end)):
            body, position = text[start:end], end
        else:
            body, position = _scan_body(text, start)
        try:
            payload["message"] = body
            entries.append(TranscriptEntry.from_dict(payload))
        except (ValueError, TypeError) as exc:
            logger.warning("Skipping unreadable transcript block #%d: %s", index, exc)
        index += 1
    return entries


def parse_document(text: str) -> tuple[dict[str, Any], list[TranscriptEntry]]:
    """Return front matter and ordered entries of a transcript document."""
    front_matter, body = parse_front_matter(text)
    return front_matter, parse_entries(body)


__all__ = [
    "ENTRY_SEPARATOR",
    "format_appended_block",
    "format_entry_block",
    "format_front_matter",
    "format_heading",
    "format_new_document",
    "parse_document",
    "parse_entries",
    "parse_front_matter",
]
