"""Paragraph reflow for markdown destined to a block renderer.

Model output usually separates paragraphs with a single newline, which most
markdown renderers fold into one paragraph.  :func:`reflow` inserts a blank
line between consecutive prose lines while keeping table rows contiguous so
the renderer still recognises the table block.

Any line holding an unescaped ``|`` counts as a table row.  Prose that uses a
pipe as a visual separator is therefore treated as a one-row table; that only
changes spacing, whereas the opposite mistake would break a real table.
"""

from __future__ import annotations

import re
from enum import Enum

__all__ = ["LineKind", "classify_line", "has_unescaped_pipe", "is_divider", "reflow"]

_UNESCAPED_PIPE_RE = re.compile(r"(?<!\\)\|")
_DIVIDER_CELL_RE = re.compile(r"\s*:?-+:?\s*")


class LineKind(str, Enum):
    """Classification of a single input line."""

    BLANK = "blank"
    PROSE = "prose"
    TABLE_ROW = "table_row"
    TABLE_DIVIDER = "table_divider"

    @property
    def is_table(self) -> bool:
        return self in (LineKind.TABLE_ROW, LineKind.TABLE_DIVIDER)


def has_unescaped_pipe(line: str) -> bool:
    """Return ``True`` when *line* contains a ``|`` not preceded by ``\\``."""
    return _UNESCAPED_PIPE_RE.search(line) is not None


def is_divider(line: str) -> bool:
    """Return ``True`` for table dividers such as ``|---|:---:|``."""
    stripped = line.strip()
    if not has_unescaped_pipe(stripped):
        return False
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|"):
        stripped = stripped[:-1]
    cells = _UNESCAPED_PIPE_RE.split(stripped)
    return all(_DIVIDER_CELL_RE.fullmatch(cell) for cell in cells)


def classify_line(line: str) -> LineKind:
    """Return the :class:`LineKind` of *line*."""
    if not line.strip():
        return LineKind.BLANK
    if not has_unescaped_pipe(line):
        return LineKind.PROSE
    if is_divider(line):
        return LineKind.TABLE_DIVIDER
    return LineKind.TABLE_ROW


def reflow(text: str) -> str:
    """Return *text* with blank lines inserted between prose paragraphs.

    Only blank lines are ever added; every input line is emitted verbatim and
    in its original order.
    """
    output: list[str] = []
    in_table = False

    def previous_is_content() -> bool:
        return bool(output) and bool(output[-1].strip())

    for line in text.split("\n"):
        kind = classify_line(line)
        if kind.is_table:
            if not in_table:
                if previous_is_content():
                    output.append("")
                in_table = True
            output.append(line)
            continue

        in_table = False
        # blank lines pass through untouched so separators never double up
        if kind is not LineKind.BLANK and previous_is_content():
            output.append("")
        output.append(line)

    return "\n".join(output)
