"""Markdown normalisation helpers."""

from .reflow import LineKind, classify_line, reflow

__all__ = ["LineKind", "classify_line", "reflow"]
