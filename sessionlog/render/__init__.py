"""Rendering of transcript batches into a display surface."""

from .loader import SessionLoader, SessionView
from .scheduler import RenderBatch, RenderScheduler, SchedulerState

__all__ = [
    "RenderBatch",
    "RenderScheduler",
    "SchedulerState",
    "SessionLoader",
    "SessionView",
]
