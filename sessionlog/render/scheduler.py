"""Concurrent rendering of transcript batches with a single settle step.

Loading a saved session renders every entry at once.  Each render is started
immediately with ``should_scroll=False`` and the view is settled (scrolled to
the bottom) exactly once after all of them finished, however many entries
the batch holds.  Live single-entry rendering scrolls on every entry instead.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from ..errors import RenderFailure
from ..history.entry import TranscriptEntry

logger = logging.getLogger(__name__)

RenderFn = Callable[[TranscriptEntry, bool], Awaitable[None]]
SettleFn = Callable[[], None]
ClearFn = Callable[[], None]


class SchedulerState(str, Enum):
    """Lifecycle of one :meth:`RenderScheduler.render_batch` call."""

    IDLE = "idle"
    CLEARING = "clearing"
    RENDERING = "rendering"
    SETTLING = "settling"


@dataclass(frozen=True, slots=True)
class RenderBatch:
    """Ordered entries rendered together, tagged with their generation."""

    generation: int
    entries: tuple[TranscriptEntry, ...]

    def __len__(self) -> int:
        return len(self.entries)


def _task_error(task: asyncio.Future) -> BaseException | None:
    if not task.done():
        return None
    if task.cancelled():
        return asyncio.CancelledError()
    return task.exception()


class RenderScheduler:
    """Render batches of entries concurrently through caller callbacks."""

    def __init__(self) -> None:
        self._state = SchedulerState.IDLE
        self._pending = 0
        self._generation = 0
        self._batch: RenderBatch | None = None

    # ------------------------------------------------------------------
    @property
    def state(self) -> SchedulerState:
        return self._state

    # ------------------------------------------------------------------
    @property
    def pending(self) -> int:
        """Return the number of renders of the current batch still running."""
        return self._pending

    # ------------------------------------------------------------------
    @property
    def generation(self) -> int:
        """Return the generation number of the most recent batch."""
        return self._generation

    # ------------------------------------------------------------------
    @property
    def current_batch(self) -> RenderBatch | None:
        return self._batch

    # ------------------------------------------------------------------
    def is_current(self, generation: int) -> bool:
        """Return ``True`` unless a newer batch started after *generation*.

        Render callbacks that finish late can use this to drop output
        belonging to a superseded batch.
        """
        return generation == self._generation

    # ------------------------------------------------------------------
    async def render_batch(
        self,
        entries: Sequence[TranscriptEntry],
        render_fn: RenderFn,
        settle_fn: SettleFn,
        clear_fn: ClearFn,
    ) -> None:
        """Clear the view, render *entries* concurrently, then settle once.

        ``render_fn`` is invoked for every entry in input order with
        ``should_scroll=False`` before the first await, so all renders are in
        flight together.  When one of them fails the remaining ones are
        cancelled and :class:`RenderFailure` is raised; ``settle_fn`` still
        runs exactly once so the view does not stay half-loaded.
        """
        self._generation += 1
        batch = RenderBatch(generation=self._generation, entries=tuple(entries))
        self._batch = batch
        logger.debug(
            "Rendering batch %d with %d entries", batch.generation, len(batch)
        )
        try:
            self._state = SchedulerState.CLEARING
            clear_fn()
            self._state = SchedulerState.RENDERING
            await self._render_all(batch, render_fn)
        except BaseException as exc:
            self._settle(batch, settle_fn, failure=exc)
            raise
        self._settle(batch, settle_fn, failure=None)

    # ------------------------------------------------------------------
    def _settle(
        self,
        batch: RenderBatch,
        settle_fn: SettleFn,
        *,
        failure: BaseException | None,
    ) -> None:
        """Run *settle_fn* once for *batch*.

        State and pending counts are only reset while *batch* is still the
        current generation; a superseded batch settles without touching the
        bookkeeping of the batch that replaced it.  When the batch already
        failed, an error from *settle_fn* is logged and the original failure
        keeps propagating.
        """
        if self.is_current(batch.generation):
            self._pending = 0
            self._state = SchedulerState.SETTLING
        try:
            settle_fn()
        except Exception:
            if failure is None:
                raise
            logger.exception("Settling batch %d failed after %r", batch.generation, failure)
        finally:
            if self.is_current(batch.generation):
                self._state = SchedulerState.IDLE

    # ------------------------------------------------------------------
    async def render_live(self, entry: TranscriptEntry, render_fn: RenderFn) -> None:
        """Render a single freshly appended *entry*, letting it scroll."""
        try:
            await render_fn(entry, True)
        except Exception as exc:
            raise RenderFailure(0, entry) from exc

    # ------------------------------------------------------------------
    async def _render_all(self, batch: RenderBatch, render_fn: RenderFn) -> None:
        tasks: list[asyncio.Future] = []
        try:
            for entry in batch.entries:
                tasks.append(asyncio.ensure_future(render_fn(entry, False)))
        except Exception as exc:
            index = len(tasks)
            await self._cancel(tasks)
            raise RenderFailure(index, batch.entries[index]) from exc

        if not tasks:
            return
        self._pending = len(tasks)
        on_done = functools.partial(self._on_render_done, batch.generation)
        for task in tasks:
            task.add_done_callback(on_done)

        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            await self._cancel(tasks)
            raise

        for index, task in enumerate(tasks):
            error = _task_error(task)
            if error is None:
                continue
            logger.debug(
                "Render of entry %d failed in batch %d; cancelling the rest",
                index,
                batch.generation,
            )
            await self._cancel(tasks)
            raise RenderFailure(index, batch.entries[index]) from error

    # ------------------------------------------------------------------
    def _on_render_done(self, generation: int, _task: asyncio.Future) -> None:
        if self.is_current(generation) and self._pending > 0:
            self._pending -= 1

    # ------------------------------------------------------------------
    @staticmethod
    async def _cancel(tasks: Sequence[asyncio.Future]) -> None:
        for task in tasks:
            if not task.done():
                task.cancel()
        # collect every outcome so no task exception goes unretrieved
        await asyncio.gather(*tasks, return_exceptions=True)


__all__ = [
    "ClearFn",
    "RenderBatch",
    "RenderFn",
    "RenderScheduler",
    "SchedulerState",
    "SettleFn",
]
