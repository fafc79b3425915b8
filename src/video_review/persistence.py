"""Persistence coordinator: debounced autosave plus immediate manual saves.

Decides *when* the review document is written back. Mutations restart a
single trailing-edge timer; a continuous stream of label changes produces
no write until activity pauses for the full delay. Manual and end-of-session
saves bypass the timer and never cancel it.

Every write carries a full snapshot taken at the instant the write is
dispatched. State is read from a reference cell that the label store and
cursor update on every change, never from a value captured when the timer
was scheduled. Overlapping writes are allowed; the durable store's own
last-write-wins overwrite decides which one sticks.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Protocol

from video_review.models import DEFAULT_AUTOSAVE_DELAY, LabelState, ReviewSnapshot
from video_review.services.interfaces import StorageError

logger = logging.getLogger(__name__)

# Save indicator states
SAVE_IDLE = "idle"
SAVE_PENDING = "pending"
SAVE_SAVING = "saving"
SAVE_SAVED = "saved"
SAVE_FAILED = "failed"

SAVE_STATES = (SAVE_IDLE, SAVE_PENDING, SAVE_SAVING, SAVE_SAVED, SAVE_FAILED)


class TimerHandle(Protocol):
    """Anything with a ``stop()``; Textual's ``Timer`` satisfies this."""

    def stop(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]
SnapshotWriter = Callable[[ReviewSnapshot], Awaitable[None]]


class _LoopTimer:
    def __init__(self, handle: asyncio.TimerHandle) -> None:
        self._handle = handle

    def stop(self) -> None:
        self._handle.cancel()


def loop_scheduler(delay: float, callback: Callable[[], None]) -> TimerHandle:
    """Default scheduler backed by the running asyncio loop."""
    loop = asyncio.get_running_loop()
    return _LoopTimer(loop.call_later(delay, callback))


@dataclass(frozen=True, slots=True)
class SaveResult:
    """Outcome of one write attempt."""

    attempt: int
    reason: str
    ok: bool
    error: str | None = None


class PersistenceCoordinator:
    """Coalesce label/page mutations into full-document writes."""

    def __init__(
        self,
        writer: SnapshotWriter,
        *,
        labels: Mapping[str, LabelState] | None = None,
        last_page: int = 0,
        delay: float = DEFAULT_AUTOSAVE_DELAY,
        schedule: Scheduler | None = None,
        on_status: Callable[[str], None] | None = None,
        on_result: Callable[[SaveResult], None] | None = None,
    ) -> None:
        self._writer = writer
        # Reference cell: always the latest full state
        self._labels: Mapping[str, LabelState] = dict(labels or {})
        self._last_page = last_page
        self.delay = delay
        self._schedule: Scheduler = schedule or loop_scheduler
        self._timer: TimerHandle | None = None
        self._tasks: set[asyncio.Task[SaveResult]] = set()
        self._attempts = 0
        self._status = SAVE_IDLE
        self._closed = False
        self.last_result: SaveResult | None = None
        self.on_status = on_status
        self.on_result = on_result

    # -- observation -------------------------------------------------------

    def observe_labels(self, labels: Mapping[str, LabelState]) -> None:
        """Record a full label snapshot from the store and restart the timer."""
        self._labels = labels
        self._restart_timer()

    def observe_page(self, page: int) -> None:
        """Record a navigation and restart the timer."""
        self._last_page = page
        self._restart_timer()

    def current_snapshot(self) -> ReviewSnapshot:
        return ReviewSnapshot(last_page=self._last_page, labels=dict(self._labels))

    # -- state -------------------------------------------------------------

    @property
    def status(self) -> str:
        return self._status

    @property
    def pending(self) -> bool:
        """True while a debounced write is scheduled but not yet dispatched."""
        return self._timer is not None

    @property
    def in_flight(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    @property
    def attempts(self) -> int:
        return self._attempts

    # -- triggers ----------------------------------------------------------

    def _restart_timer(self) -> None:
        if self._closed:
            logger.debug("Ignoring mutation after session end")
            return
        # Atomic swap: capture and clear before stopping
        old_timer = self._timer
        self._timer = None
        if old_timer is not None:
            old_timer.stop()
        self._timer = self._schedule(self.delay, self._on_timer)
        if not self.in_flight:
            self._set_status(SAVE_PENDING)

    def _on_timer(self) -> None:
        self._timer = None
        self._dispatch("autosave")

    def save_now(self, reason: str = "manual") -> asyncio.Task[SaveResult]:
        """Write the freshest state immediately.

        A pending debounced write is left alone, so a second write may follow.
        """
        return self._dispatch(reason)

    async def close(self) -> SaveResult:
        """End-of-session save: stop the timer, write once, await all writes."""
        timer = self._timer
        self._timer = None
        if timer is not None:
            timer.stop()
        self._closed = True
        final = self._dispatch("session-end")
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        return final.result()

    def resume(self) -> None:
        """Re-enable autosave after ``close`` (the user chose not to quit)."""
        self._closed = False

    # -- writes ------------------------------------------------------------

    def _dispatch(self, reason: str) -> asyncio.Task[SaveResult]:
        snapshot = self.current_snapshot()
        self._attempts += 1
        attempt = self._attempts
        task = asyncio.get_running_loop().create_task(self._write(attempt, reason, snapshot))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._set_status(SAVE_SAVING)
        logger.debug(
            "Dispatched save #%d (%s): page=%d labels=%d",
            attempt,
            reason,
            snapshot.last_page,
            len(snapshot.labels),
        )
        return task

    async def _write(self, attempt: int, reason: str, snapshot: ReviewSnapshot) -> SaveResult:
        try:
            await self._writer(snapshot)
        except (StorageError, OSError) as e:
            logger.warning("Save #%d (%s) failed: %s", attempt, reason, e)
            result = SaveResult(attempt=attempt, reason=reason, ok=False, error=str(e))
        except Exception as e:
            logger.exception("Save #%d (%s) raised unexpectedly", attempt, reason)
            error = str(e) or type(e).__name__
            result = SaveResult(attempt=attempt, reason=reason, ok=False, error=error)
        else:
            result = SaveResult(attempt=attempt, reason=reason, ok=True)
        self._finish(result)
        return result

    def _finish(self, result: SaveResult) -> None:
        self.last_result = result
        current = asyncio.current_task()
        others_running = any(task is not current and not task.done() for task in self._tasks)
        if not result.ok:
            self._set_status(SAVE_FAILED)
        elif others_running:
            self._set_status(SAVE_SAVING)
        elif self._timer is not None:
            self._set_status(SAVE_PENDING)
        else:
            self._set_status(SAVE_SAVED)
        if self.on_result is not None:
            self.on_result(result)

    def _set_status(self, status: str) -> None:
        self._status = status
        if self.on_status is not None:
            self.on_status(status)


__all__ = [
    "SAVE_FAILED",
    "SAVE_IDLE",
    "SAVE_PENDING",
    "SAVE_SAVED",
    "SAVE_SAVING",
    "SAVE_STATES",
    "PersistenceCoordinator",
    "SaveResult",
    "Scheduler",
    "SnapshotWriter",
    "TimerHandle",
    "loop_scheduler",
]
