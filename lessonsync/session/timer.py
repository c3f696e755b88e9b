"""
SessionTimer - Time-on-task accumulator for the active enrollment.

The counter is keyed on the course/enrollment, not the item on screen, so
switching items within a course never resets it. Every tick is written
through to the SessionStore; if the store fails, the timer keeps counting
in memory for the rest of the session.
"""

import asyncio
import logging
import sqlite3
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from .store import SessionBuffer, SessionStore

logger = logging.getLogger(__name__)

TICK_SECONDS = 1


class SessionTimer:
    """
    Per-enrollment elapsed-time accumulator with write-through persistence.

    Lifecycle: activate() -> start() ... stop(). stop() leaves the
    persisted value in place; only commit_flush() consumes it.
    """

    def __init__(
        self,
        store: SessionStore,
        course_id: str,
        enrollment_id: str,
        interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            store: Local persistence for the buffer
            course_id: Course the buffer is keyed on
            enrollment_id: Learner's enrollment in that course
            interval: Seconds between wakeups of the tick task
            clock: Monotonic clock the elapsed time is measured with
        """
        self.store = store
        self.course_id = course_id
        self.enrollment_id = enrollment_id
        self.interval = interval
        self.clock = clock
        self.persistent = True
        self._buffer: Optional[SessionBuffer] = None
        self._task: Optional[asyncio.Task] = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def buffer(self) -> SessionBuffer:
        if self._buffer is None:
            raise RuntimeError("SessionTimer used before activate()")
        return self._buffer

    @property
    def accumulated_seconds(self) -> int:
        return self.buffer.accumulated_seconds

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _degrade(self, error: Exception):
        if self.persistent:
            logger.warning(
                f"Session persistence unavailable for course {self.course_id}, "
                f"continuing in memory: {error}"
            )
        self.persistent = False

    def _persist(self):
        if not self.persistent:
            return
        try:
            self.store.save(self.buffer)
        except (sqlite3.Error, OSError) as e:
            self._degrade(e)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def activate(self) -> SessionBuffer:
        """Resume the persisted buffer for this course, or start at zero."""
        if self._buffer is not None:
            return self._buffer
        try:
            self._buffer = self.store.load(self.course_id, self.enrollment_id)
        except (sqlite3.Error, OSError) as e:
            self._degrade(e)
            self._buffer = SessionBuffer(course_id=self.course_id, enrollment_id=self.enrollment_id)
        logger.debug(
            f"Session timer for course {self.course_id} resumed at "
            f"{self._buffer.accumulated_seconds}s"
        )
        return self._buffer

    def start(self):
        """Begin ticking on the running event loop. No-op if already running."""
        self.activate()
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"session-tick-{self.course_id}"
        )

    def stop(self):
        """Cancel the tick task. Persisted state is left for the next flush."""
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self):
        # Credit measured elapsed time, carrying the fraction to the next wakeup
        last = self.clock()
        carry = 0.0
        while True:
            await asyncio.sleep(self.interval)
            now = self.clock()
            carry += now - last
            last = now
            whole = int(carry)
            if whole > 0:
                carry -= whole
                self.tick(whole)

    # -------------------------------------------------------------------------
    # Accounting
    # -------------------------------------------------------------------------

    def tick(self, seconds: int = TICK_SECONDS) -> int:
        """Add whole seconds of time and write them through. Returns the new total."""
        self.buffer.accumulated_seconds += seconds
        self._persist()
        return self.buffer.accumulated_seconds

    def commit_flush(self, sent_seconds: int):
        """
        Consume seconds the remote authority acknowledged.

        Time accrued while the flush was in flight stays in the buffer.
        """
        buffer = self.buffer
        buffer.accumulated_seconds = max(0, buffer.accumulated_seconds - sent_seconds)
        buffer.last_flush_at = datetime.now(timezone.utc)
        buffer.flush_sequence += 1
        self._persist()
