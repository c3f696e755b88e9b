"""
SyncScheduler - Drain session time and access events to the remote authority.

Provides:
- Heartbeat flush every interval, at most one in flight per course
- Fire-and-forget access logging
- Final flush on controlled exit
"""

import asyncio
import logging
from enum import Enum
from typing import Coroutine, Optional

from lessonsync.errors import RemoteError
from lessonsync.remote import RemoteAuthority

from .timer import SessionTimer

logger = logging.getLogger(__name__)


class FlushOutcome(str, Enum):
    SENT = "sent"           # Acknowledged; delta consumed
    EMPTY = "empty"         # Nothing outstanding
    SKIPPED = "skipped"     # Another flush was in flight
    FAILED = "failed"       # Remote error; delta kept for the next attempt


class SyncScheduler:
    """
    Periodic flush of a SessionTimer's unsynced seconds.

    The delta sent is whatever the buffer holds at send time, so a failed
    flush is simply retried with the same seconds plus anything accrued
    since. The flush sequence number only advances on acknowledgment.
    """

    def __init__(
        self,
        timer: SessionTimer,
        remote: RemoteAuthority,
        interval: float = 60.0,
    ):
        """
        Args:
            timer: Timer whose buffer is drained
            remote: Remote authority receiving heartbeats and access events
            interval: Seconds between heartbeat flushes
        """
        self.timer = timer
        self.remote = remote
        self.course_id = timer.course_id
        self.interval = interval
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self._background: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def flush_in_flight(self) -> bool:
        return self._lock.locked()

    @property
    def outstanding_seconds(self) -> int:
        return self.timer.accumulated_seconds

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self):
        """Begin the heartbeat loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"session-flush-{self.course_id}"
        )

    def stop(self):
        """
        Cancel the heartbeat loop.

        Flushes and access events already in flight keep running in the
        background.
        """
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            self._spawn(self.flush(), "flush")

    def _spawn(self, coro: Coroutine, label: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=f"{label}-{self.course_id}")
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task):
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Background task {task.get_name()} failed: {error!r}")

    async def drain(self):
        """Wait for in-flight flushes and access events to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Remote calls
    # -------------------------------------------------------------------------

    async def flush(self, wait: bool = False) -> FlushOutcome:
        """
        Send the outstanding delta.

        Args:
            wait: Queue behind an in-flight flush instead of skipping

        Returns:
            FlushOutcome describing what happened; remote errors are
            logged and reported as FAILED, never raised.
        """
        if self._lock.locked() and not wait:
            logger.debug(f"Flush for course {self.course_id} skipped, one is in flight")
            return FlushOutcome.SKIPPED

        async with self._lock:
            delta = self.timer.accumulated_seconds
            if delta <= 0:
                return FlushOutcome.EMPTY

            sequence = self.timer.buffer.flush_sequence
            try:
                await self.remote.send_heartbeat(self.course_id, delta, sequence)
            except RemoteError as e:
                logger.warning(
                    f"Heartbeat for course {self.course_id} failed, "
                    f"{delta}s kept for retry: {e}"
                )
                return FlushOutcome.FAILED

            self.timer.commit_flush(delta)
            logger.debug(f"Flushed {delta}s for course {self.course_id} (seq {sequence})")
            return FlushOutcome.SENT

    async def _send_access(self, item_id: str):
        try:
            await self.remote.log_access(self.course_id, item_id)
        except RemoteError as e:
            logger.warning(f"Access event for item {item_id} not recorded: {e}")

    def log_access(self, item_id: str) -> asyncio.Task:
        """Record an item activation without waiting for the response."""
        return self._spawn(self._send_access(item_id), "access")
