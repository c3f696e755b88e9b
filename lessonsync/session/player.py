"""
LessonPlayer - Playback controller tying navigation, progress and sync together.

A CourseSession lives while the learner is inside one course: it owns the
content graph, the progress state machine, the certificate gate, and the
two recurring tasks (tick and flush). Switching items within the course
reuses the session; entering another course tears it down first.
"""

import logging
from typing import Optional

from lessonsync.classroom import (
    CertificateGate,
    ContentGraph,
    ItemRef,
    Navigator,
    ProgressStateMachine,
)
from lessonsync.config import Settings
from lessonsync.errors import ContentGraphError, CourseLoadError, RemoteError
from lessonsync.remote import RemoteAuthority
from lessonsync.schemas import CourseStructure

from .scheduler import FlushOutcome, SyncScheduler
from .store import SessionStore
from .timer import SessionTimer

logger = logging.getLogger(__name__)


class CourseSession:
    """All per-course state for an active playback context."""

    def __init__(
        self,
        structure: CourseStructure,
        remote: RemoteAuthority,
        store: SessionStore,
        settings: Settings,
    ):
        """
        Raises:
            ContentGraphError: course payload has no strict ordering
        """
        self.course_id = structure.course.id
        self.graph = ContentGraph(structure.course)
        self.navigator = Navigator(self.graph)
        self.progress = ProgressStateMachine(
            self.graph, structure.enrollment, remote, structure.progress
        )
        self.gate = CertificateGate(self.course_id, remote)
        self.progress.subscribe(self.gate.observe_enrollment)

        self.timer = SessionTimer(
            store,
            self.course_id,
            structure.enrollment.id,
            interval=settings.tick_interval_seconds,
        )
        self.scheduler = SyncScheduler(
            self.timer, remote, interval=settings.flush_interval_seconds
        )
        self.current_item_id: Optional[str] = None

    @property
    def current_item(self) -> Optional[ItemRef]:
        return self.graph.locate(self.current_item_id) if self.current_item_id else None

    def start(self):
        """Resume the buffer and start both recurring tasks."""
        self.timer.activate()
        self.timer.start()
        self.scheduler.start()
        self.gate.observe_enrollment(self.progress.enrollment)

    def stop(self):
        """Cancel both recurring tasks together."""
        self.timer.stop()
        self.scheduler.stop()

    def activate_item(self, item_id: str) -> ItemRef:
        """Show an item; logs one access event per activation."""
        item = self.graph.locate(item_id)
        if item is None:
            raise KeyError(f"Unknown item: {item_id}")
        if item_id != self.current_item_id:
            self.current_item_id = item_id
            self.scheduler.log_access(item_id)
        return item

    async def close(self, final_flush: bool = True) -> Optional[FlushOutcome]:
        """Stop the tasks and optionally make one last flush attempt."""
        self.stop()
        if not final_flush:
            return None
        return await self.scheduler.flush(wait=True)


class LessonPlayer:
    """
    Drive lesson playback for one learner.

    Combines the remote authority (content and progress) with local
    session state to provide navigation, completion and time tracking.
    """

    def __init__(
        self,
        remote: RemoteAuthority,
        store: Optional[SessionStore] = None,
        settings: Optional[Settings] = None,
    ):
        self.remote = remote
        self.settings = settings or Settings()
        self.store = store or SessionStore(self.settings.state_db_path)
        self.session: Optional[CourseSession] = None

    def _require_session(self) -> CourseSession:
        if self.session is None or self.session.current_item_id is None:
            raise RuntimeError("No lesson is open")
        return self.session

    async def _load_session(self, course_id: str) -> CourseSession:
        try:
            structure = await self.remote.get_course_structure(course_id)
            session = CourseSession(structure, self.remote, self.store, self.settings)
        except (RemoteError, ContentGraphError) as e:
            logger.error(f"Cannot open course {course_id}: {e}")
            raise CourseLoadError(
                f"Course {course_id} could not be loaded: {e}",
                redirect_to=self.settings.dashboard_path,
            ) from e

        if session.graph.total_items == 0:
            raise CourseLoadError(
                f"Course {course_id} has no content",
                redirect_to=self.settings.dashboard_path,
            )
        return session

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    async def open(self, course_id: str, item_id: Optional[str] = None) -> ItemRef:
        """
        Open an item, loading the course if it is not the active one.

        Args:
            course_id: Course to play
            item_id: Item to show; defaults to the resume point

        Raises:
            CourseLoadError: the course could not be loaded; playback is
                unavailable and the learner should be redirected
        """
        if self.session is not None and self.session.course_id != course_id:
            await self.leave_course()

        if self.session is None:
            session = await self._load_session(course_id)
            session.start()
            self.session = session

        session = self.session
        if item_id is None or item_id not in session.graph:
            if item_id is not None:
                logger.warning(f"Item {item_id} not found in course {course_id}, resuming instead")
            item_id = session.navigator.recommended_item_id(session.progress, session.current_item_id)
        return session.activate_item(item_id)

    async def go_next(self) -> Optional[ItemRef]:
        """Move to the next item; None (and no move) at the end of the course."""
        session = self._require_session()
        nxt = session.navigator.next(session.current_item_id)
        if nxt is None:
            return None
        return session.activate_item(nxt.id)

    async def go_previous(self) -> Optional[ItemRef]:
        """Move to the previous item; None (and no move) at the start."""
        session = self._require_session()
        prev = session.navigator.previous(session.current_item_id)
        if prev is None:
            return None
        return session.activate_item(prev.id)

    # -------------------------------------------------------------------------
    # Lesson Actions
    # -------------------------------------------------------------------------

    async def mark_complete(self) -> Optional[ItemRef]:
        """
        Complete the current item and advance.

        Returns:
            The next item now on screen, or None if the submission was a
            duplicate or the course has no further items

        Raises:
            CompletionError: submission failed; nothing was recorded
        """
        session = self._require_session()
        item_id = session.current_item_id
        enrollment = await session.progress.mark_complete(item_id)
        if enrollment is None:
            return None
        nxt = session.navigator.next(item_id)
        if nxt is None or session.current_item_id != item_id:
            return None
        return session.activate_item(nxt.id)

    async def claim_certificate(self) -> bytes:
        """Claim the certificate of the active course."""
        if self.session is None:
            raise RuntimeError("No course is open")
        return await self.session.gate.claim()

    async def leave_course(self) -> Optional[FlushOutcome]:
        """Controlled exit: cancel the timers and make a final flush."""
        if self.session is None:
            return None
        session, self.session = self.session, None
        outcome = await session.close(final_flush=True)
        logger.info(f"Left course {session.course_id} (final flush: {outcome.value})")
        return outcome
