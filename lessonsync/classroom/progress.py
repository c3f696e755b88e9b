"""
ProgressStateMachine - Per-item completion rolling up to an enrollment.

Tracks:
- Item completion (not_started -> completed, one-way)
- Optimistic "pending" completions awaiting remote acknowledgment
- The cached Enrollment and its progress_percentage
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterable, Optional

from lessonsync.errors import CompletionError, RemoteError
from lessonsync.remote import RemoteAuthority
from lessonsync.schemas import Enrollment, ItemProgress, ItemStatus

from .graph import ContentGraph

logger = logging.getLogger(__name__)

EnrollmentListener = Callable[[Enrollment], None]


def compute_percentage(completed: int, total: int) -> int:
    """Completion percentage rounded half-up to an integer."""
    if total <= 0:
        return 0
    value = Decimal(completed) * 100 / Decimal(total)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ProgressStateMachine:
    """
    Two-phase completion tracking for one enrollment.

    A completion is applied locally with a pending marker, submitted to the
    remote authority, then committed or rolled back. The displayed
    enrollment never runs ahead of the authority once no completion is
    pending.
    """

    def __init__(
        self,
        graph: ContentGraph,
        enrollment: Enrollment,
        remote: RemoteAuthority,
        progress: Iterable[ItemProgress] = (),
    ):
        """
        Initialize from the course structure response.

        Args:
            graph: ContentGraph of the enrolled course
            enrollment: Authoritative enrollment as loaded
            remote: Remote authority used for completion submissions
            progress: Existing per-item progress entries
        """
        self.graph = graph
        self.remote = remote
        self._authoritative = enrollment
        self._completed: dict[str, ItemProgress] = {}
        self._pending: set[str] = set()
        self._listeners: list[EnrollmentListener] = []

        for entry in progress:
            if not entry.completed:
                continue
            if entry.item_id not in graph:
                logger.debug(f"Ignoring progress for unknown item {entry.item_id}")
                continue
            self._completed[entry.item_id] = entry

        self._enrollment = enrollment

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def enrollment(self) -> Enrollment:
        """Cached enrollment including any optimistic update."""
        return self._enrollment

    @property
    def progress_percentage(self) -> int:
        return self._enrollment.progress_percentage

    @property
    def completed_count(self) -> int:
        return len(self._completed)

    def status(self, item_id: str) -> ItemStatus:
        if item_id in self._completed or item_id in self._pending:
            return ItemStatus.COMPLETED
        return ItemStatus.NOT_STARTED

    def is_completed(self, item_id: str) -> bool:
        return self.status(item_id) == ItemStatus.COMPLETED

    def is_pending(self, item_id: str) -> bool:
        return item_id in self._pending

    def get_item_progress(self, item_id: str) -> Optional[ItemProgress]:
        """Committed progress entry, or None when the item is not started."""
        return self._completed.get(item_id)

    def subscribe(self, listener: EnrollmentListener):
        """Register a callback fired with each committed enrollment."""
        self._listeners.append(listener)

    def _refresh_enrollment(self):
        if not self._pending:
            self._enrollment = self._authoritative
            return
        optimistic = compute_percentage(
            len(self._completed) + len(self._pending), self.graph.total_items
        )
        self._enrollment = self._authoritative.model_copy(update={
            "progress_percentage": max(self._authoritative.progress_percentage, optimistic),
        })

    def _belongs(self, enrollment: Enrollment) -> bool:
        current = self._authoritative
        if enrollment.id == current.id and enrollment.course_id == current.course_id:
            return True
        logger.warning(
            f"Ignoring enrollment {enrollment.id} for course {enrollment.course_id}; "
            f"expected {current.id} for course {current.course_id}"
        )
        return False

    def _commit_enrollment(self, enrollment: Enrollment):
        """
        Install an acknowledged enrollment.

        Acknowledgments can arrive out of order, so the percentage is kept
        at the highest value seen and never below the committed items.
        """
        if not self._belongs(enrollment):
            return
        current = self._authoritative
        floor = compute_percentage(len(self._completed), self.graph.total_items)
        percentage = max(current.progress_percentage, enrollment.progress_percentage, floor)
        if percentage != enrollment.progress_percentage:
            enrollment = enrollment.model_copy(update={"progress_percentage": percentage})

        self._authoritative = enrollment
        self._refresh_enrollment()
        for listener in self._listeners:
            listener(enrollment)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    async def mark_complete(self, item_id: str) -> Optional[Enrollment]:
        """
        Complete an item on explicit learner action.

        Returns:
            The authoritative enrollment, or None if the item was already
            completed or a submission for it is in flight.

        Raises:
            KeyError: item is not part of this course
            CompletionError: the remote call failed; local state was rolled back
        """
        if item_id not in self.graph:
            raise KeyError(f"Unknown item: {item_id}")
        if item_id in self._completed or item_id in self._pending:
            logger.debug(f"Ignoring duplicate completion for {item_id}")
            return None

        self._pending.add(item_id)
        self._refresh_enrollment()
        try:
            enrollment = await self.remote.complete_item(item_id)
        except RemoteError as e:
            logger.warning(f"Completion of {item_id} failed, rolling back: {e}")
            raise CompletionError(item_id, f"Could not save completion: {e}") from e
        else:
            self._completed[item_id] = ItemProgress(
                item_id=item_id,
                completed=True,
                completed_at=datetime.now(timezone.utc),
            )
            self._commit_enrollment(enrollment)
            enrollment = self._authoritative
            logger.info(
                f"Item {item_id} completed; enrollment {enrollment.id} "
                f"at {enrollment.progress_percentage}%"
            )
            return enrollment
        finally:
            self._pending.discard(item_id)
            self._refresh_enrollment()

    def apply_external_completion(self, item_id: str, enrollment: Enrollment):
        """
        Record a completion reported by an external collaborator.

        Used when grading reports a quiz or assignment pass; the enrollment
        passed in is already authoritative, so nothing is submitted.
        """
        if item_id not in self.graph:
            raise KeyError(f"Unknown item: {item_id}")
        if not self._belongs(enrollment):
            return
        if item_id not in self._completed:
            self._completed[item_id] = ItemProgress(
                item_id=item_id,
                completed=True,
                completed_at=datetime.now(timezone.utc),
            )
        self._commit_enrollment(enrollment)
