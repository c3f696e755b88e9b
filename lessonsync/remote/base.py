"""
Abstract remote authority interface.

Defines the contract the playback engine consumes from the LMS backend.
This allows swapping the HTTP implementation for an in-memory one in
tests without changing engine code.
"""

from abc import ABC, abstractmethod

from lessonsync.schemas import CourseStructure, Enrollment


class RemoteAuthority(ABC):
    """
    Remote authority interface.

    Implementations raise RemoteError (or TransientRemoteError for
    network-level failures) and never leak transport exceptions.
    """

    @abstractmethod
    async def get_course_structure(self, course_id: str) -> CourseStructure:
        """
        Load the course tree with the caller's enrollment and item progress.
        """
        pass

    @abstractmethod
    async def log_access(self, course_id: str, item_id: str) -> None:
        """Record that the learner opened an item. No response body required."""
        pass

    @abstractmethod
    async def send_heartbeat(
        self,
        course_id: str,
        seconds_delta: int,
        sequence: int,
    ) -> None:
        """
        Report time-on-task accumulated since the last acknowledged heartbeat.

        Args:
            course_id: Course the time was spent in
            seconds_delta: Seconds not yet acknowledged
            sequence: Flush sequence number; repeated until acknowledged so
                the server can recognise a retry
        """
        pass

    @abstractmethod
    async def complete_item(self, item_id: str) -> Enrollment:
        """Mark an item complete; returns the authoritative enrollment."""
        pass

    @abstractmethod
    async def claim_certificate(self, course_id: str) -> bytes:
        """Claim the certificate artifact for a completed course."""
        pass
