"""
CertificateGate - Unlock certificate claiming at 100% completion.
"""

import logging
from typing import Callable

from lessonsync.errors import CertificateLockedError
from lessonsync.remote import RemoteAuthority
from lessonsync.schemas import Enrollment

logger = logging.getLogger(__name__)

UnlockListener = Callable[[str], None]


class CertificateGate:
    """
    Observe an enrollment's progress and unlock the claim action once.

    The unlock event fires at most once per gate, i.e. once per course
    session, however many times 100% is observed. Issuance itself belongs
    to the remote authority.
    """

    def __init__(self, course_id: str, remote: RemoteAuthority):
        self.course_id = course_id
        self.remote = remote
        self._unlocked = False
        self._listeners: list[UnlockListener] = []

    @property
    def unlocked(self) -> bool:
        return self._unlocked

    def on_unlock(self, listener: UnlockListener):
        """Register a callback fired with the course ID when the gate opens."""
        self._listeners.append(listener)

    def observe(self, progress_percentage: int) -> bool:
        """
        Observe a progress value.

        Returns True only for the observation that opened the gate.
        """
        if self._unlocked or progress_percentage < 100:
            return False
        self._unlocked = True
        logger.info(f"Certificate unlocked for course {self.course_id}")
        for listener in self._listeners:
            listener(self.course_id)
        return True

    def observe_enrollment(self, enrollment: Enrollment) -> bool:
        return self.observe(enrollment.progress_percentage)

    async def claim(self) -> bytes:
        """
        Request the certificate artifact.

        Raises:
            CertificateLockedError: course not yet complete
            RemoteError: issuance failed
        """
        if not self._unlocked:
            raise CertificateLockedError(
                f"Certificate for course {self.course_id} is not available yet"
            )
        return await self.remote.claim_certificate(self.course_id)
