"""
Exception taxonomy for LessonSync.

Timer and sync failures are contained inside the session layer; only
course loading, completion and certificate errors reach the caller.
"""

from typing import Optional


class LessonSyncError(Exception):
    """Base class for all LessonSync errors."""


class RemoteError(LessonSyncError):
    """The remote authority rejected a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransientRemoteError(RemoteError):
    """Network failure, timeout or 5xx. Safe to retry later."""


class ContentGraphError(LessonSyncError):
    """Course payload cannot be turned into a strict ordering."""


class CourseLoadError(LessonSyncError):
    """Playback cannot start; the learner should be sent to `redirect_to`."""

    def __init__(self, message: str, redirect_to: str = "/dashboard"):
        super().__init__(message)
        self.redirect_to = redirect_to


class CompletionError(LessonSyncError):
    """A mark-complete submission failed and was rolled back."""

    def __init__(self, item_id: str, message: str):
        super().__init__(message)
        self.item_id = item_id


class CertificateLockedError(LessonSyncError):
    """Certificate claimed before the course reached 100%."""
