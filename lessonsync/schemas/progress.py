"""
Progress schemas for LessonSync.

Defines Pydantic models for learner state owned by the remote authority:
- Per-item completion
- Enrollment with its authoritative completion percentage
- The combined course structure response
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from .course import CoursePayload


class ItemStatus(str, Enum):
    NOT_STARTED = "not_started"
    COMPLETED = "completed"


class EnrollmentStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class ItemProgress(BaseModel):
    item_id: str
    completed: bool = False
    completed_at: Optional[datetime] = None

    @property
    def status(self) -> ItemStatus:
        return ItemStatus.COMPLETED if self.completed else ItemStatus.NOT_STARTED


class Enrollment(BaseModel):
    id: str
    course_id: str
    progress_percentage: int = Field(0, ge=0, le=100)
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE


class CourseStructure(BaseModel):
    """Response of the course structure endpoint."""
    course: CoursePayload
    enrollment: Enrollment
    progress: list[ItemProgress] = []
