"""
LessonSync Schemas - Pydantic models for the lesson playback engine.

This module exports all schema classes for:
- Course: nested course/section/item payload
- Progress: item completion, enrollment, course structure response
"""

# Course schemas
from .course import (
    ItemType,
    ItemPayload,
    SectionPayload,
    CoursePayload,
)

# Progress schemas
from .progress import (
    ItemStatus,
    EnrollmentStatus,
    ItemProgress,
    Enrollment,
    CourseStructure,
)

__all__ = [
    # Course
    'ItemType',
    'ItemPayload',
    'SectionPayload',
    'CoursePayload',
    # Progress
    'ItemStatus',
    'EnrollmentStatus',
    'ItemProgress',
    'Enrollment',
    'CourseStructure',
]
