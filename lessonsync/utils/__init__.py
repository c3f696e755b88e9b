"""LessonSync utilities."""

from .formatting import format_duration

__all__ = [
    "format_duration",
]
