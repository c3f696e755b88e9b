"""
LessonSync Session - Time tracking and synchronization for an open course.

This module provides:
- SessionStore: local persistence of session buffers
- SessionTimer: per-enrollment time accumulator
- SyncScheduler: heartbeat flush and access logging
- LessonPlayer: playback controller
"""

from .store import (
    SessionBuffer,
    SessionStore,
    parse_seconds,
)

from .timer import (
    SessionTimer,
    TICK_SECONDS,
)

from .scheduler import (
    SyncScheduler,
    FlushOutcome,
)

from .player import (
    CourseSession,
    LessonPlayer,
)

__all__ = [
    # Store
    "SessionBuffer",
    "SessionStore",
    "parse_seconds",
    # Timer
    "SessionTimer",
    "TICK_SECONDS",
    # Scheduler
    "SyncScheduler",
    "FlushOutcome",
    # Player
    "CourseSession",
    "LessonPlayer",
]
