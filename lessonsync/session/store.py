"""
SessionStore - Persist session buffers in ~/.lessonsync/session.db.

Stores time-on-task separately from anything the remote authority owns:
- Unflushed seconds per course (decimal string)
- Last acknowledged flush time
- Flush sequence number
"""

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from lessonsync.config import DEFAULT_STATE_DB

logger = logging.getLogger(__name__)


@dataclass
class SessionBuffer:
    """Local time-on-task accumulator for one course."""
    course_id: str
    enrollment_id: str
    accumulated_seconds: int = 0
    last_flush_at: Optional[datetime] = None
    flush_sequence: int = 0


def parse_seconds(raw: Optional[str]) -> Optional[int]:
    """
    Parse a persisted seconds value.

    Returns None for missing, non-numeric or negative values.
    """
    if raw is None:
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        return None
    return value if value >= 0 else None


class SessionStore:
    """
    Session buffer persistence in SQLite.

    One row per course, since a learner has at most one active enrollment
    per course. The database is created on first use so that an unwritable
    location surfaces as sqlite3.Error/OSError from load or save, where the
    timer can fall back to memory.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize session store.

        Args:
            db_path: Path to session.db (default: ~/.lessonsync/session.db)
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_STATE_DB
        self._ready = False

    def _ensure_database(self):
        """Create database and table if they don't exist."""
        if self._ready:
            return
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS session_buffer (
                    course_id TEXT PRIMARY KEY,
                    enrollment_id TEXT NOT NULL,
                    accumulated_seconds TEXT NOT NULL DEFAULT '0',
                    last_flush_at TEXT,
                    flush_sequence INTEGER NOT NULL DEFAULT 0
                );
            """)
            conn.commit()
        finally:
            conn.close()
        self._ready = True

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        self._ensure_database()
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    # -------------------------------------------------------------------------
    # Buffers
    # -------------------------------------------------------------------------

    def load(self, course_id: str, enrollment_id: str) -> SessionBuffer:
        """
        Rehydrate the buffer for a course, or start a fresh one.

        A missing or corrupt seconds value resumes at zero.
        """
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                """SELECT accumulated_seconds, last_flush_at, flush_sequence
                   FROM session_buffer WHERE course_id = ?""",
                (course_id,)
            )
            row = cursor.fetchone()
        finally:
            conn.close()

        if not row:
            return SessionBuffer(course_id=course_id, enrollment_id=enrollment_id)

        seconds = parse_seconds(row["accumulated_seconds"])
        if seconds is None:
            logger.warning(
                f"Discarding corrupt session value {row['accumulated_seconds']!r} "
                f"for course {course_id}"
            )
            seconds = 0

        try:
            last_flush_at = datetime.fromisoformat(row["last_flush_at"]) if row["last_flush_at"] else None
        except ValueError:
            last_flush_at = None

        return SessionBuffer(
            course_id=course_id,
            enrollment_id=enrollment_id,
            accumulated_seconds=seconds,
            last_flush_at=last_flush_at,
            flush_sequence=row["flush_sequence"] or 0,
        )

    def save(self, buffer: SessionBuffer):
        """Write the whole buffer. Raises sqlite3.Error/OSError on failure."""
        conn = self._get_connection()
        try:
            last_flush_at = buffer.last_flush_at.isoformat() if buffer.last_flush_at else None
            conn.execute(
                """INSERT INTO session_buffer
                     (course_id, enrollment_id, accumulated_seconds, last_flush_at, flush_sequence)
                   VALUES (?, ?, ?, ?, ?)
                   ON CONFLICT(course_id) DO UPDATE SET
                     enrollment_id = excluded.enrollment_id,
                     accumulated_seconds = excluded.accumulated_seconds,
                     last_flush_at = excluded.last_flush_at,
                     flush_sequence = excluded.flush_sequence""",
                (
                    buffer.course_id,
                    buffer.enrollment_id,
                    str(buffer.accumulated_seconds),
                    last_flush_at,
                    buffer.flush_sequence,
                )
            )
            conn.commit()
        finally:
            conn.close()

    def read_raw(self, course_id: str) -> Optional[str]:
        """Get the stored decimal string for a course, if any."""
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "SELECT accumulated_seconds FROM session_buffer WHERE course_id = ?",
                (course_id,)
            )
            row = cursor.fetchone()
            return row["accumulated_seconds"] if row else None
        finally:
            conn.close()

    def clear(self, course_id: str):
        """Remove the buffer for a course."""
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM session_buffer WHERE course_id = ?", (course_id,))
            conn.commit()
        finally:
            conn.close()
