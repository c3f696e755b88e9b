"""Shared test fixtures for LessonSync tests."""

import asyncio
import sqlite3
from typing import Optional

import pytest

from lessonsync.classroom import compute_percentage
from lessonsync.config import Settings
from lessonsync.errors import RemoteError, TransientRemoteError
from lessonsync.remote import RemoteAuthority
from lessonsync.schemas import (
    CoursePayload,
    CourseStructure,
    Enrollment,
    EnrollmentStatus,
    ItemPayload,
    ItemProgress,
    SectionPayload,
)
from lessonsync.session import SessionBuffer, SessionStore


def build_course(course_id: str, sections: dict[str, int]) -> CoursePayload:
    """
    Build a course payload from {section_id: item_count}.

    Sections and items are listed in reverse so graph construction has to
    sort them. Item IDs are "<section><n>", e.g. "A1", "A2".
    """
    section_payloads = []
    for s_idx, (section_id, count) in enumerate(sections.items()):
        items = [
            ItemPayload(
                id=f"{section_id}{n}",
                title=f"Lesson {section_id}{n}",
                order_index=n * 10,
                duration_minutes=15,
            )
            for n in range(1, count + 1)
        ]
        section_payloads.append(SectionPayload(
            id=section_id,
            title=f"Section {section_id}",
            order_index=s_idx,
            items=list(reversed(items)),
        ))
    return CoursePayload(id=course_id, title=f"Course {course_id}", sections=list(reversed(section_payloads)))


def write_stored_value(store: SessionStore, course_id: str, enrollment_id: str, value: str):
    """Overwrite the stored accumulated_seconds text, bypassing validation."""
    store.save(SessionBuffer(course_id=course_id, enrollment_id=enrollment_id))
    conn = sqlite3.connect(str(store.db_path))
    try:
        conn.execute(
            "UPDATE session_buffer SET accumulated_seconds = ? WHERE course_id = ?",
            (value, course_id),
        )
        conn.commit()
    finally:
        conn.close()


def build_structure(
    course_id: str,
    sections: dict[str, int],
    completed: tuple[str, ...] = (),
) -> CourseStructure:
    course = build_course(course_id, sections)
    total = sum(sections.values())
    return CourseStructure(
        course=course,
        enrollment=Enrollment(
            id=f"enr-{course_id}",
            course_id=course_id,
            progress_percentage=compute_percentage(len(completed), total),
        ),
        progress=[ItemProgress(item_id=item_id, completed=True) for item_id in completed],
    )


class FakeRemote(RemoteAuthority):
    """
    In-memory remote authority.

    Set a `*_gate` to an asyncio.Event to hold the matching call in flight
    until the test releases it; set a `fail_*` flag to make it raise.
    """

    def __init__(self, *structures: CourseStructure):
        self.structures = {s.course.id: s for s in structures}
        self.item_courses: dict[str, str] = {}
        for structure in structures:
            for section in structure.course.sections:
                for item in section.items:
                    if item.id in self.item_courses:
                        raise ValueError(f"Item {item.id} appears in more than one course")
                    self.item_courses[item.id] = structure.course.id
        self.completed: dict[str, set[str]] = {
            s.course.id: {p.item_id for p in s.progress if p.completed} for s in structures
        }
        self.heartbeats: list[tuple[str, int, int]] = []
        self.access_events: list[tuple[str, str]] = []
        self.completions: list[str] = []
        self.claims: list[str] = []
        self.fail_load = False
        self.fail_heartbeat = False
        self.fail_access = False
        self.fail_completion = False
        self.heartbeat_gate: Optional[asyncio.Event] = None
        self.completion_gate: Optional[asyncio.Event] = None

    def _course_for_item(self, item_id: str) -> CourseStructure:
        if item_id in self.item_courses:
            return self.structures[self.item_courses[item_id]]
        raise RemoteError(f"Unknown item {item_id}", status_code=404)

    async def get_course_structure(self, course_id: str) -> CourseStructure:
        if self.fail_load:
            raise TransientRemoteError("connection refused")
        if course_id not in self.structures:
            raise RemoteError(f"Course {course_id} not found", status_code=404)
        return self.structures[course_id]

    async def log_access(self, course_id: str, item_id: str) -> None:
        if self.fail_access:
            raise TransientRemoteError("offline")
        self.access_events.append((course_id, item_id))

    async def send_heartbeat(self, course_id: str, seconds_delta: int, sequence: int) -> None:
        if self.heartbeat_gate is not None:
            await self.heartbeat_gate.wait()
        if self.fail_heartbeat:
            raise TransientRemoteError("offline")
        self.heartbeats.append((course_id, seconds_delta, sequence))

    async def complete_item(self, item_id: str) -> Enrollment:
        self.completions.append(item_id)
        if self.completion_gate is not None:
            await self.completion_gate.wait()
        if self.fail_completion:
            raise TransientRemoteError("gateway timeout", status_code=504)

        structure = self._course_for_item(item_id)
        course_id = structure.course.id
        done = self.completed.setdefault(course_id, set())
        done.add(item_id)
        total = sum(len(s.items) for s in structure.course.sections)
        percentage = compute_percentage(len(done), total)
        return Enrollment(
            id=structure.enrollment.id,
            course_id=course_id,
            progress_percentage=percentage,
            status=EnrollmentStatus.COMPLETED if percentage == 100 else EnrollmentStatus.ACTIVE,
        )

    async def claim_certificate(self, course_id: str) -> bytes:
        self.claims.append(course_id)
        return b"%PDF-certificate"


@pytest.fixture
def two_section_structure():
    """Section A with 3 items, section B with 2 items."""
    return build_structure("course-1", {"A": 3, "B": 2})


@pytest.fixture
def nearly_done_structure():
    """Section C and D with 2 items each, 3 of the 4 completed."""
    return build_structure("course-2", {"C": 2, "D": 2}, completed=("C1", "C2", "D1"))


@pytest.fixture
def store(tmp_path):
    return SessionStore(tmp_path / "session.db")


@pytest.fixture
def settings(tmp_path):
    # Long intervals so the recurring tasks never fire on their own in tests
    return Settings(
        tick_interval_seconds=3600,
        flush_interval_seconds=3600,
        state_db_path=tmp_path / "session.db",
    )
