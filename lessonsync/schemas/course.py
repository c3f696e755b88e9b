"""
Course structure schemas for LessonSync.

Defines Pydantic models for the nested course payload returned by the
remote authority:
- Course -> Sections -> Items
- Item types (lecture, quiz, assignment)
"""

from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class ItemType(str, Enum):
    LECTURE = "lecture"
    QUIZ = "quiz"
    ASSIGNMENT = "assignment"


class ItemPayload(BaseModel):
    """Leaf content unit as delivered by the course structure endpoint."""
    id: str
    slug: Optional[str] = None
    title: str = ""
    type: ItemType = Field(ItemType.LECTURE, alias="item_type")
    duration_minutes: Optional[int] = None
    order_index: int

    model_config = {"populate_by_name": True}


class SectionPayload(BaseModel):
    id: str
    title: str = ""
    order_index: int
    items: list[ItemPayload] = []


class CoursePayload(BaseModel):
    id: str
    slug: Optional[str] = None
    title: str = ""
    sections: list[SectionPayload] = []
