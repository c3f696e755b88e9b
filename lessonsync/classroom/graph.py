"""
ContentGraph - Immutable view of a course's sections and items.

Provides read-only access to:
- Sections and items in their strict (section, item) order
- Item lookup by ID or by (section ID, item ID)
- Course totals (item count, duration)

A course edit requires building a new graph; nothing here mutates after
construction.
"""

from dataclasses import dataclass
from typing import Optional

from lessonsync.errors import ContentGraphError
from lessonsync.schemas import CoursePayload, ItemType


@dataclass(frozen=True)
class ItemRef:
    """Leaf content unit with the position of its section."""
    id: str
    section_id: str
    slug: Optional[str]
    title: str
    type: ItemType
    duration_minutes: Optional[int]
    order_index: int
    section_order_index: int

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.section_order_index, self.order_index)


@dataclass(frozen=True)
class SectionRef:
    """Section with its items sorted by order_index."""
    id: str
    title: str
    order_index: int
    items: tuple[ItemRef, ...]


class ContentGraph:
    """
    Ordered, immutable content graph for one course.

    Built once per course load from the nested section/item payload.
    """

    def __init__(self, course: CoursePayload):
        """
        Build the graph.

        Args:
            course: Nested course payload

        Raises:
            ContentGraphError: duplicate order_index within a scope, or
                duplicate section/item IDs
        """
        self.course_id = course.id
        self.course_slug = course.slug
        self.title = course.title

        self._check_unique(
            [s.order_index for s in course.sections],
            f"section order_index in course {course.id}",
        )
        self._check_unique([s.id for s in course.sections], f"section id in course {course.id}")

        sections = []
        items_by_id: dict[str, ItemRef] = {}
        for section in sorted(course.sections, key=lambda s: s.order_index):
            self._check_unique(
                [i.order_index for i in section.items],
                f"item order_index in section {section.id}",
            )
            items = []
            for item in sorted(section.items, key=lambda i: i.order_index):
                if item.id in items_by_id:
                    raise ContentGraphError(f"Duplicate item id: {item.id}")
                ref = ItemRef(
                    id=item.id,
                    section_id=section.id,
                    slug=item.slug,
                    title=item.title,
                    type=item.type,
                    duration_minutes=item.duration_minutes,
                    order_index=item.order_index,
                    section_order_index=section.order_index,
                )
                items_by_id[item.id] = ref
                items.append(ref)
            sections.append(SectionRef(
                id=section.id,
                title=section.title,
                order_index=section.order_index,
                items=tuple(items),
            ))

        self._sections: tuple[SectionRef, ...] = tuple(sections)
        self._sections_by_id = {s.id: s for s in self._sections}
        self._items_by_id = items_by_id
        self._flat: tuple[ItemRef, ...] = tuple(
            item for section in self._sections for item in section.items
        )

    @staticmethod
    def _check_unique(values: list, label: str):
        if len(values) != len(set(values)):
            raise ContentGraphError(f"Duplicate {label}")

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    @property
    def sections(self) -> tuple[SectionRef, ...]:
        return self._sections

    def item_at(self, section_id: str, item_id: str) -> Optional[ItemRef]:
        """Get an item only if it belongs to the given section."""
        section = self._sections_by_id.get(section_id)
        if section is None:
            return None
        item = self._items_by_id.get(item_id)
        if item is None or item.section_id != section_id:
            return None
        return item

    def locate(self, item_id: str) -> Optional[ItemRef]:
        """Get an item by ID regardless of section."""
        return self._items_by_id.get(item_id)

    def section_for(self, item_id: str) -> Optional[SectionRef]:
        item = self._items_by_id.get(item_id)
        return self._sections_by_id[item.section_id] if item else None

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._items_by_id

    # -------------------------------------------------------------------------
    # Ordering
    # -------------------------------------------------------------------------

    def flatten(self) -> tuple[ItemRef, ...]:
        """All items sorted by section order, then item order."""
        return self._flat

    def first_item(self) -> Optional[ItemRef]:
        return self._flat[0] if self._flat else None

    @property
    def total_items(self) -> int:
        return len(self._flat)

    @property
    def total_duration_minutes(self) -> int:
        return sum(item.duration_minutes or 0 for item in self._flat)
