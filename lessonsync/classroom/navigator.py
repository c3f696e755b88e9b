"""
Navigator - Item sequencing across section boundaries.

Provides:
- Next/previous item navigation over the strict (section, item) order
- Item position within the course
- Resume point based on completion
- Curriculum tree with status indicators
"""

from dataclasses import dataclass
from typing import Optional

from lessonsync.schemas import ItemStatus

from .graph import ContentGraph, ItemRef, SectionRef
from .progress import ProgressStateMachine


@dataclass
class NavigationItem:
    """Item with navigation metadata."""
    item: ItemRef
    status: ItemStatus
    is_current: bool


@dataclass
class NavigationSection:
    """Section with items and navigation metadata."""
    section: SectionRef
    items: list[NavigationItem]
    completed_count: int
    total_count: int


class Navigator:
    """
    Resolve "what comes next" over a ContentGraph.

    The graph is flattened once and indexed by item ID, so next/previous
    are O(1). Empty sections contribute no items and are skipped.
    """

    def __init__(self, graph: ContentGraph):
        self.graph = graph
        self._order: tuple[ItemRef, ...] = graph.flatten()
        self._index: dict[str, int] = {item.id: idx for idx, item in enumerate(self._order)}

    @property
    def total_items(self) -> int:
        return len(self._order)

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def next(self, current_item_id: str) -> Optional[ItemRef]:
        """Next item in the same section, else the first item of the next section."""
        idx = self._index.get(current_item_id)
        if idx is None or idx + 1 >= len(self._order):
            return None
        return self._order[idx + 1]

    def previous(self, current_item_id: str) -> Optional[ItemRef]:
        """Previous item in the same section, else the last item of the previous section."""
        idx = self._index.get(current_item_id)
        if idx is None or idx <= 0:
            return None
        return self._order[idx - 1]

    def position(self, item_id: str) -> tuple[int, int]:
        """
        Get item position as (current, total).

        Returns (0, total) if item not found.
        """
        if item_id not in self._index:
            return (0, len(self._order))
        return (self._index[item_id] + 1, len(self._order))

    def recommended_item_id(
        self,
        progress: ProgressStateMachine,
        current_item_id: Optional[str] = None,
    ) -> Optional[str]:
        """
        Get the item the learner should land on.

        Priority:
        1. Current item if it is part of this course and not completed
        2. First item not yet completed
        3. First item
        """
        if current_item_id in self._index and not progress.is_completed(current_item_id):
            return current_item_id

        for item in self._order:
            if not progress.is_completed(item.id):
                return item.id

        return self._order[0].id if self._order else None

    # -------------------------------------------------------------------------
    # Curriculum Tree
    # -------------------------------------------------------------------------

    def navigation_tree(
        self,
        progress: ProgressStateMachine,
        current_item_id: Optional[str] = None,
    ) -> list[NavigationSection]:
        """
        Get the curriculum tree annotated with completion status.

        Sections without items are included so the sidebar matches the
        course outline.
        """
        tree = []
        for section in self.graph.sections:
            nav_items = []
            completed_count = 0
            for item in section.items:
                status = progress.status(item.id)
                if status == ItemStatus.COMPLETED:
                    completed_count += 1
                nav_items.append(NavigationItem(
                    item=item,
                    status=status,
                    is_current=item.id == current_item_id,
                ))
            tree.append(NavigationSection(
                section=section,
                items=nav_items,
                completed_count=completed_count,
                total_count=len(section.items),
            ))
        return tree

    def status_indicator(self, progress: ProgressStateMachine, item_id: str,
                         current_item_id: Optional[str] = None) -> str:
        """
        Get status indicator for sidebar display.

        Returns:
            ✓ for completed
            → for current
            ○ for not started
        """
        if progress.is_completed(item_id):
            return "✓"
        if item_id == current_item_id:
            return "→"
        return "○"
