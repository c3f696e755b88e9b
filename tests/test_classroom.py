"""
Tests for content ordering: ContentGraph and Navigator.
"""

import pytest

from lessonsync.classroom import ContentGraph, Navigator, ProgressStateMachine
from lessonsync.errors import ContentGraphError
from lessonsync.schemas import (
    CoursePayload,
    ItemPayload,
    ItemStatus,
    ItemType,
    SectionPayload,
)
from lessonsync.utils import format_duration

from conftest import FakeRemote, build_course, build_structure


class TestContentGraph:
    """Test graph construction and lookup."""

    def test_flatten_sorts_sections_then_items(self):
        graph = ContentGraph(build_course("c", {"A": 3, "B": 2}))
        assert [item.id for item in graph.flatten()] == ["A1", "A2", "A3", "B1", "B2"]

    def test_item_at_requires_matching_section(self):
        graph = ContentGraph(build_course("c", {"A": 3, "B": 2}))
        assert graph.item_at("A", "A2").id == "A2"
        assert graph.item_at("B", "A2") is None
        assert graph.item_at("Z", "A2") is None

    def test_locate_and_section_for(self):
        graph = ContentGraph(build_course("c", {"A": 1, "B": 2}))
        assert graph.locate("B2").section_id == "B"
        assert graph.section_for("B2").id == "B"
        assert graph.locate("nope") is None
        assert graph.section_for("nope") is None
        assert "B1" in graph

    def test_totals(self):
        graph = ContentGraph(build_course("c", {"A": 3, "B": 2}))
        assert graph.total_items == 5
        assert graph.total_duration_minutes == 75
        assert graph.first_item().id == "A1"

    def test_items_are_immutable(self):
        graph = ContentGraph(build_course("c", {"A": 1}))
        with pytest.raises(AttributeError):
            graph.locate("A1").order_index = 5

    def test_duplicate_item_order_index_rejected(self):
        course = CoursePayload(id="c", sections=[
            SectionPayload(id="A", order_index=0, items=[
                ItemPayload(id="x", order_index=1),
                ItemPayload(id="y", order_index=1),
            ]),
        ])
        with pytest.raises(ContentGraphError):
            ContentGraph(course)

    def test_duplicate_section_order_index_rejected(self):
        course = CoursePayload(id="c", sections=[
            SectionPayload(id="A", order_index=0),
            SectionPayload(id="B", order_index=0),
        ])
        with pytest.raises(ContentGraphError):
            ContentGraph(course)

    def test_duplicate_item_id_rejected(self):
        course = CoursePayload(id="c", sections=[
            SectionPayload(id="A", order_index=0, items=[ItemPayload(id="x", order_index=1)]),
            SectionPayload(id="B", order_index=1, items=[ItemPayload(id="x", order_index=1)]),
        ])
        with pytest.raises(ContentGraphError):
            ContentGraph(course)

    def test_same_order_index_in_different_sections_allowed(self):
        graph = ContentGraph(build_course("c", {"A": 2, "B": 2}))
        assert graph.locate("A1").order_index == graph.locate("B1").order_index


class TestNavigator:
    """Test next/previous sequencing across section boundaries."""

    def test_next_crosses_section_boundary(self):
        nav = Navigator(ContentGraph(build_course("c", {"A": 3, "B": 2})))
        assert nav.next("A3").id == "B1"

    def test_next_within_section(self):
        nav = Navigator(ContentGraph(build_course("c", {"A": 3, "B": 2})))
        assert nav.next("A1").id == "A2"

    @pytest.mark.parametrize("sections", [
        {"A": 1, "B": 1},
        {"A": 3, "B": 2},
        {"A": 2, "B": 4, "C": 1, "D": 3},
    ])
    def test_last_of_each_section_leads_to_first_of_next(self, sections):
        nav = Navigator(ContentGraph(build_course("c", sections)))
        section_ids = list(sections)
        for idx, section_id in enumerate(section_ids[:-1]):
            last = f"{section_id}{sections[section_id]}"
            assert nav.next(last).id == f"{section_ids[idx + 1]}1"
        final = f"{section_ids[-1]}{sections[section_ids[-1]]}"
        assert nav.next(final) is None

    def test_previous_mirrors_next(self):
        nav = Navigator(ContentGraph(build_course("c", {"A": 3, "B": 2})))
        assert nav.previous("B1").id == "A3"
        assert nav.previous("A2").id == "A1"
        assert nav.previous("A1") is None

    def test_unknown_item(self):
        nav = Navigator(ContentGraph(build_course("c", {"A": 2})))
        assert nav.next("zz") is None
        assert nav.previous("zz") is None

    def test_empty_sections_are_skipped(self):
        course = CoursePayload(id="c", sections=[
            SectionPayload(id="A", order_index=0, items=[ItemPayload(id="a", order_index=0)]),
            SectionPayload(id="B", order_index=1, items=[]),
            SectionPayload(id="C", order_index=2, items=[ItemPayload(id="c", order_index=0)]),
        ])
        nav = Navigator(ContentGraph(course))
        assert nav.next("a").id == "c"
        assert nav.previous("c").id == "a"

    def test_position(self):
        nav = Navigator(ContentGraph(build_course("c", {"A": 3, "B": 2})))
        assert nav.position("B1") == (4, 5)
        assert nav.position("zz") == (0, 5)


class TestNavigationProgress:
    """Test resume point and curriculum tree."""

    @pytest.fixture
    def setup(self):
        structure = build_structure("c", {"A": 2, "B": 2}, completed=("A1", "A2"))
        graph = ContentGraph(structure.course)
        progress = ProgressStateMachine(graph, structure.enrollment, FakeRemote(structure), structure.progress)
        return Navigator(graph), progress

    def test_recommended_is_first_incomplete(self, setup):
        nav, progress = setup
        assert nav.recommended_item_id(progress) == "B1"

    def test_recommended_keeps_incomplete_current(self, setup):
        nav, progress = setup
        assert nav.recommended_item_id(progress, "B2") == "B2"
        assert nav.recommended_item_id(progress, "A1") == "B1"

    def test_recommended_when_all_complete(self):
        structure = build_structure("c", {"A": 2}, completed=("A1", "A2"))
        graph = ContentGraph(structure.course)
        progress = ProgressStateMachine(graph, structure.enrollment, FakeRemote(structure), structure.progress)
        assert Navigator(graph).recommended_item_id(progress) == "A1"

    def test_navigation_tree(self, setup):
        nav, progress = setup
        tree = nav.navigation_tree(progress, current_item_id="B1")
        assert [(s.section.id, s.completed_count, s.total_count) for s in tree] == [
            ("A", 2, 2),
            ("B", 0, 2),
        ]
        assert tree[0].items[0].status == ItemStatus.COMPLETED
        assert tree[1].items[0].is_current
        assert not tree[1].items[1].is_current

    def test_status_indicator(self, setup):
        nav, progress = setup
        assert nav.status_indicator(progress, "A1", "B1") == "✓"
        assert nav.status_indicator(progress, "B1", "B1") == "→"
        assert nav.status_indicator(progress, "B2", "B1") == "○"


class TestCourseSchemas:
    """Test course payload parsing."""

    def test_item_type_alias(self):
        item = ItemPayload.model_validate({"id": "q", "item_type": "quiz", "order_index": 0})
        assert item.type == ItemType.QUIZ

    def test_item_type_by_name(self):
        item = ItemPayload(id="q", type=ItemType.ASSIGNMENT, order_index=0)
        assert item.type == ItemType.ASSIGNMENT

    def test_invalid_item_type(self):
        with pytest.raises(ValueError):
            ItemPayload.model_validate({"id": "q", "item_type": "video", "order_index": 0})


class TestFormatDuration:
    def test_values(self):
        assert format_duration(None) == "N/A"
        assert format_duration(0) == "N/A"
        assert format_duration(45) == "45 min"
        assert format_duration(90) == "1h 30m"
        assert format_duration(120) == "2h"
