"""
Unit tests for section detection.

Tests run the heuristic on synthetic geometry snapshots (no browser needed).
"""

import asyncio

import pytest
from hypothesis import given, strategies as st

from config import Config
from section_capture.detector import (
    DetectionThresholds,
    Section,
    collapse_mega_container,
    detect_sections,
    drill_down,
    is_potential_section,
    measure_sections,
)
from tests.helpers.dom_factory import make_node, make_snapshot, stack
from tests.helpers.fake_page import FakePage


def tops(sections):
    return [section.top for section in sections]


class TestVisibilityPredicate:
    @pytest.fixture
    def thresholds(self):
        return DetectionThresholds()

    def test_visible_block_qualifies(self, thresholds):
        assert is_potential_section(make_node(200), thresholds)

    @pytest.mark.parametrize("style", [
        {"display": "none"},
        {"visibility": "hidden"},
        {"opacity": "0"},
        {"position": "fixed"},
    ])
    def test_hidden_or_fixed_elements_are_rejected(self, thresholds, style):
        assert not is_potential_section(make_node(200, **style), thresholds)

    def test_minimum_size_is_exclusive(self, thresholds):
        assert not is_potential_section(make_node(50), thresholds)
        assert not is_potential_section(make_node(200, width=100), thresholds)
        assert is_potential_section(make_node(51, width=101), thresholds)

    def test_partial_opacity_still_qualifies(self, thresholds):
        assert is_potential_section(make_node(200, opacity="0.5"), thresholds)

    def test_missing_node(self, thresholds):
        assert not is_potential_section(None, thresholds)


class TestDrillDown:
    def test_wrappers_are_drilled_through(self):
        """body > div > div > [A, B, C] returns exactly A, B, C."""
        sections = stack([300, 400, 500], tag="section")
        inner = make_node(1200, children=sections)
        outer = make_node(1200, children=[inner])
        body = make_node(1200, tag="body", children=[outer])

        candidates = drill_down(body, DetectionThresholds())

        assert candidates == sections

    def test_non_qualifying_siblings_do_not_stop_drilling(self):
        sections = stack([300, 300])
        wrapper = make_node(600, children=sections)
        body = make_node(600, tag="body", children=[
            make_node(20),                      # too small
            wrapper,
            make_node(400, display="none"),
        ])

        assert drill_down(body, DetectionThresholds()) == sections

    def test_missing_root(self):
        assert drill_down(None, DetectionThresholds()) == []


class TestMegaContainer:
    def test_mega_container_is_replaced_by_its_children(self):
        children = stack([300, 300, 220])
        mega = make_node(820, children=children)
        footer = make_node(180, top=820, tag="footer")

        result = collapse_mega_container([mega, footer], DetectionThresholds())

        assert result == children + [footer]

    def test_no_collapse_at_exactly_the_ratio(self):
        first = make_node(800)
        second = make_node(200, top=800)

        assert collapse_mega_container([first, second], DetectionThresholds()) == [first, second]

    def test_empty_candidates(self):
        assert collapse_mega_container([], DetectionThresholds()) == []


class TestDetectSections:
    def test_wrapper_drilling_scenario(self):
        sections = stack([300, 400, 500], tag="section")
        body = make_node(1200, tag="body", children=[
            make_node(1200, children=[make_node(1200, children=sections)])
        ])

        result = detect_sections(make_snapshot(body))

        assert [(s.top, s.height) for s in result] == [(0, 300), (300, 400), (700, 500)]

    def test_mega_container_scenario(self):
        inner = stack([300, 300, 220])
        mega = make_node(820, children=inner)
        footer = make_node(180, top=820, tag="footer")
        body = make_node(1000, tag="body", children=[mega, footer])

        result = detect_sections(make_snapshot(body))

        assert tops(result) == [0, 300, 600, 820]
        assert result[-1].height == 180

    def test_landmark_fallback_when_body_has_few_candidates(self):
        header = make_node(100, tag="header")
        content = make_node(1500, top=100)
        body = make_node(1600, tag="body", children=[header, content])
        main = make_node(1500, top=100, tag="main", children=stack([500, 500, 500], start=100))

        result = detect_sections(make_snapshot(body, landmark=main))

        assert tops(result) == [100, 600, 1100]

    def test_landmark_ignored_when_it_finds_fewer_candidates(self):
        body = make_node(1200, tag="body", children=stack([400, 400]))
        main = make_node(400, tag="main", children=[make_node(400, children=[])])

        result = detect_sections(make_snapshot(body, landmark=main))

        assert tops(result) == [0, 400]

    def test_landmark_not_consulted_with_more_than_two_candidates(self):
        body = make_node(900, tag="body", children=stack([300, 300, 300]))
        main = make_node(900, tag="main", children=stack([100] * 9))

        result = detect_sections(make_snapshot(body, landmark=main))

        assert len(result) == 3

    def test_scroll_offset_gives_document_coordinates(self):
        body = make_node(1200, tag="body", children=stack([600, 600], start=-2000))

        result = detect_sections(make_snapshot(body, scroll_y=2000))

        assert tops(result) == [0, 600]

    def test_sections_are_sorted_by_position_not_document_order(self):
        first, second, third = stack([300, 300, 300])
        body = make_node(900, tag="body", children=[third, first, second])

        result = detect_sections(make_snapshot(body))

        assert tops(result) == [0, 300, 600]

    def test_sections_span_the_capture_width(self):
        body = make_node(900, tag="body", children=stack([300, 300], width=800))

        result = detect_sections(make_snapshot(body), capture_width=1280)

        assert all(s.left == 0 and s.width == 1280 for s in result)

    def test_capture_width_defaults_to_viewport(self):
        body = make_node(900, tag="body", children=stack([300, 300]))

        result = detect_sections(make_snapshot(body, viewport_width=1024))

        assert all(s.width == 1024 for s in result)

    def test_missing_viewport_width_uses_configured_viewport(self):
        body = make_node(900, tag="body", children=stack([300, 300]))
        snapshot = make_snapshot(body)
        del snapshot["viewportWidth"]

        result = detect_sections(snapshot)

        assert len(result) == 2
        assert all(s.width == Config.VIEWPORT_WIDTH for s in result)

    def test_equal_tops_keep_the_tallest(self):
        left_column = make_node(300, width=600, top=0)
        right_column = make_node(500, width=600, top=0, left=600)
        footer = make_node(200, top=500)
        body = make_node(700, tag="body", children=[left_column, right_column, footer])

        result = detect_sections(make_snapshot(body))

        assert [(s.top, s.height) for s in result] == [(0, 500), (500, 200)]

    def test_overlapping_sections_are_kept(self):
        body = make_node(900, tag="body", children=[
            make_node(400, top=0),
            make_node(400, top=300),
            make_node(300, top=600),
        ])

        result = detect_sections(make_snapshot(body))

        assert [(s.top, s.bottom) for s in result] == [(0, 400), (300, 700), (600, 900)]

    def test_empty_page_has_no_sections(self):
        assert detect_sections(make_snapshot(make_node(0, tag="body"))) == []

    def test_page_without_qualifying_elements(self):
        body = make_node(300, tag="body", children=[make_node(40), make_node(300, width=90)])

        assert detect_sections(make_snapshot(body)) == []

    def test_missing_body(self):
        assert detect_sections(make_snapshot(None)) == []

    def test_custom_thresholds(self):
        body = make_node(400, tag="body", children=stack([80, 80, 80]))

        result = detect_sections(make_snapshot(body), thresholds=DetectionThresholds(min_height=100))

        assert result == []

    def test_deterministic_for_identical_snapshot(self):
        inner = stack([300, 300, 220])
        body = make_node(1000, tag="body", children=[make_node(820, children=inner), make_node(180, top=820)])
        snapshot = make_snapshot(body, scroll_y=150)

        assert detect_sections(snapshot) == detect_sections(snapshot)

    @given(st.lists(
        st.tuples(st.integers(min_value=-500, max_value=5000), st.integers(min_value=0, max_value=900)),
        max_size=12
    ), st.integers(min_value=0, max_value=3000))
    def test_sections_strictly_ascending_and_large_enough(self, geometry, scroll_y):
        """For any sibling geometry, tops are strictly ascending and every section is big enough."""
        children = [make_node(height, top=top) for top, height in geometry]
        body = make_node(5000, tag="body", children=children)

        result = detect_sections(make_snapshot(body, scroll_y=scroll_y))

        assert all(a.top < b.top for a, b in zip(result, result[1:]))
        assert all(s.height > 50 and s.width > 100 for s in result)


class TestMeasureSections:
    def test_reads_snapshot_from_page(self):
        body = make_node(900, tag="body", children=stack([300, 300, 300]))
        page = FakePage(snapshot=make_snapshot(body))

        result = asyncio.run(measure_sections(
            page, capture_width=1280, landmark_selectors=["main"], max_depth=12
        ))

        assert result == [Section(0, 0, 1280, 300), Section(300, 0, 1280, 300), Section(600, 0, 1280, 300)]
        assert page.snapshot_args["landmarkSelectors"] == ["main"]
        assert page.snapshot_args["maxDepth"] == 12
        assert page.snapshot_args["minHeight"] == 50
