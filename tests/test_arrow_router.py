"""
Tests for the arrow router.

These tests verify the path geometry handed to the renderer.
We test extensively because visual output is easy to get wrong and hard to debug.

Tests cover:
    - Scenario selection by column
    - Polyline corners for each scenario
    - Rounded corners in the SVG path data
    - Selection and diff metadata
    - Hidden items and programming errors
"""

import pytest
from babeldiagram.backends.arrow_router import (
    ArrowStatus,
    ItemBox,
    RouterConfig,
    RouteScenario,
    rounded_path,
    route_arrows,
    route_points,
    select_scenario,
)
from babeldiagram.diff import diff
from babeldiagram.errors import ItemNotFoundError
from babeldiagram.examples import build_example_diagram, stack_layout
from babeldiagram.model import DiagramTree, Item, ItemKind
from babeldiagram.registry import Registry

CONFIG = RouterConfig(column_width=240, lane_width=48, corner_radius=8, clearance=16)


class TestScenarioSelection:
    """Scenario depends only on the two columns."""

    def test_same_column(self):
        assert select_scenario(2, 2) is RouteScenario.SAME_OR_LEFT

    def test_left(self):
        assert select_scenario(3, 1) is RouteScenario.SAME_OR_LEFT

    def test_adjacent(self):
        assert select_scenario(2, 3) is RouteScenario.ADJACENT

    def test_multi_column_right(self):
        assert select_scenario(1, 4) is RouteScenario.MULTI_COLUMN_RIGHT


class TestRoutePoints:
    """Polyline corners per scenario."""

    def test_adjacent_aligned_is_straight(self):
        source = ItemBox(column=0, top=0, height=32)
        target = ItemBox(column=1, top=0, height=32)
        scenario, points = route_points(source, target, [source, target], CONFIG)
        assert scenario is RouteScenario.ADJACENT
        assert points == [(240, 16), (288, 16)]

    def test_adjacent_jog_in_lane(self):
        source = ItemBox(column=0, top=0, height=32)
        target = ItemBox(column=1, top=80, height=32)
        _, points = route_points(source, target, [source, target], CONFIG)
        assert points == [(240, 16), (264, 16), (264, 96), (288, 96)]

    def test_same_column_passes_below(self):
        source = ItemBox(column=2, top=0, height=32)
        target = ItemBox(column=2, top=100, height=20)
        _, points = route_points(source, target, [source, target], CONFIG)
        assert points == [
            (816, 16),
            (840, 16),
            (840, 136),
            (552, 136),
            (552, 110),
            (576, 110),
        ]

    def test_left_target_floor_spans_all_columns(self):
        source = ItemBox(column=2, top=0, height=32)
        target = ItemBox(column=0, top=0, height=32)
        tall = ItemBox(column=1, top=0, height=300)
        outside = ItemBox(column=3, top=0, height=900)
        _, points = route_points(source, target, [source, target, tall, outside], CONFIG)
        floor = points[2][1]
        assert floor == 316
        assert points[3] == (-24, 316)

    def test_multi_column_right(self):
        source = ItemBox(column=1, top=0, height=32)
        target = ItemBox(column=4, top=0, height=32)
        middle = ItemBox(column=2, top=0, height=200)
        scenario, points = route_points(source, target, [source, target, middle], CONFIG)
        assert scenario is RouteScenario.MULTI_COLUMN_RIGHT
        assert points == [
            (528, 16),
            (552, 16),
            (552, 216),
            (1128, 216),
            (1128, 16),
            (1152, 16),
        ]

    def test_self_link(self):
        box = ItemBox(column=0, top=40, height=32)
        scenario, points = route_points(box, box, [box], CONFIG)
        assert scenario is RouteScenario.SAME_OR_LEFT
        assert points[0] == (240, 56)
        assert points[-1] == (0, 56)
        assert points[2][1] == 88


class TestRoundedPath:
    """Every corner uses the same radius, clamped on short segments."""

    def test_straight_line(self):
        assert rounded_path([(240, 16), (288, 16)], 8) == "M 240 16 L 288 16"

    def test_corner_radius(self):
        d = rounded_path([(0, 0), (100, 0), (100, 100)], 8)
        assert d == "M 0 0 L 92 0 Q 100 0 100 8 L 100 100"

    def test_radius_clamped(self):
        d = rounded_path([(0, 0), (10, 0), (10, 10)], 8)
        assert d == "M 0 0 L 5 0 Q 10 0 10 5 L 10 10"

    def test_fractional_coordinates(self):
        assert rounded_path([(0.5, 1.25), (3.333, 1.25)], 8) == "M 0.5 1.25 L 3.33 1.25"

    def test_empty(self):
        assert rounded_path([], 8) == ""


class TestRouteArrows:
    """Routing a whole tree."""

    def test_routes_every_visible_edge(self):
        tree = build_example_diagram()
        paths = route_arrows(tree, stack_layout(tree), config=CONFIG)
        assert len(paths) == 7
        by_edge = {(p.source_id, p.target_id): p for p in paths}
        assert by_edge[("p_home", "p_profile")].scenario is RouteScenario.ADJACENT
        assert len(by_edge[("p_home", "p_profile")].points) == 2
        assert len(by_edge[("f_signin", "p_profile")].points) == 4
        assert by_edge[("f_save", "p_home")].scenario is RouteScenario.SAME_OR_LEFT
        assert by_edge[("p_checkout", "p_checkout")].scenario is RouteScenario.SAME_OR_LEFT
        assert by_edge[("fn_charge", "i_total")].scenario is RouteScenario.SAME_OR_LEFT

    def test_document_order(self):
        tree = build_example_diagram()
        paths = route_arrows(tree, stack_layout(tree))
        assert (paths[0].source_id, paths[0].target_id) == ("fn_login", "i_email")

    def test_floor_only_counts_same_map(self):
        tree = build_example_diagram()
        layout = stack_layout(tree)
        layout["o_order"] = ItemBox(column=1, top=0, height=5000)
        paths = route_arrows(tree, layout, config=CONFIG)
        save_home = [p for p in paths if (p.source_id, p.target_id) == ("f_save", "p_home")][0]
        assert save_home.points[2][1] < 1000

    def test_hidden_items_skipped(self):
        tree = build_example_diagram()
        layout = stack_layout(tree)
        del layout["f_save"]
        paths = route_arrows(tree, layout)
        assert len(paths) == 5
        assert all(p.source_id != "f_save" for p in paths)

    def test_selection(self):
        tree = build_example_diagram()
        paths = route_arrows(tree, stack_layout(tree), selected_id="p_home")
        selected = {(p.source_id, p.target_id) for p in paths if p.is_selected}
        assert selected == {("p_home", "p_profile"), ("f_save", "p_home")}

    def test_diff_status(self):
        old = build_example_diagram()
        new = build_example_diagram()
        registry = Registry.build(new)
        registry.lookup("p_home").link_to = []
        registry.lookup("f_signin").link_to = ["p_profile", "p_home"]
        paths = route_arrows(new, stack_layout(new), changes=diff(old, new))
        status = {(p.source_id, p.target_id): p.status for p in paths}
        assert status[("f_signin", "p_home")] is ArrowStatus.ADDED
        assert status[("f_signin", "p_profile")] is ArrowStatus.UNCHANGED
        assert status[("p_home", "p_profile")] is ArrowStatus.REMOVED
        assert paths[-1].status is ArrowStatus.REMOVED

    def test_added_item_links_are_added(self):
        old = build_example_diagram()
        new = build_example_diagram()
        Registry.build(new).lookup("p_checkout").children.append(
            Item(id="f_pay", kind=ItemKind.FUNCTION, title="Pay", link_to=["p_home"])
        )
        new.renumber()
        layout = stack_layout(new)
        paths = route_arrows(new, layout, changes=diff(old, new))
        pay = [p for p in paths if p.source_id == "f_pay"][0]
        assert pay.status is ArrowStatus.ADDED

    def test_pure_function(self):
        tree = build_example_diagram()
        layout = stack_layout(tree)
        assert route_arrows(tree, layout) == route_arrows(tree, layout)
        assert tree == build_example_diagram()

    def test_missing_endpoint_raises(self):
        tree = DiagramTree(site_map=[[Item(id="p1", kind=ItemKind.PAGE, title="Home", link_to=["ghost"])]])
        layout = {"p1": ItemBox(column=0, top=0, height=32)}
        with pytest.raises(ItemNotFoundError):
            route_arrows(tree, layout)
