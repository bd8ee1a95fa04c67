"""
Arrow router for linkTo edges.

Turns a tree plus on-screen item boxes into routed, rounded-corner paths.
The router never lays items out: every box (column, top, height) comes from
the rendering layer. It only decides how an edge travels between boxes.

Scenarios:
    - SAME_OR_LEFT: target column <= source column (self links included).
      Out of the source's right edge, down its right lane below every column
      in the spanned range, across, up the lane left of the target, in.
    - ADJACENT: target column == source column + 1.
      Through the single lane between them, with a vertical jog if the
      centers differ.
    - MULTI_COLUMN_RIGHT: target column > source column + 1.
      Into the first lane, below the intervening columns, up the lane left
      of the target, in.

Columns are laid out left to right as [column_width][lane_width] repeated,
starting at x = 0.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from babeldiagram.diff import Change, ChangeKind
from babeldiagram.model import DiagramTree, MapKind
from babeldiagram.registry import Registry

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class RouteScenario(Enum):
    SAME_OR_LEFT = "same-or-left"
    ADJACENT = "adjacent"
    MULTI_COLUMN_RIGHT = "multi-column-right"


class ArrowStatus(Enum):
    """Diff color classification of an edge."""
    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True)
class RouterConfig:
    """
    Fixed geometry used by the router.

    Properties:
        column_width: Width of every column
        lane_width: Gap between two columns; arrows run down its middle
        corner_radius: Single rounding radius used for every corner
        clearance: Vertical gap kept below the lowest box when passing under
    """

    column_width: float = 240.0
    lane_width: float = 48.0
    corner_radius: float = 8.0
    clearance: float = 16.0


@dataclass(frozen=True)
class ItemBox:
    """On-screen geometry of a visible item, supplied by the renderer."""

    column: int
    top: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center_y(self) -> float:
        return self.top + self.height / 2


@dataclass(frozen=True)
class ArrowPath:
    """
    One routed edge.

    Properties:
        source_id / target_id: Edge endpoints
        map_kind: Map both endpoints live in
        scenario: Which routing rule produced the path
        points: Polyline corners, first at the source edge, last at the target edge
        d: SVG path data with rounded corners
        is_selected: Source or target is the selected item
        status: Diff color classification
    """

    source_id: str
    target_id: str
    map_kind: MapKind
    scenario: RouteScenario
    points: Tuple[Point, ...]
    d: str
    is_selected: bool = False
    status: ArrowStatus = ArrowStatus.UNCHANGED


def select_scenario(source_column: int, target_column: int) -> RouteScenario:
    if target_column <= source_column:
        return RouteScenario.SAME_OR_LEFT
    if target_column == source_column + 1:
        return RouteScenario.ADJACENT
    return RouteScenario.MULTI_COLUMN_RIGHT


# =============================================================================
# GEOMETRY
# =============================================================================


def column_left(column: int, config: RouterConfig) -> float:
    return column * (config.column_width + config.lane_width)


def column_right(column: int, config: RouterConfig) -> float:
    return column_left(column, config) + config.column_width


def lane_right_of(column: int, config: RouterConfig) -> float:
    return column_right(column, config) + config.lane_width / 2


def lane_left_of(column: int, config: RouterConfig) -> float:
    return column_left(column, config) - config.lane_width / 2


def _floor_below(boxes: Iterable[ItemBox], first_column: int, last_column: int, config: RouterConfig) -> float:
    """y just below every box in the column range (inclusive)."""
    bottoms = [box.bottom for box in boxes if first_column <= box.column <= last_column]
    return max(bottoms) + config.clearance


def route_points(
    source: ItemBox,
    target: ItemBox,
    map_boxes: Iterable[ItemBox],
    config: RouterConfig,
) -> Tuple[RouteScenario, List[Point]]:
    """
    Polyline for one edge.

    Args:
        source: Box of the linking item
        target: Box of the linked item
        map_boxes: Every visible box of the same map, for passing underneath
        config: Router geometry

    Returns:
        (scenario, corner points)
    """
    scenario = select_scenario(source.column, target.column)
    start = (column_right(source.column, config), source.center_y)
    end = (column_left(target.column, config), target.center_y)

    if scenario is RouteScenario.ADJACENT:
        lane_x = lane_right_of(source.column, config)
        if math.isclose(source.center_y, target.center_y):
            return scenario, [start, end]
        return scenario, [start, (lane_x, start[1]), (lane_x, end[1]), end]

    out_x = lane_right_of(source.column, config)
    in_x = lane_left_of(target.column, config)
    first = min(source.column, target.column)
    last = max(source.column, target.column)
    floor = _floor_below(list(map_boxes) + [source, target], first, last, config)
    return scenario, [
        start,
        (out_x, start[1]),
        (out_x, floor),
        (in_x, floor),
        (in_x, end[1]),
        end,
    ]


def _fmt(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _toward(a: Point, b: Point, distance: float) -> Point:
    length = math.hypot(b[0] - a[0], b[1] - a[1])
    if length == 0:
        return a
    return (a[0] + (b[0] - a[0]) * distance / length, a[1] + (b[1] - a[1]) * distance / length)


def rounded_path(points: List[Point], radius: float) -> str:
    """
    SVG path data through the points with every corner rounded.

    The radius is clamped to half of the shorter adjacent segment so that
    neighbouring corners never overlap.
    """
    if not points:
        return ""
    commands = [f"M {_fmt(points[0][0])} {_fmt(points[0][1])}"]
    for prev, corner, nxt in zip(points, points[1:], points[2:]):
        r = min(
            radius,
            math.dist(prev, corner) / 2,
            math.dist(corner, nxt) / 2,
        )
        if r <= 0:
            commands.append(f"L {_fmt(corner[0])} {_fmt(corner[1])}")
            continue
        entry = _toward(corner, prev, r)
        exit_ = _toward(corner, nxt, r)
        commands.append(f"L {_fmt(entry[0])} {_fmt(entry[1])}")
        commands.append(
            f"Q {_fmt(corner[0])} {_fmt(corner[1])} {_fmt(exit_[0])} {_fmt(exit_[1])}"
        )
    if len(points) > 1:
        commands.append(f"L {_fmt(points[-1][0])} {_fmt(points[-1][1])}")
    return " ".join(commands)


# =============================================================================
# ROUTING
# =============================================================================


def _edge_status_sets(changes: Optional[List[Change]], registry: Registry) -> Tuple[Set[Tuple[str, str]], List[Tuple[str, str]]]:
    added: Set[Tuple[str, str]] = set()
    removed: List[Tuple[str, str]] = []
    for change in changes or []:
        if change.kind is ChangeKind.ADDED and change.item_id in registry:
            for target in registry.links_from(change.item_id):
                added.add((change.item_id, target))
        elif change.kind is ChangeKind.MODIFIED:
            for target in change.links_added:
                added.add((change.item_id, target))
            for target in change.links_removed:
                removed.append((change.item_id, target))
    return added, removed


def route_arrows(
    tree: DiagramTree,
    layout: Dict[str, ItemBox],
    *,
    selected_id: Optional[str] = None,
    changes: Optional[List[Change]] = None,
    config: Optional[RouterConfig] = None,
    registry: Optional[Registry] = None,
) -> List[ArrowPath]:
    """
    Route every visible linkTo edge of a tree.

    Args:
        tree: Diagram whose links are routed
        layout: Box per visible item id; items without a box are hidden
        selected_id: Currently selected item (optional)
        changes: Changeset against an older version, for diff colors (optional).
            Links it reports as removed are routed too when both ends are visible.
        config: Router geometry (defaults to RouterConfig())
        registry: Pre-built registry of tree (optional)

    Returns:
        ArrowPath per routed edge: tree edges in document order, then removed edges

    Raises:
        ItemNotFoundError: if a tree edge points at an id missing from the registry
    """
    config = config or RouterConfig()
    registry = registry or Registry.build(tree)

    boxes_by_map: Dict[MapKind, List[ItemBox]] = {kind: [] for kind in MapKind}
    for item_id, box in layout.items():
        if item_id in registry:
            boxes_by_map[registry.map_of(item_id)].append(box)

    added, removed = _edge_status_sets(changes, registry)
    edges = [(source, target, ArrowStatus.ADDED if (source, target) in added else ArrowStatus.UNCHANGED)
             for source, target in registry.edges()]
    edges.extend(
        (source, target, ArrowStatus.REMOVED)
        for source, target in removed
        if source in registry and target in registry
    )

    paths: List[ArrowPath] = []
    for source_id, target_id, status in edges:
        map_kind = registry.map_of(source_id)
        registry.lookup(target_id)
        source_box = layout.get(source_id)
        target_box = layout.get(target_id)
        if source_box is None or target_box is None:
            continue
        scenario, points = route_points(source_box, target_box, boxes_by_map[map_kind], config)
        paths.append(ArrowPath(
            source_id=source_id,
            target_id=target_id,
            map_kind=map_kind,
            scenario=scenario,
            points=tuple(points),
            d=rounded_path(points, config.corner_radius),
            is_selected=selected_id is not None and selected_id in (source_id, target_id),
            status=status,
        ))

    logger.debug("Routed %d of %d edges", len(paths), len(edges))
    return paths


__all__ = [
    "RouteScenario",
    "ArrowStatus",
    "RouterConfig",
    "ItemBox",
    "ArrowPath",
    "select_scenario",
    "route_points",
    "rounded_path",
    "route_arrows",
]
