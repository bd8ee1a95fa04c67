"""
Core Diagram Model Objects

Defines the fundamental data structures of the diagram document.

These are plain data classes representing:
    - Items (nodes of either map)
    - The diagram tree (two forests of columns)
    - Versions (immutable serialized snapshots)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about XML, rendering or storage
        - Own their children and nothing else
        - Refer to other items (linkTo, instanceOf) by id only
        - Represent structure, not behavior
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterator, List, Optional


class MapKind(Enum):
    """The two perspectives of a diagram. Values are the XML element names."""
    OBJECT_MAP = "ObjectMap"
    SITE_MAP = "SiteMap"


class ItemKind(Enum):
    """
    Item kinds. Values are the XML element names.

    Object and Page are root-level items (L1I).
    Info, Function and Case are nested items (NL1I).
    """

    OBJECT = "Object"
    PAGE = "Page"
    INFO = "Info"
    FUNCTION = "Function"
    CASE = "Case"

    @property
    def is_root(self) -> bool:
        return self in (ItemKind.OBJECT, ItemKind.PAGE)

    @property
    def root_map(self) -> Optional[MapKind]:
        """Map this kind roots in, or None for nested kinds."""
        if self is ItemKind.OBJECT:
            return MapKind.OBJECT_MAP
        if self is ItemKind.PAGE:
            return MapKind.SITE_MAP
        return None


ROOT_KIND_BY_MAP = {
    MapKind.OBJECT_MAP: ItemKind.OBJECT,
    MapKind.SITE_MAP: ItemKind.PAGE,
}

NESTED_KINDS = (ItemKind.INFO, ItemKind.FUNCTION, ItemKind.CASE)


@dataclass
class Item:
    """
    A single node in either map.

    Properties:
        id:
            Globally unique identifier (unique across both maps)

        kind:
            ItemKind of the node

        title:
            Display title. Required for ordinary items, always None for
            instances (their title is read from the referenced item).

        instance_of:
            Id of the Object Map nested item this instance mirrors

        link_to:
            Ordered set of ids this item navigates/flows to.
            Same map only, self links and cycles allowed.

        children:
            Nested items, in serialization order

        nesting_level:
            0 for root items, +1 per depth

        column_index:
            Column of the root this item lives under (presentational only)

    IMPORTANT:
        link_to and instance_of are id references, never object references.
        Ownership is by the parent's children list only.
    """

    id: str
    kind: ItemKind
    title: Optional[str] = None
    instance_of: Optional[str] = None
    link_to: List[str] = field(default_factory=list)
    children: List[Item] = field(default_factory=list)
    nesting_level: int = 0
    column_index: int = 0

    @property
    def is_instance(self) -> bool:
        return self.instance_of is not None

    @property
    def is_root(self) -> bool:
        return self.kind.is_root

    def iter_subtree(self) -> Iterator[Item]:
        """Yield this item and all of its descendants in pre-order."""
        yield self
        for child in self.children:
            yield from child.iter_subtree()

    def find_child(self, item_id: str) -> Optional[Item]:
        for child in self.children:
            if child.id == item_id:
                return child
        return None


@dataclass
class DiagramTree:
    """
    Root container for a diagram: two forests of columns.

    Everything else (XML document, diffs, arrows) is derived from this
    object alone.

    Properties:
        object_map:
            Columns of Object roots (backend perspective)

        site_map:
            Columns of Page roots (frontend perspective)

    INVARIANTS:
        - Item ids are unique across both maps
        - Object Map nested items have no children
        - Site Map nesting is unbounded
        - link_to targets live in the same map as the source
    """

    object_map: List[List[Item]] = field(default_factory=list)
    site_map: List[List[Item]] = field(default_factory=list)

    def columns(self, map_kind: MapKind) -> List[List[Item]]:
        if map_kind is MapKind.OBJECT_MAP:
            return self.object_map
        return self.site_map

    def roots(self, map_kind: MapKind) -> List[Item]:
        return [root for column in self.columns(map_kind) for root in column]

    def iter_items(self, map_kind: Optional[MapKind] = None) -> Iterator[Item]:
        """
        Yield every item in document order (pre-order, Object Map first).

        Args:
            map_kind: Restrict to one map (optional)
        """
        maps = [map_kind] if map_kind is not None else list(MapKind)
        for kind in maps:
            for root in self.roots(kind):
                yield from root.iter_subtree()

    def copy(self) -> DiagramTree:
        return copy.deepcopy(self)

    def renumber(self) -> None:
        """Recompute nesting_level and column_index from the tree's shape."""
        for kind in MapKind:
            for column_index, column in enumerate(self.columns(kind)):
                for root in column:
                    _renumber(root, 0, column_index)


def _renumber(item: Item, level: int, column_index: int) -> None:
    item.nesting_level = level
    item.column_index = column_index
    for child in item.children:
        _renumber(child, level + 1, column_index)


@dataclass(frozen=True)
class Version:
    """
    Immutable snapshot of a project's diagram.

    Properties:
        project_id: Owning project
        version_number: Strictly increasing within the project, from 1
        document: Serialized XML document
        name: Short label
        description: Optional longer note
        created_by: Optional author identifier
        created_at: Creation timestamp
    """

    project_id: str
    version_number: int
    document: str
    name: str
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
