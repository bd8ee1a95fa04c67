"""
Item Registry: id to item lookup derived from a DiagramTree.

The registry is non-owning: it indexes the items of one tree and is only
valid until that tree changes structurally. Rebuild it after every
insert/delete/move.

Besides the plain id lookup it keeps the indexes every other component needs:
    - which map an id lives in, its parent id and root column
    - link adjacency in both directions (id pairs, never object references)
    - instances per referenced item
    - live title resolution for instances
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterator, List, Optional, Tuple

from babeldiagram.errors import DiagramValidationError, ItemNotFoundError, ViolationKind
from babeldiagram.model import DiagramTree, Item, MapKind


class Registry:
    """Index over one DiagramTree. Build with Registry.build(tree)."""

    def __init__(self) -> None:
        self._items: Dict[str, Item] = {}
        self._map: Dict[str, MapKind] = {}
        self._parent: Dict[str, Optional[str]] = {}
        self._column: Dict[str, int] = {}
        self._outgoing: Dict[str, List[str]] = {}
        self._incoming: Dict[str, List[str]] = defaultdict(list)
        self._instances: Dict[str, List[str]] = defaultdict(list)

    @classmethod
    def build(cls, tree: DiagramTree) -> Registry:
        """
        Index every item of a tree.

        Raises:
            DiagramValidationError: DUPLICATE_ID on the first repeated id.
                The whole build fails; no partial registry is returned.
        """
        registry = cls()
        for map_kind in MapKind:
            for column_index, column in enumerate(tree.columns(map_kind)):
                for root in column:
                    registry._add(root, map_kind, None, column_index)
        return registry

    def _add(self, item: Item, map_kind: MapKind, parent_id: Optional[str], column_index: int) -> None:
        if item.id in self._items:
            raise DiagramValidationError(
                ViolationKind.DUPLICATE_ID,
                f"Duplicate id '{item.id}'",
                item_id=item.id,
            )
        self._items[item.id] = item
        self._map[item.id] = map_kind
        self._parent[item.id] = parent_id
        self._column[item.id] = column_index
        self._outgoing[item.id] = list(item.link_to)
        for target in item.link_to:
            self._incoming[target].append(item.id)
        if item.instance_of is not None:
            self._instances[item.instance_of].append(item.id)
        for child in item.children:
            self._add(child, map_kind, item.id, column_index)

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def lookup(self, item_id: str) -> Item:
        """
        Resolve an id.

        Raises:
            ItemNotFoundError: if the id is not in this registry
        """
        try:
            return self._items[item_id]
        except KeyError:
            raise ItemNotFoundError(item_id) from None

    def get(self, item_id: str) -> Optional[Item]:
        return self._items.get(item_id)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def ids(self) -> List[str]:
        """All ids in document order."""
        return list(self._items)

    def map_of(self, item_id: str) -> MapKind:
        self.lookup(item_id)
        return self._map[item_id]

    def parent_of(self, item_id: str) -> Optional[str]:
        """Parent id, or None for root items."""
        self.lookup(item_id)
        return self._parent[item_id]

    def column_of(self, item_id: str) -> int:
        self.lookup(item_id)
        return self._column[item_id]

    # =========================================================================
    # REFERENCES
    # =========================================================================

    def links_from(self, item_id: str) -> List[str]:
        self.lookup(item_id)
        return list(self._outgoing[item_id])

    def links_to(self, item_id: str) -> List[str]:
        """Ids of items whose link_to contains item_id."""
        return list(self._incoming.get(item_id, []))

    def edges(self) -> List[Tuple[str, str]]:
        """All (source, target) link pairs in document order."""
        return [(source, target) for source, targets in self._outgoing.items() for target in targets]

    def instances_of(self, item_id: str) -> List[str]:
        return list(self._instances.get(item_id, []))

    # =========================================================================
    # DERIVED VALUES
    # =========================================================================

    def effective_title(self, item_id: str) -> Optional[str]:
        """
        Title as displayed.

        For instances this is read from the referenced item on every call,
        so renaming the original is visible immediately. Returns None when an
        instance's target cannot be resolved.
        """
        item = self.lookup(item_id)
        seen = {item.id}
        while item.instance_of is not None:
            target = self._items.get(item.instance_of)
            if target is None or target.id in seen:
                return None
            seen.add(target.id)
            item = target
        return item.title

    def path_of(self, item_id: str) -> List[str]:
        """Effective titles from the map root down to the item."""
        path: List[str] = []
        current: Optional[str] = item_id
        while current is not None:
            title = self.effective_title(current)
            path.append(title if title is not None else current)
            current = self._parent[current]
        path.reverse()
        return path
