"""
Editing session: the live Tree + Registry pair behind the UI.

A session owns exactly one tree. Every mutation is all-or-nothing:
    1. the change is applied to a working copy
    2. the copy is renumbered and fully validated
    3. only then is a snapshot of the current tree pushed on the undo stack
       and the copy swapped in together with its new registry

A rejected mutation raises MutationError and leaves the session untouched.

Undo and redo keep serialized snapshots (bounded, default depth 50) and
restore by re-parsing them.
"""

from __future__ import annotations

import copy
import logging
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple

from babeldiagram.backends.arrow_router import ArrowPath, ItemBox, route_arrows
from babeldiagram.config import EngineConfig
from babeldiagram.diff import Change
from babeldiagram.errors import (
    DiagramValidationError,
    MutationError,
    MutationErrorKind,
    as_mutation_error,
)
from babeldiagram.generator import generate
from babeldiagram.model import DiagramTree, Item
from babeldiagram.parser import parse_with_registry
from babeldiagram.registry import Registry
from babeldiagram.validation import validate_tree

logger = logging.getLogger(__name__)

_UNSET = object()


def _find_container(tree: DiagramTree, item_id: str) -> Tuple[List[Item], int]:
    """The list holding an item (a column or a children list) and its index."""
    for columns in tree.object_map, tree.site_map:
        for column in columns:
            found = _find_in(column, item_id)
            if found is not None:
                return found
    raise MutationError(MutationErrorKind.UNKNOWN_ITEM, f"No item with id '{item_id}'", item_id=item_id)


def _find_in(items: List[Item], item_id: str) -> Optional[Tuple[List[Item], int]]:
    for index, item in enumerate(items):
        if item.id == item_id:
            return items, index
        found = _find_in(item.children, item_id)
        if found is not None:
            return found
    return None


def _find_item(tree: DiagramTree, item_id: str) -> Item:
    container, index = _find_container(tree, item_id)
    return container[index]


def _prune(items: List[Item], removed: set) -> List[Item]:
    kept = []
    for item in items:
        if item.id in removed:
            continue
        item.link_to = [target for target in item.link_to if target not in removed]
        item.children = _prune(item.children, removed)
        kept.append(item)
    return kept


class DiagramSession:
    """
    One editing session over one diagram.

    Properties:
        tree: The live DiagramTree (replace only through the mutation API)
        registry: Registry of the live tree
        selected_id: Currently selected item, if any
        config: EngineConfig in effect
    """

    def __init__(self, tree: Optional[DiagramTree] = None, *, config: Optional[EngineConfig] = None) -> None:
        self.config = config or EngineConfig()
        tree = tree.copy() if tree is not None else DiagramTree()
        tree.renumber()
        try:
            registry = validate_tree(tree)
        except DiagramValidationError as e:
            raise as_mutation_error(e) from e
        self.tree: DiagramTree = tree
        self.registry: Registry = registry
        self.selected_id: Optional[str] = None
        self._undo: Deque[str] = deque(maxlen=self.config.undo_depth)
        self._redo: Deque[str] = deque(maxlen=self.config.undo_depth)

    @classmethod
    def from_xml(cls, xml_text: str, *, config: Optional[EngineConfig] = None) -> DiagramSession:
        """
        Open a stored document.

        Raises:
            ParseError: If the document is rejected
        """
        tree, _ = parse_with_registry(xml_text)
        return cls(tree, config=config)

    def to_xml(self) -> str:
        return generate(self.tree)

    # =========================================================================
    # READS
    # =========================================================================

    def lookup(self, item_id: str) -> Item:
        return self.registry.lookup(item_id)

    def effective_title(self, item_id: str) -> Optional[str]:
        return self.registry.effective_title(item_id)

    def select(self, item_id: Optional[str]) -> None:
        """Select an item (None clears the selection)."""
        if item_id is not None:
            self.registry.lookup(item_id)
        self.selected_id = item_id

    def route_arrows(self, layout: Dict[str, ItemBox], changes: Optional[List[Change]] = None) -> List[ArrowPath]:
        """Route the live tree's links with the session's selection and geometry."""
        return route_arrows(
            self.tree,
            layout,
            selected_id=self.selected_id,
            changes=changes,
            config=self.config.router,
            registry=self.registry,
        )

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def _require(self, item_id: str) -> None:
        if item_id not in self.registry:
            raise MutationError(MutationErrorKind.UNKNOWN_ITEM, f"No item with id '{item_id}'", item_id=item_id)

    def _commit(self, working: DiagramTree, action: str) -> None:
        working.renumber()
        try:
            registry = validate_tree(working)
        except DiagramValidationError as e:
            logger.warning("Rejected %s: %s", action, e)
            raise as_mutation_error(e) from e

        self._undo.append(generate(self.tree))
        self._redo.clear()
        self.tree, self.registry = working, registry
        if self.selected_id is not None and self.selected_id not in registry:
            self.selected_id = None
        logger.debug("Applied %s (%d items)", action, len(registry))

    def _root_column(self, working: DiagramTree, item: Item, column: Optional[int]) -> List[Item]:
        map_kind = item.kind.root_map
        if map_kind is None:
            raise MutationError(
                MutationErrorKind.INVALID_PLACEMENT,
                f"'{item.id}': {item.kind.value} items need a parent",
                item_id=item.id,
            )
        columns = working.columns(map_kind)
        column = 0 if column is None else column
        if column < 0 or column > len(columns):
            raise MutationError(
                MutationErrorKind.INVALID_PLACEMENT,
                f"'{item.id}': column {column} does not exist in {map_kind.value}",
                item_id=item.id,
            )
        if column == len(columns):
            columns.append([])
        return columns[column]

    @staticmethod
    def _place(container: List[Item], item: Item, index: Optional[int]) -> None:
        if index is None:
            container.append(item)
        else:
            container.insert(index, item)

    def insert_item(
        self,
        item: Item,
        parent_id: Optional[str] = None,
        *,
        column: Optional[int] = None,
        index: Optional[int] = None,
    ) -> Item:
        """
        Insert an item (with any children it carries).

        Args:
            item: New item; copied, the caller's object is not adopted
            parent_id: Parent id, or None for a root item
            column: Column for root items; len(columns) opens a new column
            index: Position among siblings (default: append)

        Returns:
            The inserted item as held by the live tree

        Raises:
            MutationError: if the result would break any tree invariant
        """
        if parent_id is not None:
            self._require(parent_id)
        working = self.tree.copy()
        new_item = copy.deepcopy(item)

        if parent_id is None:
            container = self._root_column(working, new_item, column)
        else:
            container = _find_item(working, parent_id).children
        self._place(container, new_item, index)

        self._commit(working, f"insert of '{item.id}'")
        return self.registry.lookup(item.id)

    def cascade_ids(self, item_id: str) -> List[str]:
        """Ids deleting item_id would remove, in document order."""
        self._require(item_id)
        pending = [item_id]
        doomed = set()
        while pending:
            current = pending.pop()
            if current in doomed:
                continue
            for member in self.registry.lookup(current).iter_subtree():
                if member.id not in doomed:
                    doomed.add(member.id)
                    pending.extend(self.registry.instances_of(member.id))
        return [i for i in self.registry.ids() if i in doomed]

    def delete_item(self, item_id: str) -> List[str]:
        """
        Delete an item, its descendants and every instance of any of them.

        Links pointing at deleted items are dropped from the survivors.

        Returns:
            Deleted ids in document order
        """
        removed = self.cascade_ids(item_id)
        doomed = set(removed)
        working = self.tree.copy()
        working.object_map = [_prune(column, doomed) for column in working.object_map]
        working.site_map = [_prune(column, doomed) for column in working.site_map]
        self._commit(working, f"delete of '{item_id}'")
        return removed

    def move_item(
        self,
        item_id: str,
        new_parent_id: Optional[str] = None,
        *,
        column: Optional[int] = None,
        index: Optional[int] = None,
    ) -> None:
        """
        Move an item (and its subtree) under a new parent or to a root column.

        For root items column defaults to the current column.
        """
        self._require(item_id)
        if new_parent_id is not None:
            self._require(new_parent_id)
            subtree = {member.id for member in self.registry.lookup(item_id).iter_subtree()}
            if new_parent_id in subtree:
                raise MutationError(
                    MutationErrorKind.INVALID_PLACEMENT,
                    f"'{item_id}' cannot be moved into its own subtree",
                    item_id=item_id,
                )

        working = self.tree.copy()
        container, position = _find_container(working, item_id)
        moving = container.pop(position)

        if new_parent_id is None:
            if column is None and self.registry.parent_of(item_id) is None:
                column = self.registry.column_of(item_id)
            target = self._root_column(working, moving, column)
        else:
            target = _find_item(working, new_parent_id).children
        self._place(target, moving, index)

        self._commit(working, f"move of '{item_id}'")

    def edit_item(self, item_id: str, *, title=_UNSET, link_to=_UNSET) -> None:
        """
        Edit an item's own fields.

        Args:
            title: New title (not allowed on instances)
            link_to: New link list; repeats are dropped, order kept
        """
        self._require(item_id)
        working = self.tree.copy()
        item = _find_item(working, item_id)
        if title is not _UNSET:
            item.title = title
        if link_to is not _UNSET:
            item.link_to = list(dict.fromkeys(link_to))
        self._commit(working, f"edit of '{item_id}'")

    def add_link(self, source_id: str, target_id: str) -> None:
        self._require(source_id)
        links = self.registry.links_from(source_id)
        if target_id in links:
            return
        self.edit_item(source_id, link_to=links + [target_id])

    def remove_link(self, source_id: str, target_id: str) -> None:
        self._require(source_id)
        links = self.registry.links_from(source_id)
        if target_id not in links:
            return
        self.edit_item(source_id, link_to=[link for link in links if link != target_id])

    # =========================================================================
    # HISTORY
    # =========================================================================

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def _restore(self, source: Deque[str], target: Deque[str]) -> None:
        # A snapshot that fails to parse leaves both stacks untouched
        tree, registry = parse_with_registry(source[-1])
        current = generate(self.tree)
        source.pop()
        target.append(current)
        self.tree, self.registry = tree, registry
        if self.selected_id is not None and self.selected_id not in registry:
            self.selected_id = None

    def undo(self) -> bool:
        """Restore the state before the last mutation. Returns False if there is none."""
        if not self._undo:
            return False
        self._restore(self._undo, self._redo)
        logger.info("Undo (%d step(s) left)", len(self._undo))
        return True

    def redo(self) -> bool:
        """Re-apply the last undone mutation. Returns False if there is none."""
        if not self._redo:
            return False
        self._restore(self._redo, self._undo)
        logger.info("Redo (%d step(s) left)", len(self._redo))
        return True
