"""
Tree invariant checks shared by the parser and the editing session.

validate_tree() walks a whole DiagramTree and raises on the first violation,
in document order:
    1. every item has an id that can be stored
    2. ids are unique (registry build)
    3. kinds sit where they may (roots in columns, nested items below roots)
    4. title / instanceOf attribute shape
    5. Object Map nested items have no children
    6. instanceOf and linkTo references resolve (second pass)

IMPORTANT: This module never modifies the tree.
"""

from __future__ import annotations

import re
from typing import Optional

from babeldiagram.errors import DiagramValidationError, ViolationKind
from babeldiagram.model import NESTED_KINDS, ROOT_KIND_BY_MAP, DiagramTree, Item, MapKind
from babeldiagram.registry import Registry


def _fail(kind: ViolationKind, message: str, item_id: Optional[str]) -> DiagramValidationError:
    return DiagramValidationError(kind, message, item_id=item_id)


# Characters XML 1.0 cannot carry, even as character references
_XML_INVALID = re.compile("[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def id_problem(item_id: str) -> Optional[str]:
    """
    Describe why an id cannot be stored, or return None.

    linkTo is a comma-joined list whose entries are stripped on read, so ids
    must not contain commas or start or end with whitespace.
    """
    if not item_id.strip():
        return "is blank"
    if item_id != item_id.strip():
        return "has leading or trailing whitespace"
    if "," in item_id:
        return "contains a comma"
    if _XML_INVALID.search(item_id):
        return "contains characters XML cannot represent"
    return None


def _check_ids(tree: DiagramTree) -> None:
    for item in tree.iter_items():
        if not item.id:
            title = item.title or item.instance_of or "?"
            raise _fail(
                ViolationKind.MISSING_ID,
                f"{item.kind.value} '{title}' has no id",
                None,
            )
        problem = id_problem(item.id)
        if problem:
            raise _fail(
                ViolationKind.INVALID_ID,
                f"{item.kind.value} id {item.id!r} {problem}",
                item.id,
            )


def check_item_shape(item: Item, map_kind: MapKind, depth: int) -> None:
    """
    Check one item against the rules that need no lookups.

    Args:
        item: Item to check
        map_kind: Map the item lives in
        depth: 0 for items directly in a column, +1 per nesting level
    """
    if depth == 0:
        expected = ROOT_KIND_BY_MAP[map_kind]
        if item.kind is not expected:
            raise _fail(
                ViolationKind.MISPLACED_KIND,
                f"'{item.id}': {map_kind.value} columns may only hold {expected.value}, "
                f"found {item.kind.value}",
                item.id,
            )
    elif item.kind not in NESTED_KINDS:
        raise _fail(
            ViolationKind.MISPLACED_KIND,
            f"'{item.id}': {item.kind.value} cannot be nested inside another item",
            item.id,
        )

    if item.is_instance:
        if item.kind.is_root:
            raise _fail(
                ViolationKind.INSTANCE_ON_ROOT,
                f"'{item.id}': {item.kind.value} items cannot be instances",
                item.id,
            )
        if item.title is not None:
            raise _fail(
                ViolationKind.UNEXPECTED_TITLE,
                f"'{item.id}': instances must not carry a title",
                item.id,
            )
    elif not item.title:
        raise _fail(
            ViolationKind.MISSING_TITLE,
            f"'{item.id}': title is required",
            item.id,
        )
    elif _XML_INVALID.search(item.title):
        raise _fail(
            ViolationKind.INVALID_TITLE,
            f"'{item.id}': title contains characters XML cannot represent",
            item.id,
        )

    if map_kind is MapKind.OBJECT_MAP and depth >= 1 and item.children:
        raise _fail(
            ViolationKind.NESTING_DEPTH,
            f"'{item.id}': Object Map nested items cannot have children",
            item.id,
        )


def _check_structure(item: Item, map_kind: MapKind, depth: int) -> None:
    check_item_shape(item, map_kind, depth)
    for child in item.children:
        _check_structure(child, map_kind, depth + 1)


def check_references(item: Item, registry: Registry) -> None:
    """Check instanceOf and linkTo of one item against a registry."""
    source_map = registry.map_of(item.id)

    if item.instance_of is not None:
        target = registry.get(item.instance_of)
        if target is None:
            raise _fail(
                ViolationKind.DANGLING_INSTANCE,
                f"'{item.id}': instanceOf '{item.instance_of}' does not exist",
                item.id,
            )
        if registry.map_of(target.id) is not MapKind.OBJECT_MAP or target.is_root or target.is_instance:
            raise _fail(
                ViolationKind.INVALID_INSTANCE_TARGET,
                f"'{item.id}': instanceOf '{target.id}' must be a nested, non-instance Object Map item",
                item.id,
            )

    for target_id in item.link_to:
        if target_id not in registry:
            raise _fail(
                ViolationKind.DANGLING_LINK,
                f"'{item.id}': linkTo '{target_id}' does not exist",
                item.id,
            )
        if registry.map_of(target_id) is not source_map:
            raise _fail(
                ViolationKind.CROSS_MAP_LINK,
                f"'{item.id}': linkTo '{target_id}' is in a different map",
                item.id,
            )


def validate_tree(tree: DiagramTree) -> Registry:
    """
    Check every tree invariant and return the registry built on the way.

    Raises:
        DiagramValidationError: on the first violation found
    """
    _check_ids(tree)
    registry = Registry.build(tree)

    for map_kind in MapKind:
        for root in tree.roots(map_kind):
            _check_structure(root, map_kind, 0)

    for item in tree.iter_items():
        check_references(item, registry)

    return registry
