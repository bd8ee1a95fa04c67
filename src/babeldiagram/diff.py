"""
Diff Engine: change detection between two versions of a diagram.

Classifies every id found in either tree:
    - Added: only in the new tree
    - Removed: only in the old tree
    - Moved: in both, structural parent differs
    - Modified: in both, title / instanceOf / link set differs

Not reported: column changes of root items and sibling reordering. Columns
and order are presentational.

IMPORTANT: This is a read-only layer. It does NOT modify either tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from babeldiagram.model import DiagramTree, MapKind
from babeldiagram.registry import Registry

PATH_SEPARATOR = " > "


class ChangeKind(Enum):
    ADDED = "Added"
    REMOVED = "Removed"
    MODIFIED = "Modified"
    MOVED = "Moved"


@dataclass(frozen=True)
class Change:
    """
    One diff record.

    Properties:
        kind: ChangeKind
        item_id: Affected item
        map_kind: Map the item lives in (old map for Removed, new map otherwise)
        path: Effective titles from the map root to the item
        parent_path: Path of the parent, "" for root items

        old_title / new_title: Set on Modified when the title changed
        old_links / new_links: Set on Modified when the link set changed
        old_parent_id / new_parent_id: Set on Moved
        old_instance_of / new_instance_of: Set on Modified when instanceOf changed
    """

    kind: ChangeKind
    item_id: str
    map_kind: MapKind
    path: str = ""
    parent_path: str = ""
    old_title: Optional[str] = None
    new_title: Optional[str] = None
    old_links: Tuple[str, ...] = ()
    new_links: Tuple[str, ...] = ()
    old_parent_id: Optional[str] = None
    new_parent_id: Optional[str] = None
    old_instance_of: Optional[str] = None
    new_instance_of: Optional[str] = None

    @property
    def links_added(self) -> Tuple[str, ...]:
        old = set(self.old_links)
        return tuple(link for link in self.new_links if link not in old)

    @property
    def links_removed(self) -> Tuple[str, ...]:
        new = set(self.new_links)
        return tuple(link for link in self.old_links if link not in new)

    @property
    def title_changed(self) -> bool:
        return self.kind is ChangeKind.MODIFIED and self.old_title != self.new_title

    @property
    def instance_changed(self) -> bool:
        return self.kind is ChangeKind.MODIFIED and self.old_instance_of != self.new_instance_of


def _paths(registry: Registry, item_id: str) -> Tuple[str, str]:
    path = registry.path_of(item_id)
    return PATH_SEPARATOR.join(path), PATH_SEPARATOR.join(path[:-1])


def _compare(item_id: str, old: Registry, new: Registry) -> List[Change]:
    """Moved and/or Modified records for an id present in both registries."""
    changes: List[Change] = []
    before = old.lookup(item_id)
    after = new.lookup(item_id)
    path, parent_path = _paths(new, item_id)
    map_kind = new.map_of(item_id)

    old_parent = old.parent_of(item_id)
    new_parent = new.parent_of(item_id)
    if old_parent != new_parent:
        changes.append(Change(
            kind=ChangeKind.MOVED,
            item_id=item_id,
            map_kind=map_kind,
            path=path,
            parent_path=parent_path,
            old_parent_id=old_parent,
            new_parent_id=new_parent,
        ))

    title_differs = before.title != after.title and not (before.is_instance and after.is_instance)
    links_differ = set(before.link_to) != set(after.link_to)
    instance_differs = before.instance_of != after.instance_of

    if title_differs or links_differ or instance_differs:
        changes.append(Change(
            kind=ChangeKind.MODIFIED,
            item_id=item_id,
            map_kind=map_kind,
            path=path,
            parent_path=parent_path,
            old_title=before.title if title_differs else None,
            new_title=after.title if title_differs else None,
            old_links=tuple(before.link_to) if links_differ else (),
            new_links=tuple(after.link_to) if links_differ else (),
            old_instance_of=before.instance_of if instance_differs else None,
            new_instance_of=after.instance_of if instance_differs else None,
        ))
    return changes


def diff_registries(old: Registry, new: Registry) -> List[Change]:
    """
    Diff two already-built registries.

    Ordering: the new tree's document order (Added, then Moved, then Modified
    per id), followed by Removed records in the old tree's document order.
    """
    changes: List[Change] = []

    for item_id in new.ids():
        if item_id not in old:
            path, parent_path = _paths(new, item_id)
            changes.append(Change(
                kind=ChangeKind.ADDED,
                item_id=item_id,
                map_kind=new.map_of(item_id),
                path=path,
                parent_path=parent_path,
            ))
        else:
            changes.extend(_compare(item_id, old, new))

    for item_id in old.ids():
        if item_id not in new:
            path, parent_path = _paths(old, item_id)
            changes.append(Change(
                kind=ChangeKind.REMOVED,
                item_id=item_id,
                map_kind=old.map_of(item_id),
                path=path,
                parent_path=parent_path,
            ))

    return changes


def diff(old_tree: DiagramTree, new_tree: DiagramTree) -> List[Change]:
    """
    Compute the ordered changeset between two trees.

    Properties:
        diff(a, a) == []
        added ids of diff(a, b) == removed ids of diff(b, a), in order
    """
    return diff_registries(Registry.build(old_tree), Registry.build(new_tree))


# =============================================================================
# REPORTING
# =============================================================================


@dataclass
class DiffReport:
    """Changes split by kind, for badges and summaries."""

    added: List[Change] = field(default_factory=list)
    removed: List[Change] = field(default_factory=list)
    modified: List[Change] = field(default_factory=list)
    moved: List[Change] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified or self.moved)

    @property
    def total(self) -> int:
        return len(self.added) + len(self.removed) + len(self.modified) + len(self.moved)

    def status_of(self, item_id: str) -> List[ChangeKind]:
        """All change kinds recorded for an id (empty if unchanged)."""
        kinds = []
        for bucket, kind in (
            (self.added, ChangeKind.ADDED),
            (self.removed, ChangeKind.REMOVED),
            (self.moved, ChangeKind.MOVED),
            (self.modified, ChangeKind.MODIFIED),
        ):
            if any(change.item_id == item_id for change in bucket):
                kinds.append(kind)
        return kinds


def build_report(changes: List[Change]) -> DiffReport:
    report = DiffReport()
    buckets = {
        ChangeKind.ADDED: report.added,
        ChangeKind.REMOVED: report.removed,
        ChangeKind.MODIFIED: report.modified,
        ChangeKind.MOVED: report.moved,
    }
    for change in changes:
        buckets[change.kind].append(change)
    return report


def group_by_parent_path(changes: List[Change]) -> Dict[str, List[Change]]:
    """
    Group Moved/Modified changes by the path of their parent.

    Groups keep first-seen order; changes inside a group keep changeset order.
    """
    groups: Dict[str, List[Change]] = {}
    for change in changes:
        if change.kind in (ChangeKind.MOVED, ChangeKind.MODIFIED):
            groups.setdefault(change.parent_path, []).append(change)
    return groups


def describe_change(change: Change) -> str:
    """One-line human-readable label for a change."""
    label = change.path or change.item_id
    if change.kind is ChangeKind.ADDED:
        return f"Added {label}"
    if change.kind is ChangeKind.REMOVED:
        return f"Removed {label}"
    if change.kind is ChangeKind.MOVED:
        return f"Moved {label} (parent {change.old_parent_id or '-'} -> {change.new_parent_id or '-'})"

    details = []
    if change.old_title != change.new_title:
        details.append(f"title '{change.old_title}' -> '{change.new_title}'")
    if change.links_added:
        details.append(f"links added: {', '.join(change.links_added)}")
    if change.links_removed:
        details.append(f"links removed: {', '.join(change.links_removed)}")
    if change.old_instance_of != change.new_instance_of:
        details.append(f"instanceOf {change.old_instance_of or '-'} -> {change.new_instance_of or '-'}")
    return f"Modified {label} ({'; '.join(details)})"


__all__ = [
    "ChangeKind",
    "Change",
    "DiffReport",
    "diff",
    "diff_registries",
    "build_report",
    "group_by_parent_path",
    "describe_change",
]
