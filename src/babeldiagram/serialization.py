"""
Serialization helpers for diagram objects (DiagramTree, Item, Change).

Provides lossless JSON/YAML round-trip of trees via an intermediate dict
representation, and a stable dict/YAML export of changesets.
This module intentionally keeps serialization structure stable and explicit.
The XML document format lives in parser.py / generator.py.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

import yaml

from babeldiagram.diff import Change
from babeldiagram.model import DiagramTree, Item, ItemKind


def item_to_dict(item: Item) -> Dict[str, Any]:
    return {
        "id": item.id,
        "kind": item.kind.value,
        "title": item.title,
        "instance_of": item.instance_of,
        "link_to": list(item.link_to),
        "nesting_level": item.nesting_level,
        "column_index": item.column_index,
        "children": [item_to_dict(child) for child in item.children],
    }


def item_from_dict(d: Dict[str, Any]) -> Item:
    return Item(
        id=d["id"],
        kind=ItemKind(d["kind"]),
        title=d.get("title"),
        instance_of=d.get("instance_of"),
        link_to=list(d.get("link_to", [])),
        nesting_level=d.get("nesting_level", 0),
        column_index=d.get("column_index", 0),
        children=[item_from_dict(child) for child in d.get("children", [])],
    )


def tree_to_dict(t: DiagramTree) -> Dict[str, Any]:
    return {
        "object_map": [[item_to_dict(item) for item in column] for column in t.object_map],
        "site_map": [[item_to_dict(item) for item in column] for column in t.site_map],
    }


def tree_from_dict(d: Dict[str, Any]) -> DiagramTree:
    t = DiagramTree()
    t.object_map = [[item_from_dict(item) for item in column] for column in d.get("object_map", [])]
    t.site_map = [[item_from_dict(item) for item in column] for column in d.get("site_map", [])]
    return t


def tree_to_json(t: DiagramTree) -> str:
    return json.dumps(tree_to_dict(t), sort_keys=True)


def tree_from_json(s: str) -> DiagramTree:
    d = json.loads(s)
    return tree_from_dict(d)


def tree_to_yaml(t: DiagramTree) -> str:
    return yaml.safe_dump(tree_to_dict(t))


def tree_from_yaml(s: str) -> DiagramTree:
    d = yaml.safe_load(s)
    return tree_from_dict(d)


def change_to_dict(c: Change) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "kind": c.kind.value,
        "item_id": c.item_id,
        "map": c.map_kind.value,
        "path": c.path,
    }
    if c.old_title != c.new_title:
        d["title"] = {"old": c.old_title, "new": c.new_title}
    if c.links_added or c.links_removed:
        d["links"] = {"added": list(c.links_added), "removed": list(c.links_removed)}
    if c.old_parent_id != c.new_parent_id:
        d["parent"] = {"old": c.old_parent_id, "new": c.new_parent_id}
    if c.old_instance_of != c.new_instance_of:
        d["instance_of"] = {"old": c.old_instance_of, "new": c.new_instance_of}
    return d


def changes_to_json(changes: List[Change]) -> str:
    return json.dumps([change_to_dict(c) for c in changes], sort_keys=True)


def changes_to_yaml(changes: List[Change]) -> str:
    return yaml.safe_dump([change_to_dict(c) for c in changes])
