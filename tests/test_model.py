"""
Tests for Diagram Core Model Objects

These tests verify:
    - Item kinds and their map placement
    - Document-order traversal
    - Renumbering of nesting levels and columns
    - Immutability of versions
"""

import dataclasses

import pytest
from babeldiagram.model import (
    DiagramTree,
    Item,
    ItemKind,
    MapKind,
    Version,
)


def small_tree() -> DiagramTree:
    tree = DiagramTree()
    tree.object_map = [
        [Item(id="o1", kind=ItemKind.OBJECT, title="User", children=[
            Item(id="i1", kind=ItemKind.INFO, title="Name"),
        ])],
    ]
    tree.site_map = [
        [],
        [Item(id="p1", kind=ItemKind.PAGE, title="Home", children=[
            Item(id="c1", kind=ItemKind.CASE, title="Logged in", children=[
                Item(id="f1", kind=ItemKind.FUNCTION, title="Logout"),
            ]),
        ])],
    ]
    return tree


class TestItemKind:
    """Test kind classification."""

    def test_root_kinds(self):
        assert ItemKind.OBJECT.is_root
        assert ItemKind.PAGE.is_root
        assert not ItemKind.INFO.is_root
        assert not ItemKind.FUNCTION.is_root
        assert not ItemKind.CASE.is_root

    def test_root_map(self):
        assert ItemKind.OBJECT.root_map is MapKind.OBJECT_MAP
        assert ItemKind.PAGE.root_map is MapKind.SITE_MAP
        assert ItemKind.INFO.root_map is None

    def test_values_are_element_names(self):
        assert ItemKind("Function") is ItemKind.FUNCTION
        assert MapKind("SiteMap") is MapKind.SITE_MAP


class TestItem:
    """Test Item objects."""

    def test_defaults(self):
        item = Item(id="i1", kind=ItemKind.INFO, title="Name")
        assert item.link_to == []
        assert item.children == []
        assert item.nesting_level == 0
        assert not item.is_instance

    def test_instance(self):
        item = Item(id="x", kind=ItemKind.INFO, instance_of="i1")
        assert item.is_instance
        assert item.title is None

    def test_iter_subtree_is_preorder(self):
        tree = small_tree()
        page = tree.site_map[1][0]
        assert [i.id for i in page.iter_subtree()] == ["p1", "c1", "f1"]

    def test_find_child(self):
        tree = small_tree()
        page = tree.site_map[1][0]
        assert page.find_child("c1").title == "Logged in"
        assert page.find_child("f1") is None


class TestDiagramTree:
    """Test tree container behavior."""

    def test_iter_items_object_map_first(self):
        tree = small_tree()
        assert [i.id for i in tree.iter_items()] == ["o1", "i1", "p1", "c1", "f1"]

    def test_iter_items_single_map(self):
        tree = small_tree()
        assert [i.id for i in tree.iter_items(MapKind.SITE_MAP)] == ["p1", "c1", "f1"]

    def test_roots_flatten_columns(self):
        tree = small_tree()
        assert [r.id for r in tree.roots(MapKind.SITE_MAP)] == ["p1"]

    def test_renumber(self):
        tree = small_tree()
        tree.renumber()
        f1 = tree.site_map[1][0].children[0].children[0]
        assert f1.nesting_level == 2
        assert f1.column_index == 1
        assert tree.object_map[0][0].children[0].nesting_level == 1

    def test_copy_is_deep(self):
        tree = small_tree()
        clone = tree.copy()
        assert clone == tree
        clone.object_map[0][0].title = "Changed"
        assert tree.object_map[0][0].title == "User"

    def test_structural_equality(self):
        assert small_tree() == small_tree()


class TestVersion:
    """Versions are immutable snapshots."""

    def test_frozen(self):
        version = Version(project_id="p", version_number=1, document="<xml/>", name="v1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            version.version_number = 2
