"""
Tests for the Diff Engine.

Tests verify that the diff correctly:
    - Classifies Added / Removed / Modified / Moved ids
    - Ignores column changes and sibling reordering
    - Reports link sub-deltas and instanceOf changes
    - Is symmetric and empty on identical trees
    - Builds display paths, groups and reports
"""

from babeldiagram.diff import (
    ChangeKind,
    build_report,
    describe_change,
    diff,
    group_by_parent_path,
)
from babeldiagram.examples import build_example_diagram
from babeldiagram.model import Item, ItemKind, MapKind
from babeldiagram.parser import parse
from babeldiagram.registry import Registry

V1 = """<?xml version="1.0" encoding="UTF-8"?>
<xml>
  <Diagram>
    <ObjectMap>
      <Column>
        <Object id="o1" title="User">
          <Info id="i1" title="Name"/>
        </Object>
      </Column>
    </ObjectMap>
    <SiteMap>
      <Column>
        <Page id="p1" title="Home"/>
      </Column>
    </SiteMap>
  </Diagram>
</xml>"""

V2 = """<?xml version="1.0" encoding="UTF-8"?>
<xml>
  <Diagram>
    <ObjectMap>
      <Column>
        <Object id="o1" title="User">
          <Info id="i1" title="Name2"/>
        </Object>
      </Column>
    </ObjectMap>
    <SiteMap>
      <Column>
        <Page id="p1" title="Home">
          <Function id="f1" title="Save"/>
        </Page>
      </Column>
    </SiteMap>
  </Diagram>
</xml>"""


def edited_example():
    """Example diagram with one change of every kind."""
    tree = build_example_diagram()
    registry = Registry.build(tree)
    registry.lookup("o_user").title = "Account"
    registry.lookup("p_home").link_to = ["p_checkout"]
    # Move f_signin from Home to Profile
    home = registry.lookup("p_home")
    signin = home.find_child("f_signin")
    home.children.remove(signin)
    registry.lookup("p_profile").children.append(signin)
    # Remove Email, add Phone
    registry.lookup("o_user").children = [
        child for child in registry.lookup("o_user").children if child.id != "i_email"
    ] + [Item(id="i_phone", kind=ItemKind.INFO, title="Phone")]
    registry.lookup("fn_login").link_to = ["i_phone"]
    tree.renumber()
    return tree


def ids(changes, kind):
    return [c.item_id for c in changes if c.kind is kind]


class TestClassification:
    """Test per-id classification."""

    def test_two_version_example(self):
        changes = diff(parse(V1), parse(V2))
        assert [(c.kind, c.item_id) for c in changes] == [
            (ChangeKind.MODIFIED, "i1"),
            (ChangeKind.ADDED, "f1"),
        ]
        assert changes[0].old_title == "Name"
        assert changes[0].new_title == "Name2"
        assert changes[0].links_added == ()

    def test_identical_trees(self):
        assert diff(build_example_diagram(), build_example_diagram()) == []

    def test_added_and_removed(self):
        changes = diff(build_example_diagram(), edited_example())
        assert ids(changes, ChangeKind.ADDED) == ["i_phone"]
        assert ids(changes, ChangeKind.REMOVED) == ["i_email"]

    def test_moved(self):
        changes = diff(build_example_diagram(), edited_example())
        moved = [c for c in changes if c.kind is ChangeKind.MOVED]
        assert [c.item_id for c in moved] == ["f_signin"]
        assert moved[0].old_parent_id == "p_home"
        assert moved[0].new_parent_id == "p_profile"

    def test_modified_title_and_links(self):
        changes = diff(build_example_diagram(), edited_example())
        modified = {c.item_id: c for c in changes if c.kind is ChangeKind.MODIFIED}
        assert set(modified) == {"o_user", "fn_login", "p_home"}
        assert modified["o_user"].old_title == "User"
        assert modified["o_user"].new_title == "Account"
        assert modified["p_home"].links_added == ("p_checkout",)
        assert modified["p_home"].links_removed == ("p_profile",)
        assert modified["p_home"].old_title is None

    def test_column_change_not_reported(self):
        old = build_example_diagram()
        new = build_example_diagram()
        payment = new.object_map[1].pop()
        new.object_map[0].append(payment)
        new.renumber()
        assert diff(old, new) == []

    def test_sibling_reorder_not_reported(self):
        old = build_example_diagram()
        new = build_example_diagram()
        new.object_map[0][0].children.reverse()
        assert diff(old, new) == []

    def test_link_reorder_not_reported(self):
        old = build_example_diagram()
        new = build_example_diagram()
        Registry.build(new).lookup("f_save").link_to.reverse()
        assert diff(old, new) == []

    def test_instance_of_change_is_modified(self):
        old = build_example_diagram()
        new = build_example_diagram()
        Registry.build(new).lookup("inst_name").instance_of = "i_email"
        changes = diff(old, new)
        assert len(changes) == 1
        assert changes[0].kind is ChangeKind.MODIFIED
        assert changes[0].old_instance_of == "i_name"
        assert changes[0].new_instance_of == "i_email"
        assert changes[0].instance_changed

    def test_moved_and_modified_both_reported(self):
        old = build_example_diagram()
        new = build_example_diagram()
        registry = Registry.build(new)
        signin = registry.lookup("f_signin")
        signin.title = "Log in"
        registry.lookup("p_home").children.remove(signin)
        registry.lookup("p_checkout").children.append(signin)
        kinds = [c.kind for c in diff(old, new) if c.item_id == "f_signin"]
        assert kinds == [ChangeKind.MOVED, ChangeKind.MODIFIED]


class TestSymmetry:
    """diff(A, B) and diff(B, A) mirror each other."""

    def test_added_equals_reverse_removed(self):
        a, b = build_example_diagram(), edited_example()
        assert ids(diff(a, b), ChangeKind.ADDED) == ids(diff(b, a), ChangeKind.REMOVED)
        assert ids(diff(a, b), ChangeKind.REMOVED) == ids(diff(b, a), ChangeKind.ADDED)

    def test_modified_and_moved_ids_match(self):
        a, b = build_example_diagram(), edited_example()
        for kind in (ChangeKind.MODIFIED, ChangeKind.MOVED):
            assert set(ids(diff(a, b), kind)) == set(ids(diff(b, a), kind))


class TestPaths:
    """Display paths never affect classification."""

    def test_path_uses_new_titles(self):
        changes = diff(parse(V1), parse(V2))
        assert changes[0].path == "User > Name2"
        assert changes[0].parent_path == "User"
        assert changes[0].map_kind is MapKind.OBJECT_MAP

    def test_removed_path_uses_old_tree(self):
        changes = diff(build_example_diagram(), edited_example())
        removed = [c for c in changes if c.kind is ChangeKind.REMOVED][0]
        assert removed.path == "User > Email"

    def test_instance_path_uses_resolved_title(self):
        old = build_example_diagram()
        new = build_example_diagram()
        Registry.build(new).lookup("inst_name").instance_of = "i_email"
        assert diff(old, new)[0].path == "Profile > Email"


class TestReporting:
    """Test grouping and report helpers."""

    def test_build_report(self):
        report = build_report(diff(build_example_diagram(), edited_example()))
        assert len(report.added) == 1
        assert len(report.removed) == 1
        assert len(report.moved) == 1
        assert len(report.modified) == 3
        assert report.total == 6
        assert not report.is_empty
        assert report.status_of("f_signin") == [ChangeKind.MOVED]
        assert report.status_of("o_order") == []

    def test_empty_report(self):
        assert build_report([]).is_empty

    def test_group_by_parent_path(self):
        groups = group_by_parent_path(diff(build_example_diagram(), edited_example()))
        assert [c.item_id for c in groups["Account"]] == ["fn_login"]
        assert [c.item_id for c in groups["Profile"]] == ["f_signin"]
        assert {c.item_id for c in groups[""]} == {"o_user", "p_home"}
        assert all(c.kind in (ChangeKind.MODIFIED, ChangeKind.MOVED) for g in groups.values() for c in g)

    def test_describe_change(self):
        changes = diff(parse(V1), parse(V2))
        assert describe_change(changes[0]) == "Modified User > Name2 (title 'Name' -> 'Name2')"
        assert describe_change(changes[1]) == "Added Home > Save"
