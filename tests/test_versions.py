"""
Tests for the version log.

Versions are immutable snapshots numbered 1, 2, 3, ... per project.
"""

import pytest
from babeldiagram.diff import ChangeKind
from babeldiagram.examples import build_example_diagram
from babeldiagram.generator import generate
from babeldiagram.model import Version
from babeldiagram.session import DiagramSession
from babeldiagram.versions import VersionLog


def test_commit_numbers_versions():
    log = VersionLog("shop")
    first = log.commit(build_example_diagram(), "Initial")
    second = log.commit(build_example_diagram(), "Again", created_by="alice")
    assert first.version_number == 1
    assert second.version_number == 2
    assert second.created_by == "alice"
    assert len(log) == 2
    assert log.latest() is second


def test_commit_stores_generated_document():
    tree = build_example_diagram()
    version = VersionLog("shop").commit(tree, "Initial")
    assert version.document == generate(tree)
    assert version.project_id == "shop"


def test_load_round_trips():
    log = VersionLog("shop")
    log.commit(build_example_diagram(), "Initial")
    assert log.load(1) == build_example_diagram()


def test_diff_between_versions():
    log = VersionLog("shop")
    session = DiagramSession(build_example_diagram())
    log.commit(session.tree, "Before")
    session.delete_item("i_email")
    log.commit(session.tree, "After")
    changes = log.diff(1, 2)
    assert [(c.kind, c.item_id) for c in changes] == [
        (ChangeKind.MODIFIED, "fn_login"),
        (ChangeKind.REMOVED, "i_email"),
    ]


def test_missing_version():
    with pytest.raises(KeyError):
        VersionLog("shop").get(1)


def test_empty_log():
    log = VersionLog("shop")
    assert log.latest() is None
    assert list(log) == []


def test_existing_versions_must_increase():
    versions = [
        Version(project_id="shop", version_number=2, document="", name="b"),
        Version(project_id="shop", version_number=2, document="", name="c"),
    ]
    with pytest.raises(ValueError):
        VersionLog("shop", versions)


def test_existing_versions_must_match_project():
    with pytest.raises(ValueError):
        VersionLog("shop", [Version(project_id="other", version_number=1, document="", name="a")])


def test_commit_continues_after_loaded_versions():
    log = VersionLog("shop", [Version(project_id="shop", version_number=7, document="", name="old")])
    assert log.commit(build_example_diagram(), "next").version_number == 8
