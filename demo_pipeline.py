#!/usr/bin/env python3
"""
Complete Pipeline Demo: Diagram → XML → Edit → Diff → Arrows

Shows the full workflow:
1. Build the example diagram and store it as version 1
2. Edit it through a session (insert, link, delete, undo)
3. Store version 2 and diff the two versions
4. Route arrows with diff highlighting
"""

import logging

from babeldiagram.diff import build_report, describe_change, group_by_parent_path
from babeldiagram.errors import MutationError
from babeldiagram.examples import build_example_diagram, stack_layout
from babeldiagram.model import Item, ItemKind
from babeldiagram.serialization import changes_to_yaml
from babeldiagram.session import DiagramSession
from babeldiagram.versions import VersionLog


def main():
    logging.basicConfig(level=logging.INFO, format="   %(levelname)s %(name)s: %(message)s")

    print("=" * 80)
    print("COMPLETE PIPELINE DEMO: Diagram → Versions → Diff → Arrows")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Build and store
    # =========================================================================
    print("\n1. BUILDING DIAGRAM...")
    log = VersionLog("shop")
    session = DiagramSession(build_example_diagram())
    v1 = log.commit(session.tree, "Initial", created_by="demo")
    print(f"   ✓ Items: {len(list(session.tree.iter_items()))}")
    print(f"   ✓ Stored version {v1.version_number} ({len(v1.document)} bytes)")

    # =========================================================================
    # STEP 2: Edit
    # =========================================================================
    print("\n2. EDITING...")
    session.insert_item(Item(id="f_pay", kind=ItemKind.FUNCTION, title="Pay"), "p_checkout")
    session.add_link("f_pay", "p_home")
    session.edit_item("o_user", title="Account")
    removed = session.delete_item("i_email")
    print(f"   ✓ Deleted {removed}")

    # Rejected edits leave the tree untouched
    try:
        session.insert_item(Item(id="i_deep", kind=ItemKind.INFO, title="Deep"), "i_name")
    except MutationError as exc:
        print(f"   ✓ Rejected: {exc}")

    session.edit_item("p_home", title="Start")
    session.undo()
    print(f"   ✓ Undo restored title: {session.effective_title('p_home')}")

    # =========================================================================
    # STEP 3: Diff versions
    # =========================================================================
    print("\n3. DIFFING VERSIONS...")
    log.commit(session.tree, "Edited", created_by="demo")
    changes = log.diff(1, 2)
    report = build_report(changes)
    print(f"   ✓ Added: {len(report.added)}  Removed: {len(report.removed)}  "
          f"Modified: {len(report.modified)}  Moved: {len(report.moved)}")
    for change in changes:
        print(f"      - {describe_change(change)}")

    print("\n   Grouped by parent:")
    for parent, group in group_by_parent_path(changes).items():
        print(f"      [{parent or '(top level)'}] {', '.join(c.item_id for c in group)}")

    # =========================================================================
    # STEP 4: Arrows
    # =========================================================================
    print("\n4. ROUTING ARROWS...")
    layout = stack_layout(session.tree)
    session.select("p_home")
    for arrow in session.route_arrows(layout, changes):
        marker = "*" if arrow.is_selected else " "
        print(f"   {marker} {arrow.source_id} → {arrow.target_id} "
              f"[{arrow.scenario.value}, {arrow.status.value}] {arrow.d}")

    # =========================================================================
    # STEP 5: Export
    # =========================================================================
    print("\n5. CHANGESET (YAML):")
    print("-" * 80)
    for line in changes_to_yaml(changes).splitlines()[:20]:
        print(f"   {line}")

    print("\n" + "=" * 80)
    print("PIPELINE COMPLETE!")
    print("=" * 80)


if __name__ == "__main__":
    main()
