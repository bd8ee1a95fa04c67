"""
Example diagram builder for demos and tests.

Builds a small shop diagram: users and orders on the Object Map, a home /
profile / checkout flow on the Site Map, with instances of Object Map
fields shown on pages and a nested Case on the profile page.
"""
from typing import Dict

from babeldiagram.backends.arrow_router import ItemBox
from babeldiagram.model import DiagramTree, Item, ItemKind


def build_example_diagram() -> DiagramTree:
    tree = DiagramTree()

    user = Item(id="o_user", kind=ItemKind.OBJECT, title="User", children=[
        Item(id="i_name", kind=ItemKind.INFO, title="Name"),
        Item(id="i_email", kind=ItemKind.INFO, title="Email"),
        Item(id="fn_login", kind=ItemKind.FUNCTION, title="Login", link_to=["i_email"]),
    ])
    order = Item(id="o_order", kind=ItemKind.OBJECT, title="Order", children=[
        Item(id="i_total", kind=ItemKind.INFO, title="Total"),
    ])
    payment = Item(id="o_payment", kind=ItemKind.OBJECT, title="Payment", children=[
        Item(id="fn_charge", kind=ItemKind.FUNCTION, title="Charge", link_to=["i_total"]),
    ])
    tree.object_map = [[user, order], [payment]]

    home = Item(id="p_home", kind=ItemKind.PAGE, title="Home", link_to=["p_profile"], children=[
        Item(id="f_signin", kind=ItemKind.FUNCTION, title="Sign in", link_to=["p_profile"]),
    ])
    profile = Item(id="p_profile", kind=ItemKind.PAGE, title="Profile", children=[
        Item(id="inst_name", kind=ItemKind.INFO, instance_of="i_name"),
        Item(id="c_edit", kind=ItemKind.CASE, title="Editing", children=[
            Item(id="f_save", kind=ItemKind.FUNCTION, title="Save", link_to=["p_home", "p_checkout"]),
        ]),
    ])
    checkout = Item(id="p_checkout", kind=ItemKind.PAGE, title="Checkout", link_to=["p_checkout"], children=[
        Item(id="inst_total", kind=ItemKind.INFO, instance_of="i_total"),
    ])
    tree.site_map = [[home], [profile], [checkout]]

    tree.renumber()
    return tree


def stack_layout(tree: DiagramTree, row_height: float = 32.0, gap: float = 8.0) -> Dict[str, ItemBox]:
    """
    Naive layout stacking every item of a column top to bottom.

    Stands in for the renderer's layout in demos; each map starts at y = 0.
    """
    layout: Dict[str, ItemBox] = {}
    for columns in (tree.object_map, tree.site_map):
        for column_index, column in enumerate(columns):
            y = 0.0
            for root in column:
                for item in root.iter_subtree():
                    layout[item.id] = ItemBox(column=column_index, top=y, height=row_height)
                    y += row_height + gap
    return layout
