"""
XML Generator (DiagramTree → Stored Document).

Exact inverse of the parser for valid trees: parse(generate(tree)) == tree.

Output is deterministic:
    - two-space indentation per level
    - attribute order: id, then title or instanceOf, then linkTo
    - elements without children are self-closing
    - instances never emit a title
"""

from typing import List
from xml.sax.saxutils import escape

from babeldiagram.model import DiagramTree, Item, MapKind
from babeldiagram.parser import COLUMN_TAG, DIAGRAM_TAG, ROOT_TAG

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>'
INDENT = "  "

# Whitespace inside attributes is normalized by XML parsers unless encoded.
_ATTRIBUTE_ENTITIES = {
    '"': "&quot;",
    "\n": "&#10;",
    "\r": "&#13;",
    "\t": "&#9;",
}


def _quote_attribute(value: str) -> str:
    return '"' + escape(value, _ATTRIBUTE_ENTITIES) + '"'


def _item_attributes(item: Item) -> str:
    parts = [f"id={_quote_attribute(item.id)}"]
    if item.is_instance:
        parts.append(f"instanceOf={_quote_attribute(item.instance_of)}")
    elif item.title is not None:
        parts.append(f"title={_quote_attribute(item.title)}")
    if item.link_to:
        parts.append(f"linkTo={_quote_attribute(','.join(item.link_to))}")
    return " ".join(parts)


def _emit_item(item: Item, depth: int, lines: List[str]) -> None:
    pad = INDENT * depth
    tag = item.kind.value
    attributes = _item_attributes(item)
    if not item.children:
        lines.append(f"{pad}<{tag} {attributes}/>")
        return
    lines.append(f"{pad}<{tag} {attributes}>")
    for child in item.children:
        _emit_item(child, depth + 1, lines)
    lines.append(f"{pad}</{tag}>")


def _emit_map(tree: DiagramTree, map_kind: MapKind, depth: int, lines: List[str]) -> None:
    pad = INDENT * depth
    tag = map_kind.value
    columns = tree.columns(map_kind)
    if not columns:
        lines.append(f"{pad}<{tag}/>")
        return
    lines.append(f"{pad}<{tag}>")
    column_pad = INDENT * (depth + 1)
    for column in columns:
        if not column:
            lines.append(f"{column_pad}<{COLUMN_TAG}/>")
            continue
        lines.append(f"{column_pad}<{COLUMN_TAG}>")
        for root in column:
            _emit_item(root, depth + 2, lines)
        lines.append(f"{column_pad}</{COLUMN_TAG}>")
    lines.append(f"{pad}</{tag}>")


def generate(tree: DiagramTree) -> str:
    """
    Serialize a tree to its XML document.

    Args:
        tree: DiagramTree to serialize (assumed valid)

    Returns:
        XML text, lines joined with newlines, no trailing newline
    """
    lines = [XML_HEADER, f"<{ROOT_TAG}>", f"{INDENT}<{DIAGRAM_TAG}>"]
    for map_kind in MapKind:
        _emit_map(tree, map_kind, 2, lines)
    lines.append(f"{INDENT}</{DIAGRAM_TAG}>")
    lines.append(f"</{ROOT_TAG}>")
    return "\n".join(lines)


def save_file(tree: DiagramTree, filename: str) -> None:
    """
    Generate XML and save to file.

    Args:
        tree: Tree to serialize
        filename: Output file path (.xml extension recommended)
    """
    document = generate(tree)
    with open(filename, 'w', encoding='utf-8') as f:
        f.write(document)


__all__ = ["XML_HEADER", "generate", "save_file"]
