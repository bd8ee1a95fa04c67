"""
XML Parser (Stored Document → DiagramTree).

Document format:
    <?xml version="1.0" encoding="UTF-8"?>
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
            <Page id="p1" title="Profile">
              <Info id="inst1" instanceOf="i1"/>
              <Function id="f1" title="Save" linkTo="p1"/>
            </Page>
          </Column>
        </SiteMap>
      </Diagram>
    </xml>

Parsing is all-or-nothing: the first problem anywhere in the document raises
a single ParseError and no tree is returned.

Syntax Notes:
    - linkTo is a comma-separated id list; blanks and repeats are dropped
    - ObjectMap / SiteMap may be absent or empty
    - Elements carry no text content
"""

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional, Tuple

from babeldiagram.errors import (
    DiagramValidationError,
    ParseError,
    ParseErrorKind,
    as_parse_error,
)
from babeldiagram.model import DiagramTree, Item, ItemKind, MapKind
from babeldiagram.registry import Registry
from babeldiagram.validation import validate_tree

logger = logging.getLogger(__name__)

ROOT_TAG = "xml"
DIAGRAM_TAG = "Diagram"
COLUMN_TAG = "Column"

ITEM_ATTRIBUTES = ("id", "title", "instanceOf", "linkTo")

_KIND_BY_TAG = {kind.value: kind for kind in ItemKind}


def _malformed(message: str, item_id: Optional[str] = None) -> ParseError:
    return ParseError(ParseErrorKind.MALFORMED_MARKUP, message, item_id=item_id)


def _check_no_text(element: ET.Element, where: str) -> None:
    """Reject stray character data inside or after an element."""
    if element.text is not None and element.text.strip():
        raise _malformed(f"Unexpected text inside <{element.tag}> ({where}): {element.text.strip()!r}")
    if element.tail is not None and element.tail.strip():
        raise _malformed(f"Unexpected text after <{element.tag}> ({where}): {element.tail.strip()!r}")


def split_link_list(value: Optional[str]) -> List[str]:
    """
    Split a linkTo attribute into an ordered set of ids.

    Examples:
        "a,b"      -> ["a", "b"]
        " a , ,b " -> ["a", "b"]
        "a,b,a"    -> ["a", "b"]
    """
    if not value:
        return []
    links: List[str] = []
    for part in value.split(","):
        part = part.strip()
        if part and part not in links:
            links.append(part)
    return links


def _parse_item(element: ET.Element, level: int, column_index: int, where: str) -> Item:
    kind = _KIND_BY_TAG.get(element.tag)
    if kind is None:
        raise _malformed(f"Unknown element <{element.tag}> in {where}")

    _check_no_text(element, where)

    unknown = [name for name in element.attrib if name not in ITEM_ATTRIBUTES]
    item_id = element.get("id")
    if unknown:
        raise ParseError(
            ParseErrorKind.UNEXPECTED_ATTRIBUTE,
            f"<{element.tag}> in {where} has unsupported attribute(s): {', '.join(sorted(unknown))}",
            item_id=item_id,
        )
    if not item_id:
        raise ParseError(
            ParseErrorKind.MISSING_REQUIRED_ATTRIBUTE,
            f"<{element.tag}> in {where} is missing an id",
        )

    item = Item(
        id=item_id,
        kind=kind,
        title=element.get("title"),
        instance_of=element.get("instanceOf"),
        link_to=split_link_list(element.get("linkTo")),
        nesting_level=level,
        column_index=column_index,
    )
    child_where = f"{kind.value} '{item_id}'"
    item.children = [
        _parse_item(child, level + 1, column_index, child_where)
        for child in element
    ]
    return item


def _parse_map(element: ET.Element) -> List[List[Item]]:
    _check_no_text(element, DIAGRAM_TAG)
    if element.attrib:
        raise _malformed(f"<{element.tag}> does not take attributes")
    columns: List[List[Item]] = []
    for column_index, column in enumerate(element):
        if column.tag != COLUMN_TAG:
            raise _malformed(f"Expected <{COLUMN_TAG}> in <{element.tag}>, found <{column.tag}>")
        where = f"{element.tag} column {column_index}"
        _check_no_text(column, where)
        columns.append([_parse_item(child, 0, column_index, where) for child in column])
    return columns


def _parse_skeleton(root: ET.Element) -> DiagramTree:
    if root.tag != ROOT_TAG:
        raise _malformed(f"Root element must be <{ROOT_TAG}>, found <{root.tag}>")
    _check_no_text(root, "document")

    diagrams = list(root)
    if len(diagrams) != 1 or diagrams[0].tag != DIAGRAM_TAG:
        raise _malformed(f"<{ROOT_TAG}> must contain exactly one <{DIAGRAM_TAG}>")
    diagram = diagrams[0]
    _check_no_text(diagram, ROOT_TAG)

    tree = DiagramTree()
    seen = set()
    map_tags = {kind.value: kind for kind in MapKind}
    for element in diagram:
        map_kind = map_tags.get(element.tag)
        if map_kind is None:
            raise _malformed(f"Unknown element <{element.tag}> in <{DIAGRAM_TAG}>")
        if map_kind in seen:
            raise _malformed(f"<{element.tag}> appears more than once")
        seen.add(map_kind)
        if map_kind is MapKind.OBJECT_MAP:
            tree.object_map = _parse_map(element)
        else:
            tree.site_map = _parse_map(element)
    return tree


def parse_with_registry(xml_text: str) -> Tuple[DiagramTree, Registry]:
    """
    Parse a document and return the tree together with its registry.

    Args:
        xml_text: Complete XML document

    Returns:
        (DiagramTree, Registry)

    Raises:
        ParseError: If the document is malformed or breaks any tree invariant
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        line, column = e.position
        raise _malformed(f"Invalid XML at line {line}, column {column}: {e}") from e

    tree = _parse_skeleton(root)

    try:
        registry = validate_tree(tree)
    except DiagramValidationError as e:
        raise as_parse_error(e) from e

    logger.debug(
        "Parsed diagram: %d items, %d object columns, %d site columns",
        len(registry), len(tree.object_map), len(tree.site_map),
    )
    return tree, registry


def parse(xml_text: str) -> DiagramTree:
    """
    Parse a document into a DiagramTree.

    Raises:
        ParseError: If parsing fails anywhere in the document
    """
    tree, _ = parse_with_registry(xml_text)
    return tree


def parse_file(filepath: str) -> DiagramTree:
    """
    Parse an XML file into a DiagramTree.

    Raises:
        FileNotFoundError: If file doesn't exist
        ParseError: If parsing fails
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        content = f.read()
    return parse(content)


__all__ = [
    "parse",
    "parse_with_registry",
    "parse_file",
    "split_link_list",
    "ParseError",
]
