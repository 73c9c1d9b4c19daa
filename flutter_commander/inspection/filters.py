"""Raw tree -> :class:`SemanticNode` conversion for both tree sources.

Live path (widget inspector JSON) is filtered post-order and *flattened*:
wrapper nodes that carry no text, are not a Button/Input/Text and have no
children of their own are dropped, and their children re-parented to the
current level. The relevance predicate is relied upon by downstream
consumers and must stay exactly as it is.

Dump path (uiautomator XML) is converted pre-order and keeps the structure
one to one.
"""

from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ET
from typing import Any, Optional

from ..core.exceptions import TreeUnavailableError
from ..core.logger import log
from .models import RawInspectorNode, Rect, SemanticNode

RELEVANT_TYPES = frozenset({"Button", "Input", "Text"})

# First match wins, case sensitive
_TYPE_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("Button",), "Button"),
    (("Text", "Paragraph"), "Text"),
    (("Image",), "Image"),
    (("Field", "Input"), "Input"),
    (("Semantics",), "Semantics"),
)

TEXT_PROPERTY_NAMES = ("text", "label", "value")

BOUNDS_PATTERN = re.compile(r"\[(\d+),(\d+)\]\[(\d+),(\d+)\]")

DUMP_NODE_TAG = "node"


# ---------------------------------------------------------------------------
# Live path
# ---------------------------------------------------------------------------

def simplify_type(raw_type: Optional[str]) -> str:
    if not raw_type:
        return "Unknown"
    for needles, simplified in _TYPE_RULES:
        if any(needle in raw_type for needle in needles):
            return simplified
    return "Container"


def _stringify(value: Any) -> str:
    """Render a property value the way the inspector displays it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def extract_text(node: RawInspectorNode) -> Optional[str]:
    for prop in node.properties:
        if prop.name in TEXT_PROPERTY_NAMES:
            return _stringify(prop.value)
    return None


def is_relevant(node: SemanticNode) -> bool:
    if node.text:
        return True
    if node.type in RELEVANT_TYPES:
        return True
    return bool(node.children)


def filter_live_node(raw_node: RawInspectorNode) -> SemanticNode:
    children: list[SemanticNode] = []
    for raw_child in raw_node.children:
        child = filter_live_node(raw_child)
        if is_relevant(child):
            children.append(child)
        elif child.children:
            children.extend(child.children)

    return SemanticNode(
        type=simplify_type(raw_node.type),
        text=extract_text(raw_node),
        rect=Rect(),
        children=children or None,
        is_visible=True,
    )


def normalize_live_tree(payload: Any) -> SemanticNode:
    """Normalize an inspector summary tree.

    Raises:
        TreeUnavailableError: If *payload* is not a node object.

    """
    try:
        raw_root = RawInspectorNode.from_json(payload)
    except ValueError as e:
        raise TreeUnavailableError(f"Inspector returned no usable root: {e}") from e
    return filter_live_node(raw_root)


# ---------------------------------------------------------------------------
# Dump path
# ---------------------------------------------------------------------------

def parse_bounds(bounds: Optional[str]) -> Rect:
    """Parse ``[x1,y1][x2,y2]`` into a rect; anything malformed gives the zero rect."""
    if not bounds:
        return Rect()
    match = BOUNDS_PATTERN.search(bounds)
    if not match:
        return Rect()
    x1, y1, x2, y2 = (int(group) for group in match.groups())
    return Rect(x1, y1, max(0, x2 - x1), max(0, y2 - y1))


def filter_dump_node(element: ET.Element) -> SemanticNode:
    class_name = element.get("class")
    node_type = class_name.split(".")[-1] if class_name else "Unknown"
    text = element.get("text") or element.get("content-desc") or None

    children = [filter_dump_node(child) for child in element.findall(DUMP_NODE_TAG)]

    return SemanticNode(
        type=node_type,
        text=text,
        rect=parse_bounds(element.get("bounds")),
        children=children or None,
        is_clickable=element.get("clickable") == "true",
        is_focusable=element.get("focusable") == "true",
        is_focused=element.get("focused") == "true",
        is_visible=True,
    )


def parse_window_dump(xml_content: str) -> Optional[ET.Element]:
    """Return the top-level ``node`` element of a uiautomator dump, or ``None``."""
    if not xml_content:
        return None
    xml_content = xml_content.strip()
    if not xml_content.startswith("<"):
        # uiautomator sometimes prefixes status text
        start_idx = xml_content.find("<")
        if start_idx == -1:
            return None
        xml_content = xml_content[start_idx:]

    try:
        root = ET.fromstring(xml_content)
    except ET.ParseError as e:
        log.warning(f"Window dump is not valid XML: {e}")
        return None

    if root.tag == DUMP_NODE_TAG:
        return root
    return root.find(DUMP_NODE_TAG)


def normalize_dump_tree(xml_content: str) -> SemanticNode:
    """Normalize a uiautomator XML dump.

    Raises:
        TreeUnavailableError: If the dump holds no node element.

    """
    element = parse_window_dump(xml_content)
    if element is None:
        raise TreeUnavailableError("Accessibility dump contains no UI hierarchy")
    return filter_dump_node(element)
