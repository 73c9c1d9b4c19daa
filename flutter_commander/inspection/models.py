"""Data models for the canonical semantic tree and the raw inspector payload."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional


@dataclass(slots=True)
class Rect:
    """Axis-aligned rectangle (x, y, width, height) in pixel coordinates."""

    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0

    def center(self) -> tuple[int, int]:
        """Centre point, truncated to whole pixels for ``input tap``."""
        return int(self.x + self.width / 2), int(self.y + self.height / 2)

    def is_empty(self) -> bool:
        """True when the rectangle has no area."""
        return self.width <= 0 or self.height <= 0

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(slots=True)
class SemanticNode:
    """Canonical unit of UI structure returned to agents.

    ``children`` is ``None`` for leaves. The interaction flags are only
    populated for nodes produced from the accessibility dump.
    """

    type: str
    text: Optional[str] = None
    rect: Rect = field(default_factory=Rect)
    children: Optional[list[SemanticNode]] = None
    is_clickable: Optional[bool] = None
    is_focusable: Optional[bool] = None
    is_focused: Optional[bool] = None
    is_visible: bool = True

    def iter_nodes(self) -> Iterator[SemanticNode]:
        """Yield this node and its descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            if node.children:
                stack.extend(reversed(node.children))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the agent-facing JSON shape, omitting absent values."""
        data: dict[str, Any] = {"type": self.type}
        if self.text is not None:
            data["text"] = self.text
        data["rect"] = self.rect.to_dict()
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        for key, value in (
            ("isClickable", self.is_clickable),
            ("isFocusable", self.is_focusable),
            ("isFocused", self.is_focused),
        ):
            if value is not None:
                data[key] = value
        data["isVisible"] = self.is_visible
        return data


@dataclass(slots=True)
class RawInspectorProperty:
    """One ``{name, value}`` entry of an inspector node's property list."""

    name: str
    value: Any = None


@dataclass(slots=True)
class RawInspectorNode:
    """Checked view over the untyped JSON returned by the widget inspector."""

    type: Optional[str] = None
    properties: list[RawInspectorProperty] = field(default_factory=list)
    children: list[RawInspectorNode] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: Any) -> RawInspectorNode:
        """Build a node from decoded JSON, defaulting every missing or mistyped member."""
        if not isinstance(payload, dict):
            raise ValueError(f"Inspector node must be an object, got {type(payload).__name__}")

        raw_type = payload.get("type")
        node_type = raw_type if isinstance(raw_type, str) else None

        properties: list[RawInspectorProperty] = []
        raw_properties = payload.get("properties")
        if isinstance(raw_properties, list):
            for prop in raw_properties:
                if isinstance(prop, dict) and isinstance(prop.get("name"), str):
                    properties.append(RawInspectorProperty(prop["name"], prop.get("value")))

        children: list[RawInspectorNode] = []
        raw_children = payload.get("children")
        if isinstance(raw_children, list):
            children = [cls.from_json(child) for child in raw_children if isinstance(child, dict)]

        return cls(type=node_type, properties=properties, children=children)
