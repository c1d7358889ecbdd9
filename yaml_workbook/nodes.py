"""Document tree shared by the YAML adapters, the writer and the reader."""

# Module responsibilities:
# - Define the closed Scalar/Mapping/Sequence node union with comment slots.
# - Name the seven comment categories and which of them are replaceable.
# - Offer small helpers to inspect trees without their comments.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Tuple, Union


class CommentType(str, Enum):
    """Structural position a comment is attached to."""

    DOCUMENT = "document"
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    KEY = "key"
    VALUE = "value"
    KEY_VALUE_PAIR = "key_value_pair"
    ITEM = "item"

    @property
    def replaceable(self) -> bool:
        """Whether comment text may stand in for the displayed content."""

        return self in _REPLACEABLE


_REPLACEABLE = frozenset(
    {CommentType.MAPPING, CommentType.SEQUENCE, CommentType.KEY, CommentType.VALUE}
)


@dataclass(slots=True)
class ScalarNode:
    """Leaf value; ``None`` means absence and is rendered as a blank cell."""

    value: str | None
    block_comments: List[str] = field(default_factory=list)
    inline_comments: List[str] = field(default_factory=list)
    end_comments: List[str] = field(default_factory=list)


@dataclass(slots=True)
class MappingNode:
    """Ordered key/value pairs."""

    entries: List[Tuple["Node", "Node"]] = field(default_factory=list)
    block_comments: List[str] = field(default_factory=list)
    inline_comments: List[str] = field(default_factory=list)
    end_comments: List[str] = field(default_factory=list)

    def get(self, key: str) -> "Node | None":
        """Return the value stored under the scalar ``key``, if any."""

        for key_node, value_node in self.entries:
            if isinstance(key_node, ScalarNode) and key_node.value == key:
                return value_node
        return None


@dataclass(slots=True)
class SequenceNode:
    """Ordered list of items."""

    items: List["Node"] = field(default_factory=list)
    block_comments: List[str] = field(default_factory=list)
    inline_comments: List[str] = field(default_factory=list)
    end_comments: List[str] = field(default_factory=list)


Node = Union[ScalarNode, MappingNode, SequenceNode]


def to_plain(node: Node | None) -> Any:
    """Convert a tree into plain ``dict``/``list``/``str`` values, dropping comments."""

    if node is None:
        return None
    if isinstance(node, ScalarNode):
        return node.value
    if isinstance(node, MappingNode):
        return {to_plain(key): to_plain(value) for key, value in node.entries}
    return [to_plain(item) for item in node.items]


def strip_comments(node: Node) -> Node:
    """Return a copy of ``node`` with every comment list emptied."""

    if isinstance(node, ScalarNode):
        return ScalarNode(node.value)
    if isinstance(node, MappingNode):
        return MappingNode(
            [(strip_comments(key), strip_comments(value)) for key, value in node.entries]
        )
    return SequenceNode([strip_comments(item) for item in node.items])


__all__ = [
    "CommentType",
    "ScalarNode",
    "MappingNode",
    "SequenceNode",
    "Node",
    "to_plain",
    "strip_comments",
]
