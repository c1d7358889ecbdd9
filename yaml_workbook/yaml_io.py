"""YAML text adapters: compose documents with comments and emit them back."""

# Module responsibilities:
# - Compose YAML text into Node trees with PyYAML, attaching comments by line position.
# - Emit Node trees as YAML text with ruamel.yaml round-trip comments.

from __future__ import annotations

import io
import re
from bisect import bisect_right
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, TextIO, Tuple, Union

import yaml
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.error import YAMLError as RuamelYAMLError

from .errors import ConversionError, MalformedInputError
from .nodes import MappingNode, Node, ScalarNode, SequenceNode
from .utils.log import get_logger

logger = get_logger("yaml_io")

NULL_TAG = "tag:yaml.org,2002:null"
_LINE = re.compile(r"([^\r\n\x85\u2028\u2029]*)(\r\n|[\r\n\x85\u2028\u2029]|\Z)")
_INT = re.compile(r"-?(?:0|[1-9][0-9]*)")
_FLOAT = re.compile(r"-?(?:0|[1-9][0-9]*)\.[0-9]*[1-9]")
_COVERING_TOKENS = (
    yaml.ScalarToken,
    yaml.AnchorToken,
    yaml.AliasToken,
    yaml.TagToken,
    yaml.DirectiveToken,
)

YamlSource = Union[str, TextIO]


@dataclass(slots=True)
class _Comment:
    line: int
    column: int
    text: str
    full_line: bool


@dataclass(slots=True)
class _Anchor:
    line: int
    depth: int
    order: int
    target: List[str]


def _scan_comments(text: str) -> List[_Comment]:
    spans = sorted(
        (token.start_mark.index, token.end_mark.index)
        for token in yaml.scan(text, Loader=yaml.SafeLoader)
        if isinstance(token, _COVERING_TOKENS)
    )
    starts = [start for start, _ in spans]

    def covered(index: int) -> bool:
        position = bisect_right(starts, index) - 1
        return position >= 0 and spans[position][0] <= index < spans[position][1]

    comments: List[_Comment] = []
    offset = 0
    for line_no, match in enumerate(_LINE.finditer(text)):
        body = match.group(1)
        search = 0
        while (column := body.find("#", search)) >= 0:
            if (column == 0 or body[column - 1] in " \t") and not covered(offset + column):
                comments.append(
                    _Comment(
                        line=line_no,
                        column=column,
                        text=body[column + 1:].strip(),
                        full_line=not body[:column].strip(),
                    )
                )
                break
            search = column + 1
        offset = match.end()
        if match.end() >= len(text):
            break
    return comments


class _TreeBuilder:
    """Convert composed PyYAML nodes and remember where comments may attach."""

    def __init__(self) -> None:
        self.anchors: List[_Anchor] = []
        self.scalars: Dict[int, List[Tuple[int, ScalarNode]]] = {}
        self._active: set[int] = set()

    def add_anchor(self, line: int, depth: int, target: List[str]) -> None:
        self.anchors.append(_Anchor(line, depth, len(self.anchors), target))

    def build(self, node: yaml.Node, depth: int = 0) -> Node:
        if isinstance(node, yaml.ScalarNode):
            value = None if node.tag == NULL_TAG else node.value
            scalar = ScalarNode(value)
            self.scalars.setdefault(node.start_mark.line, []).append(
                (node.start_mark.column, scalar)
            )
            return scalar
        if id(node) in self._active:
            raise MalformedInputError(
                f"Recursive alias at line {node.start_mark.line + 1} cannot be converted"
            )
        self._active.add(id(node))
        try:
            if isinstance(node, yaml.MappingNode):
                return self._build_mapping(node, depth)
            return self._build_sequence(node, depth)
        finally:
            self._active.discard(id(node))

    def _build_mapping(self, node: yaml.MappingNode, depth: int) -> MappingNode:
        mapping = MappingNode()
        if node.value:
            self.add_anchor(node.value[0][0].start_mark.line, depth, mapping.block_comments)
        for key_node, value_node in node.value:
            key = self.build(key_node, depth + 1)
            self.add_anchor(key_node.start_mark.line, depth + 1, key.block_comments)
            mapping.entries.append((key, self.build(value_node, depth + 1)))
        return mapping

    def _build_sequence(self, node: yaml.SequenceNode, depth: int) -> SequenceNode:
        sequence = SequenceNode()
        if node.value:
            self.add_anchor(node.value[0].start_mark.line, depth, sequence.block_comments)
        for item_node in node.value:
            item = self.build(item_node, depth + 1)
            self.add_anchor(item_node.start_mark.line, depth + 1, item.block_comments)
            sequence.items.append(item)
        return sequence

    def attach(self, comments: Sequence[_Comment], documents: List[Node]) -> None:
        ordered = sorted(self.anchors, key=lambda anchor: (anchor.line, anchor.depth, anchor.order))
        lines = [anchor.line for anchor in ordered]
        for comment in comments:
            if not comment.full_line:
                candidates = [
                    (column, scalar)
                    for column, scalar in self.scalars.get(comment.line, [])
                    if column < comment.column
                ]
                if candidates:
                    max(candidates, key=lambda pair: pair[0])[1].inline_comments.append(comment.text)
                    continue
            position = bisect_right(lines, comment.line)
            if position < len(ordered):
                ordered[position].target.append(comment.text)
            elif documents:
                documents[-1].end_comments.append(comment.text)


def compose_documents(source: YamlSource) -> List[Node]:
    """Compose every document of ``source`` into a Node tree with comments.

    Full-line comments attach to the next structural anchor (document root,
    first entry of a nested collection, mapping key or sequence item, the
    outermost winning on a shared line); comments after the last anchor
    become end comments of the final document. End-of-line comments attach
    to the last scalar starting before them on the same line.

    Args:
        source: YAML text or a readable text stream.

    Returns:
        One root node per document, in order.

    Raises:
        MalformedInputError: When the text is not valid YAML.
    """

    text = source if isinstance(source, str) else source.read()
    try:
        roots = list(yaml.compose_all(text, Loader=yaml.SafeLoader))
        comments = _scan_comments(text)
    except yaml.YAMLError as exc:
        raise MalformedInputError(f"Invalid YAML input: {exc}") from exc

    builder = _TreeBuilder()
    documents: List[Node] = []
    for root in roots:
        document = builder.build(root)
        builder.add_anchor(root.start_mark.line, 0, document.block_comments)
        documents.append(document)
    builder.attach(comments, documents)
    logger.debug(
        "Composed YAML documents",
        extra={"documents": len(documents), "comments": len(comments)},
    )
    return documents


def _plain_value(text: str | None) -> Any:
    if text is None:
        return None
    if text in ("true", "false"):
        return text == "true"
    if _INT.fullmatch(text):
        return int(text)
    if _FLOAT.fullmatch(text) and repr(float(text)) == text:
        return float(text)
    return text


def _comment_line(text: str) -> str:
    return f"# {text}\n" if text else "#\n"


def _set_comments(
    container: Union[CommentedMap, CommentedSeq],
    key: Any,
    before: List[str],
    inline: List[str],
    indent: int,
) -> None:
    # EOL first: ruamel extends an existing pre-comment list with a bare token otherwise.
    if inline:
        container.yaml_add_eol_comment("# " + " # ".join(inline), key, column=0)
    if before:
        container.yaml_set_comment_before_after_key(key, before="\n".join(before), indent=indent)


def _to_data(node: Node, depth: int, own_block: bool) -> Tuple[Any, List[str]]:
    """Build ruamel data for ``node``; return it with comments left for the parent."""

    if isinstance(node, ScalarNode):
        return _plain_value(node.value), list(node.end_comments)

    if isinstance(node, MappingNode):
        data = CommentedMap()
        carry: List[str] = list(node.block_comments) if own_block else []
        for key, value in node.entries:
            if not isinstance(key, ScalarNode):
                raise ConversionError("Only scalar mapping keys can be emitted")
            plain_key = _plain_value(key.value)
            if plain_key in data:
                plain_key = key.value
            child, child_carry = _to_data(value, depth + 1, own_block=True)
            data[plain_key] = child
            inline = list(key.inline_comments) + list(value.inline_comments)
            _set_comments(data, plain_key, carry + list(key.block_comments), inline, depth * 2)
            carry = child_carry
        return data, carry + list(node.end_comments)

    data = CommentedSeq()
    carry = list(node.block_comments) if own_block else []
    for index, item in enumerate(node.items):
        child, child_carry = _to_data(item, depth + 1, own_block=False)
        data.append(child)
        _set_comments(data, index, carry + list(item.block_comments), list(item.inline_comments), depth * 2)
        carry = child_carry
    return data, carry + list(node.end_comments)


def emit_documents(nodes: Sequence[Node]) -> str:
    """Render Node trees as YAML text, one document per node.

    Document comments are written as leading comment lines, key/item comments
    through ruamel.yaml round-trip comment slots, end comments as trailing lines.

    Raises:
        ConversionError: When ruamel.yaml cannot represent a tree.
    """

    dumper = YAML()
    dumper.indent(mapping=2, sequence=4, offset=2)
    buffer = io.StringIO()
    for index, node in enumerate(nodes):
        if index:
            buffer.write("---\n")
        for text in node.block_comments:
            buffer.write(_comment_line(text))
        data, trailing = _to_data(node, 0, own_block=False)
        if isinstance(node, ScalarNode):
            trailing = list(node.inline_comments) + trailing
        try:
            dumper.dump(data, buffer)
        except RuamelYAMLError as exc:
            raise ConversionError(f"Cannot emit YAML document {index + 1}: {exc}") from exc
        for text in trailing:
            buffer.write(_comment_line(text))
    return buffer.getvalue()


__all__ = ["compose_documents", "emit_documents", "YamlSource"]
