"""Reversible escaping of cell values and comment-cell helpers."""

# Module responsibilities:
# - Escape values that would otherwise read back as structural markers.
# - Build and parse "# text" comment cells.
# - Join and split the backslash-escaped value lists stored in enum comments.

from __future__ import annotations

from typing import Iterable, List, Optional

from .indentation import IndentationStrategy
from .syntax import DEFAULT_SYNTAX, WorkbookSyntax


class ValueCodec:
    """Escape and unescape values against one syntax and indentation strategy."""

    def __init__(
        self,
        syntax: WorkbookSyntax = DEFAULT_SYNTAX,
        strategy: Optional[IndentationStrategy] = None,
    ) -> None:
        self.syntax = syntax
        self.strategy = strategy

    def needs_escape(self, value: str) -> bool:
        syntax = self.syntax
        if value.startswith(syntax.comment_mark) or value.startswith(syntax.escape_mark):
            return True
        if value in (syntax.item_mark, syntax.frontmatter):
            return True
        return bool(value) and self.strategy is not None and self.strategy.is_marker(value)

    def escape(self, value: Optional[str]) -> Optional[str]:
        """Prefix ``value`` with one escape mark when it collides with a marker.

        ``None`` passes through unchanged so absence stays a blank cell.
        """

        if value is None:
            return None
        if self.needs_escape(value):
            return self.syntax.escape_mark + value
        return value

    def unescape(self, value: Optional[str]) -> Optional[str]:
        """Strip exactly one leading escape mark."""

        if value is None:
            return None
        if value.startswith(self.syntax.escape_mark):
            return value[len(self.syntax.escape_mark):]
        return value

    def escape_attached(self, value: Optional[str]) -> str:
        """Escape a value stored in an attached cell comment.

        Besides the cell rules, values starting with the reserved enum prefix are
        escaped, and absence is stored as a bare escape mark.
        """

        if value is None:
            return self.syntax.escape_mark
        escaped = self.escape(value)
        if escaped.startswith(self.syntax.enum_comment_prefix):
            return self.syntax.escape_mark + escaped
        return escaped

    def is_comment(self, text: Optional[str]) -> bool:
        return text is not None and text.startswith(self.syntax.comment_mark)

    def comment_cell(self, text: str) -> str:
        body = text.strip()
        return f"{self.syntax.comment_mark} {body}" if body else self.syntax.comment_mark

    def comment_text(self, cell_text: str) -> str:
        return cell_text[len(self.syntax.comment_mark):].strip()

    def is_enum_comment(self, text: Optional[str]) -> bool:
        return text is not None and text.startswith(self.syntax.enum_comment_prefix)

    def enum_comment(self, values: Iterable[str]) -> str:
        return self.syntax.enum_comment_prefix + join_enum_values(values)

    def enum_comment_values(self, text: str) -> List[str]:
        return split_enum_values(text[len(self.syntax.enum_comment_prefix):])


def join_enum_values(values: Iterable[str]) -> str:
    """Comma-join values, escaping backslash and comma with a backslash."""

    return ",".join(value.replace("\\", "\\\\").replace(",", "\\,") for value in values)


def split_enum_values(text: str) -> List[str]:
    """Inverse of :func:`join_enum_values`."""

    values: List[str] = []
    current: List[str] = []
    escaped = False
    for char in text:
        if escaped:
            current.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == ",":
            values.append("".join(current))
            current = []
        else:
            current.append(char)
    if escaped:
        current.append("\\")
    values.append("".join(current))
    return values


__all__ = ["ValueCodec", "join_enum_values", "split_enum_values"]
