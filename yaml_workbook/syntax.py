"""Literal markers and naming functions shared by the writer and the reader."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .errors import ConfigurationError
from .nodes import Node

SheetNamer = Callable[[int], str]
SheetSelector = Callable[[Node, int], int]


@dataclass(frozen=True, slots=True)
class WorkbookSyntax:
    """Marker tokens written into cells.

    Attributes:
        frontmatter: Row-leading token that opens every document region.
        comment_mark: Leading character of comment cells.
        escape_mark: Prefix protecting values that would read as markers.
        item_mark: Cell announcing a sequence item.
        hidden_sheet_suffix: Appended to a visible sheet name for its dropdown sheet.
        enum_comment_prefix: Reserved prefix of index-coded enum value comments.
    """

    frontmatter: str = "---"
    comment_mark: str = "#"
    escape_mark: str = "\\"
    item_mark: str = "-"
    hidden_sheet_suffix: str = "Hidden"
    enum_comment_prefix: str = "ENUM_VALUES:"

    def __post_init__(self) -> None:
        markers = {
            "frontmatter": self.frontmatter,
            "comment_mark": self.comment_mark,
            "escape_mark": self.escape_mark,
            "item_mark": self.item_mark,
            "hidden_sheet_suffix": self.hidden_sheet_suffix,
            "enum_comment_prefix": self.enum_comment_prefix,
        }
        if empty := sorted(name for name, value in markers.items() if not value):
            raise ConfigurationError(f"Workbook markers must not be empty: {', '.join(empty)}")
        structural = [self.frontmatter, self.comment_mark, self.escape_mark, self.item_mark]
        if len(set(structural)) != len(structural):
            raise ConfigurationError("Frontmatter, comment, escape and item marks must differ")
        if self.comment_mark.startswith(self.escape_mark):
            raise ConfigurationError("The comment mark must not start with the escape mark")


DEFAULT_SYNTAX = WorkbookSyntax()


def default_sheet_name(index: int) -> str:
    """Name the visible sheet at logical position ``index``."""

    return f"Sheet{index + 1}"


def default_node_to_sheet(node: Node, index: int) -> int:
    """Place every document on the first visible sheet."""

    return 0


__all__ = [
    "WorkbookSyntax",
    "DEFAULT_SYNTAX",
    "SheetNamer",
    "SheetSelector",
    "default_sheet_name",
    "default_node_to_sheet",
]
