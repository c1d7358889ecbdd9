"""Grid to tree conversion."""

# Module responsibilities:
# - Read visible sheets whose names match their logical position.
# - Split rows into document regions at frontmatter rows.
# - Parse each region back into a Node tree, recovering comments and swapped values.
# - Reverse dropdown cells to their true enum values.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from openpyxl import Workbook
from openpyxl.cell.cell import Cell
from openpyxl.worksheet.worksheet import Worksheet

from .codec import ValueCodec
from .config import OutputMode
from .dropdown import EnumDropdownCodec
from .indentation import CellOffsetStrategy, IndentationStrategy
from .nodes import MappingNode, Node, ScalarNode, SequenceNode
from .syntax import DEFAULT_SYNTAX, SheetNamer, WorkbookSyntax, default_sheet_name
from .workbook import cell_note, cell_text, visible_sheets
from .yaml_io import emit_documents
from .utils.log import get_logger

logger = get_logger("reader")


@dataclass(slots=True)
class _Row:
    """One populated row, cut to the content columns of its level."""

    number: int
    level: int
    raw: List[Optional[str]]
    shown: List[Optional[str]]

    def first(self) -> Optional[str]:
        return self.raw[0] if self.raw else None


@dataclass
class _ReadContext:
    """Per-sheet state of one ``from_workbook`` call."""

    workbook: Workbook
    sheet: Worksheet
    rows: List[_Row] = field(default_factory=list)


class YamlWorkbookReader:
    """Convert a workbook written by :class:`YamlWorkbookWriter` back to documents.

    The reader must be configured with the same output mode, indentation
    strategy and syntax as the writer that produced the workbook.
    """

    def __init__(
        self,
        *,
        output_mode: OutputMode | str = OutputMode.YAML_ORIENTED,
        indentation: Optional[IndentationStrategy] = None,
        syntax: WorkbookSyntax = DEFAULT_SYNTAX,
        sheet_name: SheetNamer = default_sheet_name,
    ) -> None:
        self.output_mode = OutputMode(output_mode)
        self.strategy = indentation or CellOffsetStrategy()
        self.syntax = syntax
        self.sheet_name = sheet_name
        self.codec = ValueCodec(syntax, self.strategy)
        self.dropdown = EnumDropdownCodec(self.codec)

    # ------------------------------------------------------------------ public API

    def from_workbook(self, workbook: Optional[Workbook]) -> List[Node]:
        """Parse every document region of every recognised sheet.

        Args:
            workbook: Workbook to read; ``None`` yields no documents.

        Returns:
            Document roots in sheet order, then row order.
        """

        if workbook is None:
            return []
        documents: List[Node] = []
        for index, sheet in enumerate(visible_sheets(workbook)):
            expected = self.sheet_name(index)
            if sheet.title != expected:
                logger.info(
                    "Sheet ignored",
                    extra={"sheet": sheet.title, "expected": expected},
                )
                continue
            context = _ReadContext(workbook=workbook, sheet=sheet)
            context.rows = self._collect_rows(context)
            documents.extend(self._read_sheet(context))
        logger.info("Workbook read", extra={"documents": len(documents)})
        return documents

    def to_yaml(self, workbook: Optional[Workbook]) -> str:
        """Read ``workbook`` and render its documents as YAML text."""

        return emit_documents(self.from_workbook(workbook))

    # ------------------------------------------------------------------ cells

    def _collect_rows(self, context: _ReadContext) -> List[_Row]:
        rows: List[_Row] = []
        for cells in context.sheet.iter_rows():
            texts = [cell_text(cell.value) for cell in cells]
            notes = [cell_note(cell) for cell in cells]
            layout = [
                "" if text is None and note is not None else text
                for text, note in zip(texts, notes)
            ]
            while layout and layout[-1] is None:
                layout.pop()
            if not layout:
                continue
            level = self.strategy.row_level(layout)
            start = self.strategy.content_column(level)
            raw: List[Optional[str]] = []
            shown: List[Optional[str]] = []
            for cell in cells[start:len(layout)]:
                value, displayed = self._read(context, cell)
                raw.append(value)
                shown.append(displayed)
            if not raw:
                logger.debug("Marker-only row skipped", extra={"row": cells[0].row})
                continue
            rows.append(_Row(cells[0].row, level, raw, shown))
        return rows

    def _read(self, context: _ReadContext, cell: Cell) -> Tuple[Optional[str], Optional[str]]:
        """Return the raw (escaped) value of ``cell`` and its displayed text if swapped."""

        text = cell_text(cell.value)
        note = cell_note(cell) if self.output_mode.recoverable else None
        if note is None:
            return text, None
        if self.codec.is_enum_comment(note):
            value = self.dropdown.decode(context.workbook, context.sheet, cell, text, note)
            return self.codec.escape(value), None
        return note, text

    def _scalar(self, raw: Optional[str]) -> Optional[str]:
        value = self.codec.unescape(raw)
        return value if value else None

    def _is_comment_row(self, row: _Row) -> bool:
        return self.codec.is_comment(row.first())

    def _comment(self, row: _Row) -> str:
        return self.codec.comment_text(row.first() or "")

    def _restore(self, displayed: Optional[str], node: ScalarNode) -> None:
        if self.output_mode is OutputMode.DISPLAY_MODE and displayed is not None:
            node.inline_comments.insert(0, displayed)

    def _trailing_comments(self, row: _Row, column: int) -> List[str]:
        comments = []
        for raw in row.raw[column:]:
            if self.codec.is_comment(raw):
                comments.append(self.codec.comment_text(raw))
            elif raw is not None:
                logger.debug("Stray cell ignored", extra={"row": row.number, "value": raw})
        return comments

    # ------------------------------------------------------------------ regions

    def _is_frontmatter(self, row: _Row) -> bool:
        return row.level == 0 and row.first() == self.syntax.frontmatter

    def _read_sheet(self, context: _ReadContext) -> List[Node]:
        segments: List[Tuple[List[str], List[_Row]]] = []
        leading: List[str] = []
        body: Optional[List[_Row]] = None
        for row in context.rows:
            if self._is_frontmatter(row):
                if body is not None:
                    cut = len(body)
                    while cut and body[cut - 1].level == 0 and self._is_comment_row(body[cut - 1]):
                        cut -= 1
                    segments.append((leading, body[:cut]))
                    leading = [self._comment(r) for r in body[cut:]]
                body = []
            elif body is not None:
                body.append(row)
            elif self._is_comment_row(row):
                leading.append(self._comment(row))
            else:
                body = [row]
        if body is not None:
            segments.append((leading, body))

        documents: List[Node] = []
        for document_comments, rows in segments:
            node = self._parse_region(rows, 0, len(rows), root=True)
            if node is None:
                logger.debug(
                    "Region without content skipped",
                    extra={"sheet": context.sheet.title, "comments": len(document_comments)},
                )
                continue
            node.block_comments[:0] = document_comments
            documents.append(node)
        return documents

    def _parse_region(
        self, rows: List[_Row], start: int, end: int, *, root: bool = False
    ) -> Optional[Node]:
        """Parse ``rows[start:end]`` into one node; ``None`` when it holds only comments."""

        index = start
        leading: List[str] = []
        while index < end and self._is_comment_row(rows[index]):
            leading.append(self._comment(rows[index]))
            index += 1
        if index == end:
            if leading and not root:
                return ScalarNode(None, end_comments=leading)
            return None

        first = rows[index]
        level = first.level
        pending = leading if root else []
        if first.first() == self.syntax.item_mark:
            node: Node = self._parse_sequence(rows, index, end, level, pending)
        elif not root or self._opens_mapping(rows, index, end, level):
            # Scalars are always written inline, so nested content is a collection.
            node = self._parse_mapping(rows, index, end, level, pending)
        else:
            node = self._parse_scalar(rows, index, end)
            node.block_comments[:0] = leading
            return node
        if not root:
            node.block_comments[:0] = leading
        return node

    def _opens_mapping(self, rows: List[_Row], index: int, end: int, level: int) -> bool:
        """Classify a document root row; a lone bare row stays a scalar."""

        if any(raw is not None for raw in rows[index].raw[1:]):
            return True
        following = [row for row in rows[index + 1:end] if not self._is_comment_row(row)]
        if not following:
            return False
        return following[0].level > level or any(row.level == level for row in following)

    def _nested_end(self, rows: List[_Row], index: int, end: int, level: int) -> int:
        cursor = index + 1
        while cursor < end and rows[cursor].level > level:
            cursor += 1
        return cursor

    def _parse_scalar(self, rows: List[_Row], index: int, end: int) -> ScalarNode:
        row = rows[index]
        node = ScalarNode(self._scalar(row.first()))
        self._restore(row.shown[0], node)
        for extra in rows[index + 1:end]:
            if self._is_comment_row(extra):
                node.end_comments.append(self._comment(extra))
            else:
                logger.warning("Row after a scalar document skipped", extra={"row": extra.number})
        return node

    def _parse_mapping(
        self, rows: List[_Row], index: int, end: int, level: int, pending: List[str]
    ) -> MappingNode:
        mapping = MappingNode()
        while index < end:
            row = rows[index]
            if self._is_comment_row(row):
                pending.append(self._comment(row))
                index += 1
                continue
            nested_end = self._nested_end(rows, index, end, level)
            if row.level != level or row.first() is None or row.first() == self.syntax.item_mark:
                logger.warning("Malformed mapping row skipped", extra={"row": row.number})
                index = nested_end
                continue

            key = ScalarNode(self._scalar(row.first()), block_comments=pending)
            pending = []
            self._restore(row.shown[0], key)
            column = 1
            while column < len(row.raw) and self.codec.is_comment(row.raw[column]):
                key.inline_comments.append(self.codec.comment_text(row.raw[column]))
                column += 1
            raw_value = row.raw[column] if column < len(row.raw) else None
            shown_value = row.shown[column] if column < len(row.shown) else None
            comments = self._trailing_comments(row, column + 1)

            value: Optional[Node] = None
            if raw_value is None and nested_end > index + 1:
                value = self._parse_region(rows, index + 1, nested_end)
            elif nested_end > index + 1:
                logger.warning(
                    "Indented rows under a scalar value skipped",
                    extra={"row": row.number, "skipped": nested_end - index - 1},
                )
            if value is None:
                value = ScalarNode(self._scalar(raw_value))
                self._restore(shown_value, value)
            value.inline_comments.extend(comments)
            mapping.entries.append((key, value))
            index = nested_end
        mapping.end_comments.extend(pending)
        return mapping

    def _parse_sequence(
        self, rows: List[_Row], index: int, end: int, level: int, pending: List[str]
    ) -> SequenceNode:
        sequence = SequenceNode()
        while index < end:
            row = rows[index]
            if self._is_comment_row(row):
                pending.append(self._comment(row))
                index += 1
                continue
            nested_end = self._nested_end(rows, index, end, level)
            if row.level != level or row.first() != self.syntax.item_mark:
                logger.warning("Malformed sequence row skipped", extra={"row": row.number})
                index = nested_end
                continue

            column = 1
            raw_value: Optional[str] = None
            shown_value: Optional[str] = None
            if column < len(row.raw) and not self.codec.is_comment(row.raw[column]):
                raw_value = row.raw[column]
                shown_value = row.shown[column]
                column += 1
            comments = self._trailing_comments(row, column)

            item: Optional[Node] = None
            if raw_value is None and nested_end > index + 1:
                item = self._parse_region(rows, index + 1, nested_end)
            elif nested_end > index + 1:
                logger.warning(
                    "Indented rows under a scalar item skipped",
                    extra={"row": row.number, "skipped": nested_end - index - 1},
                )
            if item is None:
                item = ScalarNode(self._scalar(raw_value))
                self._restore(shown_value, item)
            item.block_comments[:0] = pending
            pending = []
            item.inline_comments.extend(comments)
            sequence.items.append(item)
            index = nested_end
        sequence.end_comments.extend(pending)
        return sequence


__all__ = ["YamlWorkbookReader"]
