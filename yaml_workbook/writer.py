"""Tree to grid conversion."""

# Module responsibilities:
# - Lay out document trees as indented rows on visible sheets, one region per document.
# - Apply the comment placement policy at every structural juncture.
# - Build schema-driven form workbooks with titled keys and enum dropdown cells.
# - Keep all accumulation state (sheets, row cursors, hidden sheets) local to one call.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Type, TypeVar, Union

from openpyxl import Workbook
from openpyxl.worksheet.worksheet import Worksheet
from pydantic import BaseModel, ValidationError

from .codec import ValueCodec
from .comments import DisplayModeConfig, Placement, resolve_placement
from .config import FormModeConfig, OutputMode
from .dropdown import EnumDropdownCodec, OverflowPolicy
from .errors import ConfigurationError, ConversionError
from .indentation import CellOffsetStrategy, IndentationStrategy
from .nodes import CommentType, MappingNode, Node, ScalarNode, SequenceNode
from .schema import ITEMS, ROOT, SchemaNavigator, SchemaPath, SchemaSource, format_path, load_schema
from .syntax import (
    DEFAULT_SYNTAX,
    SheetNamer,
    SheetSelector,
    WorkbookSyntax,
    default_node_to_sheet,
    default_sheet_name,
)
from .workbook import create_hidden_sheet, new_workbook, write_cell
from .yaml_io import YamlSource, compose_documents
from .utils.log import get_logger

logger = get_logger("writer")

_ALL_COMMENTS = DisplayModeConfig.all_comments()
_INLINE = (CommentType.KEY, CommentType.VALUE)
_Options = TypeVar("_Options", bound=BaseModel)


@dataclass(slots=True)
class _Cell:
    text: Optional[str]
    note: Optional[str] = None
    highlight: bool = False
    enum_values: Optional[List[str]] = None
    enum_labels: Optional[List[str]] = None


@dataclass
class _WriteContext:
    """Accumulation state of one ``to_workbook`` call."""

    workbook: Workbook
    sheet_name: SheetNamer
    syntax: WorkbookSyntax
    dropdown: EnumDropdownCodec
    navigator: Optional[SchemaNavigator] = None
    highlight_required: bool = False
    sheets: List[Worksheet] = field(default_factory=list)
    hidden: Dict[int, Worksheet] = field(default_factory=dict)
    next_rows: Dict[str, int] = field(default_factory=dict)
    sheet_index: int = 0

    @property
    def sheet(self) -> Worksheet:
        return self.sheets[self.sheet_index]

    def select(self, index: int) -> Worksheet:
        if index < 0:
            raise ConversionError(f"Sheet index must not be negative: {index}")
        while len(self.sheets) <= index:
            title = self.sheet_name(len(self.sheets))
            try:
                self.sheets.append(self.workbook.create_sheet(title=title))
            except ValueError as exc:
                raise ConversionError(f"Cannot create sheet {title!r}: {exc}") from exc
        self.sheet_index = index
        return self.sheet

    def next_row(self) -> int:
        title = self.sheet.title
        row = self.next_rows.get(title, 1)
        self.next_rows[title] = row + 1
        return row

    def hidden_sheet(self) -> Worksheet:
        if self.sheet_index not in self.hidden:
            title = self.sheet.title + self.syntax.hidden_sheet_suffix
            try:
                self.hidden[self.sheet_index] = create_hidden_sheet(self.workbook, title, self.sheet)
            except ValueError as exc:
                raise ConversionError(f"Cannot create hidden sheet {title!r}: {exc}") from exc
        return self.hidden[self.sheet_index]

    def allocate_hidden_rows(self, sheet: Worksheet, count: int) -> int:
        start = self.next_rows.get(sheet.title, 1)
        self.next_rows[sheet.title] = start + count
        return start

    def fragment(self, path: SchemaPath) -> Optional[Dict[str, Any]]:
        if self.navigator is None:
            return None
        return self.navigator.fragment_for(path)


class YamlWorkbookWriter:
    """Convert YAML documents into a workbook.

    Attributes:
        output_mode: Layout family; ``FORM_MODE`` builds from a JSON schema.
        strategy: Indentation strategy shared with the matching reader.
        syntax: Marker tokens.
        display_config: Comment options applied in ``DISPLAY_MODE``.
        form_config: Options applied in ``FORM_MODE``.
        json_schema: Schema text or mapping for ``FORM_MODE``.
    """

    def __init__(
        self,
        *,
        output_mode: OutputMode | str = OutputMode.YAML_ORIENTED,
        indentation: Optional[IndentationStrategy] = None,
        syntax: WorkbookSyntax = DEFAULT_SYNTAX,
        display_config: Union[DisplayModeConfig, Mapping[str, Any], None] = None,
        form_config: Union[FormModeConfig, Mapping[str, Any], None] = None,
        json_schema: Optional[SchemaSource] = None,
        sheet_name: SheetNamer = default_sheet_name,
        node_to_sheet: SheetSelector = default_node_to_sheet,
    ) -> None:
        self.output_mode = OutputMode(output_mode)
        self.strategy = indentation or CellOffsetStrategy()
        self.syntax = syntax
        self.display_config = _options(DisplayModeConfig, display_config)
        self.form_config = _options(FormModeConfig, form_config)
        self.json_schema = json_schema
        self.sheet_name = sheet_name
        self.node_to_sheet = node_to_sheet
        self.codec = ValueCodec(syntax, self.strategy)

    # ------------------------------------------------------------------ public API

    def to_workbook(self, *sources: YamlSource) -> Workbook:
        """Compose YAML sources and write every document into a new workbook.

        Args:
            sources: YAML texts or text streams, each holding zero or more documents.

        Returns:
            The populated workbook; it always holds at least one visible sheet.

        Raises:
            ConfigurationError: When the writer is configured for form mode.
            MalformedInputError: When a source is not valid YAML.
            ConversionError: When openpyxl rejects a sheet or cell.
        """

        if self.output_mode is OutputMode.FORM_MODE:
            raise ConfigurationError("Form mode workbooks are built with to_form_workbook()")
        nodes: List[Node] = []
        for source in sources:
            nodes.extend(compose_documents(source))
        return self.write_nodes(nodes)

    def write_nodes(self, nodes: Sequence[Node]) -> Workbook:
        """Write already composed document trees into a new workbook."""

        context = self._new_context()
        for index, node in enumerate(nodes):
            self._write_document(context, index, node)
        logger.info(
            "Workbook written",
            extra={
                "mode": self.output_mode.value,
                "documents": len(nodes),
                "sheets": len(context.sheets),
            },
        )
        return context.workbook

    def to_form_workbook(self, *sources: YamlSource) -> Workbook:
        """Build a data-collection workbook from the configured JSON schema.

        Without sources a blank skeleton generated from the schema is written;
        with sources their documents are written using the schema's titles and
        enum dropdowns.

        Raises:
            ConfigurationError: When the writer is not in form mode or has no schema.
            MalformedInputError: When the schema cannot be parsed or is invalid.
        """

        if self.output_mode is not OutputMode.FORM_MODE:
            raise ConfigurationError(
                f"to_form_workbook() requires form_mode, writer is in {self.output_mode.value}"
            )
        if self.json_schema is None:
            raise ConfigurationError("Form mode requires a JSON schema")

        schema = load_schema(self.json_schema)
        navigator = SchemaNavigator(schema, skip_all_of=self.form_config.skip_all_of)
        nodes: List[Node] = []
        for source in sources:
            nodes.extend(compose_documents(source))
        if not nodes:
            nodes = [navigator.skeleton()]

        context = self._new_context(navigator)
        for index, node in enumerate(nodes):
            self._write_document(context, index, node)
        logger.info(
            "Form workbook written",
            extra={"documents": len(nodes), "hidden_sheets": len(context.hidden)},
        )
        return context.workbook

    # ------------------------------------------------------------------ context

    def _new_context(self, navigator: Optional[SchemaNavigator] = None) -> _WriteContext:
        overflow = (
            OverflowPolicy.HIDDEN_SHEET
            if self.form_config.use_hidden_sheets_for_long_enums
            else OverflowPolicy.TRUNCATE
        )
        workbook = new_workbook(self.sheet_name(0))
        return _WriteContext(
            workbook=workbook,
            sheet_name=self.sheet_name,
            syntax=self.syntax,
            dropdown=EnumDropdownCodec(self.codec, overflow),
            navigator=navigator,
            highlight_required=navigator is not None and self.form_config.highlight_required,
            sheets=[workbook.active],
        )

    def _placement(self, category: CommentType, comments: Sequence[str]) -> Placement:
        options = self.display_config if self.output_mode is OutputMode.DISPLAY_MODE else _ALL_COMMENTS
        placement = resolve_placement(category, options.option_for(category), bool(comments))
        if placement is Placement.SWAP and category in _INLINE and not comments[0].strip():
            return Placement.SKIP
        return placement

    # ------------------------------------------------------------------ rows

    def _write_row(self, context: _WriteContext, level: int, cells: Sequence[_Cell]) -> None:
        sheet = context.sheet
        row = context.next_row()
        marker_column = self.strategy.marker_column(level)
        if marker_column is not None:
            write_cell(sheet, row, marker_column + 1, self.strategy.encode(level))
        start = self.strategy.content_column(level)
        for offset, spec in enumerate(cells):
            if spec.text is None and spec.note is None and not spec.enum_values:
                continue
            cell = write_cell(
                sheet, row, start + offset + 1, spec.text, spec.note, highlight=spec.highlight
            )
            if spec.enum_values:
                context.dropdown.apply(context, sheet, cell, spec.enum_values, spec.enum_labels)

    def _write_comments(
        self,
        context: _WriteContext,
        level: int,
        category: CommentType,
        comments: Sequence[str],
    ) -> None:
        placement = self._placement(category, comments)
        if placement is Placement.SKIP:
            return
        for text in comments:
            if placement is Placement.SWAP:
                cell = _Cell(text.strip() or None, note=self.codec.comment_cell(text))
            else:
                cell = _Cell(self.codec.comment_cell(text))
            self._write_row(context, level, [cell])

    def _comment_cells(self, comments: Sequence[str]) -> List[_Cell]:
        return [_Cell(self.codec.comment_cell(text)) for text in comments]

    # ------------------------------------------------------------------ traversal

    def _write_document(self, context: _WriteContext, index: int, root: Node) -> None:
        context.select(self.node_to_sheet(root, index))
        if self._placement(CommentType.DOCUMENT, root.block_comments) is Placement.EMIT:
            for text in root.block_comments:
                self._write_row(context, 0, [_Cell(self.codec.comment_cell(text))])
        self._write_row(context, 0, [_Cell(self.syntax.frontmatter)])

        path: SchemaPath = (ROOT,)
        if isinstance(root, ScalarNode):
            self._write_row(context, 0, [self._value_cell(context, root, path)])
            trailing = list(root.inline_comments) + list(root.end_comments)
            self._write_comments(context, 0, CommentType.DOCUMENT, trailing)
        else:
            self._write_collection(context, root, 0, CommentType.DOCUMENT, path, own_block=False)

    def _write_collection(
        self,
        context: _WriteContext,
        node: Union[MappingNode, SequenceNode],
        level: int,
        category: CommentType,
        path: SchemaPath,
        *,
        own_block: bool,
    ) -> None:
        if own_block:
            self._write_comments(context, level, category, node.block_comments)
        if isinstance(node, MappingNode):
            self._write_mapping(context, node, level, path)
        else:
            self._write_sequence(context, node, level, path)
        self._write_comments(context, level, category, node.end_comments)

    def _write_mapping(
        self, context: _WriteContext, node: MappingNode, level: int, path: SchemaPath
    ) -> None:
        fragment = context.fragment(path) if context.highlight_required else None
        required = set((fragment or {}).get("required") or [])
        for key, value in node.entries:
            if not isinstance(key, ScalarNode) or not key.value:
                raise ConversionError(
                    f"Mapping keys must be non-empty scalars (at {format_path(path)})"
                )
            self._write_comments(context, level, CommentType.KEY_VALUE_PAIR, key.block_comments)
            child_path = path + (key.value,)
            cells = self._key_cells(context, key, child_path, highlight=key.value in required)
            if isinstance(value, ScalarNode):
                cells.extend(self._mapping_value_cells(context, value, child_path))
                self._write_row(context, level, cells)
                continue
            self._write_row(context, level, cells)
            category = CommentType.MAPPING if isinstance(value, MappingNode) else CommentType.SEQUENCE
            self._write_collection(context, value, level + 1, category, child_path, own_block=True)

    def _write_sequence(
        self, context: _WriteContext, node: SequenceNode, level: int, path: SchemaPath
    ) -> None:
        child_path = path + (ITEMS,)
        for item in node.items:
            self._write_comments(context, level, CommentType.ITEM, item.block_comments)
            trailing: List[_Cell] = []
            if self._placement(CommentType.ITEM, item.inline_comments) is Placement.EMIT:
                trailing = self._comment_cells(item.inline_comments)
            cells = [_Cell(self.syntax.item_mark)]
            if isinstance(item, ScalarNode):
                cells.append(self._value_cell(context, item, child_path))
                self._write_row(context, level, cells + trailing)
                continue
            self._write_row(context, level, cells + trailing)
            self._write_collection(
                context, item, level + 1, CommentType.ITEM, child_path, own_block=False
            )

    # ------------------------------------------------------------------ cells

    def _key_cells(
        self, context: _WriteContext, key: ScalarNode, path: SchemaPath, *, highlight: bool
    ) -> List[_Cell]:
        placement = self._placement(CommentType.KEY, key.inline_comments)
        fragment = context.fragment(path)
        title = fragment.get("title") if fragment else None
        if placement is Placement.SWAP:
            shown = key.inline_comments[0].strip()
            cells = [_Cell(shown, note=self.codec.escape_attached(key.value), highlight=highlight)]
        elif isinstance(title, str) and title:
            cells = [_Cell(title, note=self.codec.escape_attached(key.value), highlight=highlight)]
        else:
            cells = [_Cell(self.codec.escape(key.value), highlight=highlight)]
        if placement is Placement.EMIT:
            cells.extend(self._comment_cells(key.inline_comments))
        return cells

    def _mapping_value_cells(
        self, context: _WriteContext, value: ScalarNode, path: SchemaPath
    ) -> List[_Cell]:
        placement = self._placement(CommentType.VALUE, value.inline_comments)
        if placement is Placement.SWAP:
            shown = value.inline_comments[0].strip()
            return [_Cell(shown, note=self.codec.escape_attached(value.value))]
        cells = [self._value_cell(context, value, path)]
        if placement is Placement.EMIT:
            cells.extend(self._comment_cells(value.inline_comments))
        return cells

    def _value_cell(self, context: _WriteContext, value: ScalarNode, path: SchemaPath) -> _Cell:
        fragment = context.fragment(path)
        enum = fragment.get("enum") if fragment else None
        if not isinstance(enum, list) or not enum:
            return _Cell(self.codec.escape(value.value))

        values = [_enum_text(entry) for entry in enum]
        names = fragment.get("enumNames")
        labels: Optional[List[str]] = None
        if isinstance(names, list) and len(names) == len(values):
            labels = [_enum_text(name) for name in names]
        shown = value.value
        if labels is not None and shown in values:
            shown = labels[values.index(shown)]
        elif labels is None and any(
            self.codec.needs_escape(text) for text in values + [shown or ""]
        ):
            # Dropdown text is never escaped; the value list note carries the true value.
            labels = values
        logger.debug(
            "Enum cell",
            extra={"path": format_path(path), "options": len(values), "labelled": labels is not None},
        )
        return _Cell(shown, enum_values=values, enum_labels=labels)


def _options(model: Type[_Options], value: Union[_Options, Mapping[str, Any], None]) -> _Options:
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(dict(value or {}))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid {model.__name__}: {exc}") from exc


def _enum_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


__all__ = ["YamlWorkbookWriter"]
