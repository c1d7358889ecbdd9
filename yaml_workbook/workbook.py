"""openpyxl primitives used by the writer, the reader and the dropdown codec."""

# Module responsibilities:
# - Create, order and hide sheets; write text cells with attached comments.
# - Normalize typed cell values back to text.
# - Create and resolve list validations and workbook-level named ranges.
# - Wrap openpyxl failures in ConversionError with the cell or file involved.

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any, List, Optional, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import Cell
from openpyxl.comments import Comment
from openpyxl.styles import PatternFill
from openpyxl.utils.exceptions import IllegalCharacterError, InvalidFileException
from openpyxl.workbook.defined_name import DefinedName
from openpyxl.worksheet.datavalidation import DataValidation
from openpyxl.worksheet.worksheet import Worksheet

from .errors import ConversionError

COMMENT_AUTHOR = "yaml-workbook"
HIGHLIGHT_FILL = PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid")
MAX_EXPLICIT_LIST_LENGTH = 255


def new_workbook(first_title: str) -> Workbook:
    """Return an empty workbook whose only sheet is named ``first_title``."""

    workbook = Workbook()
    workbook.active.title = first_title
    return workbook


def visible_sheets(workbook: Workbook) -> List[Worksheet]:
    return [ws for ws in workbook.worksheets if ws.sheet_state == "visible"]


def create_hidden_sheet(workbook: Workbook, title: str, after: Worksheet) -> Worksheet:
    """Insert a hidden sheet directly after ``after``."""

    index = workbook.worksheets.index(after) + 1
    sheet = workbook.create_sheet(title=title, index=index)
    sheet.sheet_state = "hidden"
    return sheet


def write_cell(
    sheet: Worksheet,
    row: int,
    column: int,
    value: Optional[str],
    note: Optional[str] = None,
    *,
    highlight: bool = False,
) -> Cell:
    """Write text (1-based coordinates) with an optional attached comment.

    Args:
        sheet: Target worksheet.
        row: 1-based row number.
        column: 1-based column number.
        value: Cell text; ``None`` leaves the cell blank.
        note: Attached comment text.
        highlight: Fill the cell with the highlight colour.

    Returns:
        The written cell.

    Raises:
        ConversionError: When openpyxl rejects the value.
    """

    cell = sheet.cell(row=row, column=column)
    try:
        cell.value = value
        if value is not None and value.startswith("="):
            cell.data_type = "s"
        if note is not None:
            attach_note(cell, note)
    except (IllegalCharacterError, ValueError, TypeError) as exc:
        raise ConversionError(
            f"Cannot write {sheet.title}!{cell.coordinate}: {exc}"
        ) from exc
    if highlight:
        cell.fill = HIGHLIGHT_FILL
    return cell


def attach_note(cell: Cell, note: str) -> None:
    """Attach ``note`` to ``cell`` as a cell comment, replacing any previous one."""

    cell.comment = Comment(note, COMMENT_AUTHOR)


def cell_text(value: Any) -> Optional[str]:
    """Normalize a typed cell value to text; blank and empty strings become ``None``."""

    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    text = str(value)
    return text if text else None


def cell_note(cell: Cell) -> Optional[str]:
    comment = getattr(cell, "comment", None)
    if comment is None or comment.text is None:
        return None
    return comment.text


def _explicit_list_formula(options: Sequence[str]) -> str:
    return '"' + ",".join(options).replace('"', '""') + '"'


def add_list_validation(sheet: Worksheet, cell: Cell, formula: str) -> DataValidation:
    """Constrain ``cell`` to the list described by ``formula``."""

    validation = DataValidation(type="list", formula1=formula, allow_blank=True)
    sheet.add_data_validation(validation)
    validation.add(cell)
    return validation


def add_explicit_list(sheet: Worksheet, cell: Cell, options: Sequence[str]) -> DataValidation:
    return add_list_validation(sheet, cell, _explicit_list_formula(options))


def _quote_sheet(title: str) -> str:
    return "'" + title.replace("'", "''") + "'"


def define_column_range(
    workbook: Workbook, name: str, sheet: Worksheet, first_row: int, last_row: int
) -> str:
    """Define ``name`` as column A rows ``first_row..last_row`` of ``sheet``."""

    reference = f"{_quote_sheet(sheet.title)}!$A${first_row}:$A${last_row}"
    workbook.defined_names[name] = DefinedName(name, attr_text=reference)
    return reference


def _range_values(workbook: Workbook, reference: str) -> Optional[List[Optional[str]]]:
    if "!" not in reference:
        return None
    sheet_part, cells = reference.rsplit("!", 1)
    title = sheet_part.strip()
    if title.startswith("'") and title.endswith("'"):
        title = title[1:-1].replace("''", "'")
    if title not in workbook.sheetnames:
        return None
    selected = workbook[title][cells.replace("$", "")]
    if isinstance(selected, Cell):
        return [cell_text(selected.value)]
    values: List[Optional[str]] = []
    for row in selected:
        cells_in_row = row if isinstance(row, tuple) else (row,)
        values.extend(cell_text(cell.value) for cell in cells_in_row)
    return values


def named_range_values(workbook: Workbook, name: str) -> Optional[List[Optional[str]]]:
    """Resolve a workbook-level defined name to the texts of the cells it covers."""

    defined = workbook.defined_names.get(name)
    if defined is None or not defined.attr_text:
        return None
    return _range_values(workbook, defined.attr_text)


def validation_options(
    workbook: Workbook, sheet: Worksheet, coordinate: str
) -> Optional[List[Optional[str]]]:
    """Return the list options constraining ``coordinate``, if any."""

    for validation in sheet.data_validations.dataValidation:
        if validation.type != "list" or not validation.formula1:
            continue
        if coordinate not in validation.sqref:
            continue
        formula = validation.formula1.strip()
        if formula.startswith('"') and formula.endswith('"'):
            return formula[1:-1].replace('""', '"').split(",")
        formula = formula.lstrip("=")
        if "!" in formula:
            return _range_values(workbook, formula)
        return named_range_values(workbook, formula)
    return None


def load(path: Path) -> Workbook:
    """Load a workbook from ``path``.

    Raises:
        FileNotFoundError: When ``path`` does not exist.
        ConversionError: When openpyxl cannot read the file.
    """

    if not path.exists():
        raise FileNotFoundError(f"Workbook not found: {path}")
    try:
        return load_workbook(path)
    except (InvalidFileException, KeyError, ValueError, OSError) as exc:
        raise ConversionError(f"Cannot read workbook {path}: {exc}") from exc


def save(workbook: Workbook, path: Path) -> Path:
    """Save ``workbook`` to ``path``, creating parent directories."""

    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        workbook.save(path)
    except (OSError, ValueError, TypeError) as exc:
        raise ConversionError(f"Cannot save workbook {path}: {exc}") from exc
    return path


__all__ = [
    "COMMENT_AUTHOR",
    "MAX_EXPLICIT_LIST_LENGTH",
    "new_workbook",
    "visible_sheets",
    "create_hidden_sheet",
    "write_cell",
    "attach_note",
    "cell_text",
    "cell_note",
    "add_list_validation",
    "add_explicit_list",
    "define_column_range",
    "named_range_values",
    "validation_options",
    "load",
    "save",
]
