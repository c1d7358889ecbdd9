"""Enumerated-value dropdown cells."""

# Module responsibilities:
# - Turn enum values (and optional display labels) into list validations.
# - Keep true values recoverable through an index-coded attached comment.
# - Apply the overflow policy when the option list is too long for an explicit list.
# - Map a displayed selection back to its true value.

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Protocol, Sequence

from openpyxl import Workbook
from openpyxl.cell.cell import Cell
from openpyxl.worksheet.worksheet import Worksheet

from .codec import ValueCodec
from .workbook import (
    MAX_EXPLICIT_LIST_LENGTH,
    add_explicit_list,
    add_list_validation,
    attach_note,
    define_column_range,
    validation_options,
    write_cell,
)
from .utils.log import get_logger

logger = get_logger("dropdown")


class OverflowPolicy(str, Enum):
    """What to do with option lists longer than an explicit list allows."""

    TRUNCATE = "truncate"
    HIDDEN_SHEET = "hidden_sheet"


class HiddenSheetHost(Protocol):
    """Per-call writer state that owns hidden sheets and their row cursors."""

    workbook: Workbook
    sheet_index: int

    def hidden_sheet(self) -> Worksheet:
        """Return (creating on first use) the hidden sheet of the current visible sheet."""

    def allocate_hidden_rows(self, sheet: Worksheet, count: int) -> int:
        """Reserve ``count`` rows on ``sheet`` and return the first 1-based row."""


def truncate_options(
    options: Sequence[str], limit: int = MAX_EXPLICIT_LIST_LENGTH
) -> List[str]:
    """Longest prefix of ``options`` whose comma-joined length fits ``limit``."""

    kept: List[str] = []
    length = 0
    for option in options:
        extra = len(option) + (1 if kept else 0)
        if length + extra > limit:
            break
        kept.append(option)
        length += extra
    return kept


class EnumDropdownCodec:
    """Encode enum cells as list validations and decode selections back."""

    def __init__(
        self,
        codec: ValueCodec,
        overflow: OverflowPolicy = OverflowPolicy.TRUNCATE,
        limit: int = MAX_EXPLICIT_LIST_LENGTH,
    ) -> None:
        self.codec = codec
        self.overflow = overflow
        self.limit = limit

    def apply(
        self,
        host: HiddenSheetHost,
        sheet: Worksheet,
        cell: Cell,
        values: Sequence[str],
        labels: Optional[Sequence[str]] = None,
    ) -> None:
        """Constrain ``cell`` to ``values``, displayed as ``labels`` when given.

        Args:
            host: Per-call state providing the hidden sheet for overflow lists.
            sheet: Visible sheet holding ``cell``.
            cell: Cell receiving the validation.
            values: True enum values.
            labels: Optional display labels, parallel to ``values``.
        """

        if not values:
            return
        options = list(labels) if labels else list(values)
        if labels:
            attach_note(cell, self.codec.enum_comment(values))

        joined_length = len(",".join(options))
        needs_range = any("," in option for option in options)
        if joined_length <= self.limit and not needs_range:
            add_explicit_list(sheet, cell, options)
            return
        if self.overflow is OverflowPolicy.HIDDEN_SHEET or needs_range:
            self._apply_hidden_range(host, sheet, cell, options)
            return

        kept = truncate_options(options, self.limit)
        logger.warning(
            "Dropdown truncated from %d to %d options",
            len(options),
            len(kept),
            extra={"sheet": sheet.title, "cell": cell.coordinate},
        )
        if kept:
            add_explicit_list(sheet, cell, kept)

    def _apply_hidden_range(
        self, host: HiddenSheetHost, sheet: Worksheet, cell: Cell, options: Sequence[str]
    ) -> None:
        hidden = host.hidden_sheet()
        start = host.allocate_hidden_rows(hidden, len(options))
        for offset, option in enumerate(options):
            write_cell(hidden, start + offset, 1, option)
        name = f"Enum_{host.sheet_index}_{cell.row}_{cell.column}"
        reference = define_column_range(
            host.workbook, name, hidden, start, start + len(options) - 1
        )
        add_list_validation(sheet, cell, name)
        logger.info(
            "Dropdown options stored on hidden sheet",
            extra={"cell": cell.coordinate, "range": reference, "options": len(options)},
        )

    def decode(
        self, workbook: Workbook, sheet: Worksheet, cell: Cell, displayed: Optional[str], comment: str
    ) -> Optional[str]:
        """Map the displayed selection of ``cell`` to its true value.

        The displayed text is located in the cell's option list and the value at
        the same index is taken from the enum comment. Selections that are not
        found are returned unchanged.
        """

        if displayed is None:
            return None
        values = self.codec.enum_comment_values(comment)
        options = validation_options(workbook, sheet, cell.coordinate) or []
        try:
            index = options.index(displayed)
        except ValueError:
            return displayed
        return values[index] if index < len(values) else displayed


__all__ = ["OverflowPolicy", "EnumDropdownCodec", "HiddenSheetHost", "truncate_options"]
