"""Enum dropdown encoding through explicit lists, hidden sheets and truncation."""

from __future__ import annotations

from pathlib import Path
from typing import List

from openpyxl import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from yaml_workbook.codec import ValueCodec
from yaml_workbook.dropdown import EnumDropdownCodec, OverflowPolicy, truncate_options
from yaml_workbook.workbook import create_hidden_sheet, load, save, validation_options

VALUES = ["active", "inactive", "pending"]
LABELS = ["Active", "Inactive", "Pending"]


class _Host:
    """Minimal per-call state owning one hidden sheet."""

    def __init__(self, workbook: Workbook) -> None:
        self.workbook = workbook
        self.sheet_index = 0
        self.rows = {}
        self._hidden: Worksheet | None = None

    def hidden_sheet(self) -> Worksheet:
        if self._hidden is None:
            self._hidden = create_hidden_sheet(self.workbook, "Sheet1Hidden", self.workbook.active)
        return self._hidden

    def allocate_hidden_rows(self, sheet: Worksheet, count: int) -> int:
        start = self.rows.get(sheet.title, 1)
        self.rows[sheet.title] = start + count
        return start


def _long_enum(count: int = 300) -> tuple[List[str], List[str]]:
    values = [f"value_{index:03d}" for index in range(count)]
    labels = [f"Label {index:03d}" for index in range(count)]
    return values, labels


def _select(codec: EnumDropdownCodec, workbook: Workbook, coordinate: str, label: str) -> str | None:
    sheet = workbook.active
    cell = sheet[coordinate]
    cell.value = label
    return codec.decode(workbook, sheet, cell, label, cell.comment.text)


def test_labelled_enum_uses_explicit_list() -> None:
    workbook = Workbook()
    codec = EnumDropdownCodec(ValueCodec())
    host = _Host(workbook)
    cell = workbook.active["B2"]
    codec.apply(host, workbook.active, cell, VALUES, LABELS)

    assert cell.comment.text == "ENUM_VALUES:active,inactive,pending"
    assert workbook.sheetnames == ["Sheet"]
    [validation] = workbook.active.data_validations.dataValidation
    assert validation.formula1 == '"Active,Inactive,Pending"'
    assert _select(codec, workbook, "B2", "Active") == "active"
    assert _select(codec, workbook, "B2", "Pending") == "pending"


def test_unlabelled_enum_has_no_comment() -> None:
    workbook = Workbook()
    codec = EnumDropdownCodec(ValueCodec())
    cell = workbook.active["A1"]
    codec.apply(_Host(workbook), workbook.active, cell, VALUES)
    assert cell.comment is None
    assert validation_options(workbook, workbook.active, "A1") == VALUES


def test_long_enum_spills_to_hidden_sheet() -> None:
    workbook = Workbook()
    workbook.active.title = "Sheet1"
    codec = EnumDropdownCodec(ValueCodec(), OverflowPolicy.HIDDEN_SHEET)
    host = _Host(workbook)
    values, labels = _long_enum()
    codec.apply(host, workbook.active, workbook.active["B3"], values, labels)

    assert workbook.sheetnames == ["Sheet1", "Sheet1Hidden"]
    hidden = workbook["Sheet1Hidden"]
    assert hidden.sheet_state == "hidden"
    assert hidden["A1"].value == "Label 000"
    assert hidden["A300"].value == "Label 299"
    assert "Enum_0_3_2" in workbook.defined_names
    assert _select(codec, workbook, "B3", "Label 250") == "value_250"


def test_hidden_sheet_rows_are_allocated_per_list() -> None:
    workbook = Workbook()
    workbook.active.title = "Sheet1"
    codec = EnumDropdownCodec(ValueCodec(), OverflowPolicy.HIDDEN_SHEET)
    host = _Host(workbook)
    values, labels = _long_enum()
    codec.apply(host, workbook.active, workbook.active["B1"], values, labels)
    codec.apply(host, workbook.active, workbook.active["B2"], values[:100], labels[:100])

    assert workbook["Sheet1Hidden"]["A301"].value == "Label 000"
    assert _select(codec, workbook, "B2", "Label 099") == "value_099"


def test_hidden_sheet_lists_survive_save(tmp_path: Path) -> None:
    workbook = Workbook()
    workbook.active.title = "Sheet1"
    codec = EnumDropdownCodec(ValueCodec(), OverflowPolicy.HIDDEN_SHEET)
    values, labels = _long_enum()
    codec.apply(_Host(workbook), workbook.active, workbook.active["C4"], values, labels)
    workbook.active["C4"].value = "Label 123"

    reloaded = load(save(workbook, tmp_path / "enum.xlsx"))
    cell = reloaded.active["C4"]
    assert codec.decode(reloaded, reloaded.active, cell, "Label 123", cell.comment.text) == "value_123"


def test_long_enum_truncates_with_warning(package_caplog) -> None:
    workbook = Workbook()
    codec = EnumDropdownCodec(ValueCodec(), OverflowPolicy.TRUNCATE)
    values, labels = _long_enum()
    codec.apply(_Host(workbook), workbook.active, workbook.active["A1"], values, labels)

    options = validation_options(workbook, workbook.active, "A1")
    assert options is not None
    assert 0 < len(options) < len(labels)
    assert len(",".join(options)) <= 255
    assert workbook.sheetnames == ["Sheet"]
    assert any(record.levelname == "WARNING" for record in package_caplog.records)
    assert _select(codec, workbook, "A1", options[-1]) == values[len(options) - 1]


def test_labels_with_commas_use_a_range() -> None:
    workbook = Workbook()
    workbook.active.title = "Sheet1"
    codec = EnumDropdownCodec(ValueCodec())
    labels = ["Red, bright", "Blue"]
    codec.apply(_Host(workbook), workbook.active, workbook.active["A1"], ["red", "blue"], labels)
    assert "Sheet1Hidden" in workbook.sheetnames
    assert _select(codec, workbook, "A1", "Red, bright") == "red"


def test_unknown_selection_is_returned_unchanged() -> None:
    workbook = Workbook()
    codec = EnumDropdownCodec(ValueCodec())
    codec.apply(_Host(workbook), workbook.active, workbook.active["A1"], VALUES, LABELS)
    assert _select(codec, workbook, "A1", "Typed by hand") == "Typed by hand"


def test_truncate_options_keeps_longest_fitting_prefix() -> None:
    assert truncate_options(["aa", "bb", "cc"], limit=5) == ["aa", "bb"]
    assert truncate_options(["toolong"], limit=3) == []
