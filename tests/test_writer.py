"""Grid layout produced by the writer."""

# Module responsibilities:
# - Pin the row layout of both indentation strategies.
# - Check escaping, multi-document regions and sheet placement.
# - Assert that per-call state never leaks between calls.

from __future__ import annotations

from typing import List, Optional

import pytest

from yaml_workbook.config import OutputMode
from yaml_workbook.errors import ConfigurationError, ConversionError, MalformedInputError
from yaml_workbook.indentation import CellOffsetStrategy, PrefixMarkerStrategy
from yaml_workbook.nodes import MappingNode, ScalarNode
from yaml_workbook.writer import YamlWorkbookWriter


def _rows(sheet) -> List[List[Optional[str]]]:
    rows = []
    for row in sheet.iter_rows():
        values = [cell.value for cell in row]
        while values and values[-1] is None:
            values.pop()
        rows.append(values)
    return rows


def test_flat_mapping_cell_offset_layout() -> None:
    workbook = YamlWorkbookWriter().to_workbook("name: John\nage: 30\n")
    assert _rows(workbook.active) == [["---"], ["name", "John"], ["age", "30"]]


def test_nested_mapping_prefix_layout() -> None:
    writer = YamlWorkbookWriter(indentation=PrefixMarkerStrategy())
    workbook = writer.to_workbook("person:\n  city: NYC\n")
    assert _rows(workbook.active) == [["---"], ["person"], ["1>", "city", "NYC"]]


def test_nested_mapping_cell_offset_with_wider_levels() -> None:
    writer = YamlWorkbookWriter(indentation=CellOffsetStrategy(cells_per_level=2))
    workbook = writer.to_workbook("a:\n  b:\n    c: d\n")
    assert _rows(workbook.active) == [
        ["---"],
        ["a"],
        [None, None, "b"],
        [None, None, None, None, "c", "d"],
    ]


def test_comment_lookalike_value_is_escaped() -> None:
    workbook = YamlWorkbookWriter().write_nodes([ScalarNode("# Look like a comment")])
    assert _rows(workbook.active) == [["---"], ["\\# Look like a comment"]]


def test_sequence_layout_with_nested_items() -> None:
    text = "tags:\n  - red\n  - name: blue\n    code: 2\n"
    workbook = YamlWorkbookWriter().to_workbook(text)
    assert _rows(workbook.active) == [
        ["---"],
        ["tags"],
        [None, "-", "red"],
        [None, "-"],
        [None, None, "name", "blue"],
        [None, None, "code", "2"],
    ]


def test_yaml_oriented_mode_keeps_every_comment() -> None:
    text = "# doc\nname: John # first name\n# trailing\n"
    workbook = YamlWorkbookWriter().to_workbook(text)
    assert _rows(workbook.active) == [
        ["# doc"],
        ["---"],
        ["name", "John", "# first name"],
        ["# trailing"],
    ]


def test_formula_like_values_stay_text() -> None:
    workbook = YamlWorkbookWriter().to_workbook("total: =SUM(A1:A3)\n")
    cell = workbook.active["B2"]
    assert cell.value == "=SUM(A1:A3)"
    assert cell.data_type == "s"


def test_multiple_documents_share_a_sheet() -> None:
    workbook = YamlWorkbookWriter().to_workbook("a: 1\n---\nb: 2\n", "c: 3\n")
    assert _rows(workbook.active) == [
        ["---"],
        ["a", "1"],
        ["---"],
        ["b", "2"],
        ["---"],
        ["c", "3"],
    ]


def test_node_to_sheet_creates_intervening_sheets() -> None:
    writer = YamlWorkbookWriter(
        node_to_sheet=lambda node, index: index * 2,
        sheet_name=lambda index: f"Data{index}",
    )
    workbook = writer.to_workbook("a: 1\n---\nb: 2\n")
    assert workbook.sheetnames == ["Data0", "Data1", "Data2"]
    assert _rows(workbook["Data2"]) == [["---"], ["b", "2"]]
    assert all(not row for row in _rows(workbook["Data1"]))


def test_empty_input_still_has_a_visible_sheet() -> None:
    workbook = YamlWorkbookWriter().to_workbook()
    assert workbook.sheetnames == ["Sheet1"]


def test_reused_writer_produces_identical_workbooks() -> None:
    writer = YamlWorkbookWriter(indentation=PrefixMarkerStrategy())
    text = "a:\n  b: 1\n---\n- x\n"
    first = writer.to_workbook(text)
    second = writer.to_workbook(text)
    assert _rows(first.active) == _rows(second.active)
    assert second.active.max_row == 5


def test_non_scalar_keys_are_rejected() -> None:
    node = MappingNode([(MappingNode([(ScalarNode("a"), ScalarNode("b"))]), ScalarNode("c"))])
    with pytest.raises(ConversionError):
        YamlWorkbookWriter().write_nodes([node])


def test_invalid_yaml_is_malformed_input() -> None:
    with pytest.raises(MalformedInputError):
        YamlWorkbookWriter().to_workbook("a: [1, 2\n")


def test_form_mode_writer_rejects_plain_conversion() -> None:
    writer = YamlWorkbookWriter(output_mode=OutputMode.FORM_MODE, json_schema="{}")
    with pytest.raises(ConfigurationError):
        writer.to_workbook("a: 1\n")


def test_illegal_characters_are_wrapped() -> None:
    with pytest.raises(ConversionError):
        YamlWorkbookWriter().write_nodes([ScalarNode("bad\x01value")])
