"""Schema-driven form workbooks."""

from __future__ import annotations

import json
from typing import Any, Dict

import pytest

from yaml_workbook.api import form_workbook
from yaml_workbook.config import FormModeConfig, OutputMode
from yaml_workbook.errors import ConfigurationError, MalformedInputError
from yaml_workbook.nodes import to_plain
from yaml_workbook.reader import YamlWorkbookReader
from yaml_workbook.schema import SchemaNavigator, format_path, load_schema
from yaml_workbook.workbook import HIGHLIGHT_FILL
from yaml_workbook.writer import YamlWorkbookWriter

SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string", "title": "Full name"},
        "status": {
            "type": "string",
            "title": "Status",
            "enum": ["active", "inactive", "pending"],
            "enumNames": ["Active", "Inactive", "Pending"],
            "default": "pending",
        },
        "address": {"$ref": "#/definitions/address"},
        "tags": {"type": "array", "items": {"type": "string", "enum": ["red", "blue"]}},
    },
    "definitions": {
        "address": {
            "type": "object",
            "properties": {"city": {"type": "string", "title": "City"}},
            "allOf": [{"properties": {"zip": {"type": "string"}}}],
        }
    },
}


def _writer(**form: Any) -> YamlWorkbookWriter:
    return YamlWorkbookWriter(
        output_mode=OutputMode.FORM_MODE,
        json_schema=json.dumps(SCHEMA),
        form_config=FormModeConfig(**form),
    )


def _form_reader() -> YamlWorkbookReader:
    return YamlWorkbookReader(output_mode=OutputMode.FORM_MODE)


def _values(workbook) -> list:
    return [[cell.value for cell in row] for row in workbook.active.iter_rows()]


def test_missing_schema_is_a_configuration_error() -> None:
    writer = YamlWorkbookWriter(output_mode=OutputMode.FORM_MODE)
    with pytest.raises(ConfigurationError):
        writer.to_form_workbook()


def test_wrong_mode_is_a_configuration_error() -> None:
    writer = YamlWorkbookWriter(json_schema=json.dumps(SCHEMA))
    with pytest.raises(ConfigurationError):
        writer.to_form_workbook()


@pytest.mark.parametrize("schema", ["{not json", "[1, 2]", json.dumps({"type": 12})])
def test_malformed_schema(schema: str) -> None:
    writer = YamlWorkbookWriter(output_mode=OutputMode.FORM_MODE, json_schema=schema)
    with pytest.raises(MalformedInputError):
        writer.to_form_workbook()


def test_skeleton_layout_uses_titles_and_defaults() -> None:
    sheet = _writer().to_form_workbook().active
    assert sheet["A1"].value == "---"
    assert sheet["A2"].value == "Full name"
    assert sheet["A2"].comment.text == "name"
    assert sheet["A3"].value == "Status"
    assert sheet["B3"].value == "Pending"
    assert sheet["B3"].comment.text == "ENUM_VALUES:active,inactive,pending"
    assert sheet["A4"].value == "address"
    assert sheet["B5"].value == "City"
    assert sheet["B6"].value == "zip"
    assert sheet["A7"].value == "tags"
    assert sheet["B8"].value == "-"


def test_skeleton_reads_back_with_true_keys_and_values() -> None:
    workbook = _writer().to_form_workbook()
    [document] = _form_reader().from_workbook(workbook)
    assert to_plain(document) == {
        "name": None,
        "status": "pending",
        "address": {"city": None, "zip": None},
        "tags": [None],
    }


def test_filled_form_decodes_selected_label() -> None:
    workbook = _writer().to_form_workbook()
    sheet = workbook.active
    sheet["B2"].value = "Jane"
    sheet["B3"].value = "Active"
    sheet["C8"].value = "blue"
    [document] = _form_reader().from_workbook(workbook)
    plain = to_plain(document)
    assert plain["name"] == "Jane"
    assert plain["status"] == "active"
    assert plain["tags"] == ["blue"]


def test_prefilled_form_from_yaml() -> None:
    workbook = _writer().to_form_workbook("name: Joe\nstatus: inactive\ntags:\n  - red\n  - blue\n")
    sheet = workbook.active
    assert sheet["B3"].value == "Inactive"
    [document] = _form_reader().from_workbook(workbook)
    assert to_plain(document) == {"name": "Joe", "status": "inactive", "tags": ["red", "blue"]}


def test_required_keys_are_highlighted() -> None:
    sheet = _writer(highlight_required=True).to_form_workbook().active
    assert sheet["A2"].fill.fgColor.rgb == HIGHLIGHT_FILL.fgColor.rgb
    assert sheet["A3"].fill.fill_type is None


def test_skip_all_of_drops_merged_properties() -> None:
    sheet = _writer(skip_all_of=True).to_form_workbook().active
    assert sheet["B5"].value == "City"
    assert sheet["A6"].value == "tags"


def test_long_enums_use_hidden_sheet_when_enabled() -> None:
    schema = {
        "type": "object",
        "properties": {
            "code": {
                "enum": [f"code_{index:03d}" for index in range(300)],
                "enumNames": [f"Code {index:03d}" for index in range(300)],
            }
        },
    }
    workbook = form_workbook(
        schema, form_config={"use_hidden_sheets_for_long_enums": True}
    )
    assert workbook.sheetnames == ["Sheet1", "Sheet1Hidden"]
    workbook.active["B2"].value = "Code 200"
    [document] = _form_reader().from_workbook(workbook)
    assert to_plain(document) == {"code": "code_200"}


def test_reused_form_writer_is_stateless() -> None:
    writer = _writer(use_hidden_sheets_for_long_enums=True)
    first = writer.to_form_workbook()
    second = writer.to_form_workbook()
    assert first.sheetnames == second.sheetnames
    assert _values(first) == _values(second)


def test_navigator_resolves_refs_and_items() -> None:
    navigator = SchemaNavigator(load_schema(SCHEMA))
    assert navigator.fragment_for(("$", "address", "zip")) == {"type": "string"}
    assert navigator.fragment_for(("$", "tags", "[*]"))["enum"] == ["red", "blue"]
    assert navigator.fragment_for(("$", "missing")) is None
    assert format_path(("$", "tags", "[*]", "name")) == "$.tags[*].name"


def test_recursive_refs_stop_the_skeleton() -> None:
    schema = {
        "definitions": {
            "node": {
                "type": "object",
                "properties": {"label": {"type": "string"}, "child": {"$ref": "#/definitions/node"}},
            }
        },
        "$ref": "#/definitions/node",
    }
    skeleton = SchemaNavigator(load_schema(schema)).skeleton()
    assert to_plain(skeleton) == {"label": None, "child": None}


def test_nested_object_skeleton_reads_back_as_mapping() -> None:
    schema = {
        "type": "object",
        "properties": {
            "person": {"type": "object", "properties": {"name": {"type": "string"}}},
        },
    }
    workbook = form_workbook(schema)
    assert _values(workbook) == [["---", None], ["person", None], [None, "name"]]
    [document] = _form_reader().from_workbook(workbook)
    assert to_plain(document) == {"person": {"name": None}}


def test_marker_like_enum_values_survive_the_dropdown() -> None:
    schema = {
        "type": "object",
        "properties": {
            "color": {"enum": ["#fff", "#000"]},
            "path": {"enum": ["\\root", "plain"]},
            "n": {"type": "string"},
        },
    }
    workbook = form_workbook(schema, "color: '#fff'\npath: '\\root'\nn: x\n")
    sheet = workbook.active
    assert sheet["B2"].value == "#fff"
    assert sheet["B2"].comment.text == "ENUM_VALUES:#fff,#000"
    assert sheet["B3"].value == "\\root"
    assert sheet["B3"].comment.text.startswith("ENUM_VALUES:")

    [document] = _form_reader().from_workbook(workbook)
    assert to_plain(document) == {"color": "#fff", "path": "\\root", "n": "x"}

    sheet["B2"].value = "#000"
    [edited] = _form_reader().from_workbook(workbook)
    assert to_plain(edited)["color"] == "#000"


def test_plain_enum_values_keep_a_bare_dropdown() -> None:
    sheet = form_workbook(
        {"type": "object", "properties": {"size": {"enum": ["s", "m"]}}}, "size: m\n"
    ).active
    assert sheet["B2"].value == "m"
    assert sheet["B2"].comment is None
