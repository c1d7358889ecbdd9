"""YAML adapters: comment attribution on compose and the ruamel emitter."""

from __future__ import annotations

import io

import pytest

from yaml_workbook.errors import ConversionError, MalformedInputError
from yaml_workbook.nodes import MappingNode, ScalarNode, SequenceNode, strip_comments, to_plain
from yaml_workbook.yaml_io import compose_documents, emit_documents


def test_comments_attach_by_position() -> None:
    text = (
        "# document\n"
        "name: John # first name\n"
        "# about the address\n"
        "address:\n"
        "  # inner block\n"
        "  city: NYC\n"
        "tags:\n"
        "  - red # warm\n"
        "  # before blue\n"
        "  - blue\n"
        "# the end\n"
    )
    [root] = compose_documents(text)
    assert isinstance(root, MappingNode)
    assert root.block_comments == ["document"]
    assert root.end_comments == ["the end"]

    (name, john), (address_key, address), (_, tags) = root.entries
    assert name.inline_comments == []
    assert john.inline_comments == ["first name"]
    assert address_key.block_comments == ["about the address"]
    assert address.block_comments == ["inner block"]
    assert isinstance(tags, SequenceNode)
    assert tags.items[0].inline_comments == ["warm"]
    assert tags.items[1].block_comments == ["before blue"]


def test_hash_inside_scalars_is_not_a_comment() -> None:
    [root] = compose_documents('a: "x # y"\nb: c#d\nc: \'# q\' # real\n')
    assert to_plain(root) == {"a": "x # y", "b": "c#d", "c": "# q"}
    assert root.get("c").inline_comments == ["real"]
    assert root.get("a").inline_comments == []


def test_key_comment_on_nested_value_line() -> None:
    [root] = compose_documents("person: # Person\n  city: NYC\n")
    (key, value), = root.entries
    assert key.inline_comments == ["Person"]
    assert value.inline_comments == []


def test_comments_between_documents_go_to_the_next_root() -> None:
    documents = compose_documents("a: 1\n# between\n---\nb: 2\n")
    assert len(documents) == 2
    assert documents[0].end_comments == []
    assert documents[1].block_comments == ["between"]


def test_nulls_and_stream_input() -> None:
    [root] = compose_documents(io.StringIO("a:\nb: ~\nc: null\nd: ''\n"))
    assert to_plain(root) == {"a": None, "b": None, "c": None, "d": ""}


def test_scalar_text_is_kept_verbatim() -> None:
    [root] = compose_documents("count: 030\nflag: yes\nratio: 1.50\n")
    assert to_plain(root) == {"count": "030", "flag": "yes", "ratio": "1.50"}


def test_invalid_yaml_raises_malformed_input() -> None:
    with pytest.raises(MalformedInputError):
        compose_documents("a: b: c\n")


def test_recursive_alias_is_rejected() -> None:
    with pytest.raises(MalformedInputError):
        compose_documents("&a [*a]\n")


def test_emit_renders_comments() -> None:
    text = "# document\nname: John # first name\n# before age\nage: 30\n# the end\n"
    emitted = emit_documents(compose_documents(text))
    assert emitted.startswith("# document\n")
    assert "name: John # first name\n" in emitted
    assert "# before age\nage: 30\n" in emitted
    assert emitted.endswith("# the end\n")


def test_emit_separates_documents() -> None:
    emitted = emit_documents([ScalarNode("one"), MappingNode([(ScalarNode("k"), ScalarNode("v"))])])
    assert emitted == "one\n...\n---\nk: v\n" or emitted == "one\n---\nk: v\n"


def test_emit_keeps_string_values_as_text() -> None:
    tree = MappingNode(
        [
            (ScalarNode("zip"), ScalarNode("01234")),
            (ScalarNode("flag"), ScalarNode("true")),
            (ScalarNode("note"), ScalarNode("# not a comment")),
            (ScalarNode("empty"), ScalarNode(None)),
        ]
    )
    [reparsed] = compose_documents(emit_documents([tree]))
    assert to_plain(reparsed) == {"zip": "01234", "flag": "true", "note": "# not a comment", "empty": None}


@pytest.mark.parametrize(
    "text",
    [
        "name: John # first\n# about\naddress:\n  # inside\n  city: NYC\n",
        "- a # first\n# second\n- b\n- - nested\n  - list\n",
        "items:\n  - id: 1\n    tags:\n      - x\n  # next item\n  - id: 2\n# end\n",
        "a: 1\n---\n# doc two\nb: 2\n",
    ],
)
def test_emit_then_compose_preserves_trees(text: str) -> None:
    expected = compose_documents(text)
    assert compose_documents(emit_documents(expected)) == expected


def test_non_scalar_keys_cannot_be_emitted() -> None:
    node = MappingNode([(SequenceNode([ScalarNode("a")]), ScalarNode("b"))])
    with pytest.raises(ConversionError):
        emit_documents([node])


def test_strip_comments_removes_every_comment() -> None:
    [root] = compose_documents("# top\na: 1 # one\n")
    stripped = strip_comments(root)
    assert stripped == MappingNode([(ScalarNode("a"), ScalarNode("1"))])
