"""Bidirectional conversion between commented YAML documents and spreadsheets."""

from .api import form_workbook, from_workbook, prefix_reader, prefix_writer, to_workbook, to_yaml
from .comments import CommentDisplayOption, CommentVisibility, DisplayModeConfig
from .config import FormModeConfig, OutputMode
from .dropdown import EnumDropdownCodec, OverflowPolicy
from .errors import ConfigurationError, ConversionError, MalformedInputError, YamlWorkbookError
from .indentation import (
    CellOffsetStrategy,
    IndentationMode,
    IndentationStrategy,
    PrefixMarkerStrategy,
    build_strategy,
)
from .nodes import CommentType, MappingNode, Node, ScalarNode, SequenceNode
from .reader import YamlWorkbookReader
from .settings import ConverterSettings, load_settings
from .syntax import DEFAULT_SYNTAX, WorkbookSyntax
from .writer import YamlWorkbookWriter
from .yaml_io import compose_documents, emit_documents

__all__ = [
    "CellOffsetStrategy",
    "CommentDisplayOption",
    "CommentType",
    "CommentVisibility",
    "ConfigurationError",
    "ConversionError",
    "ConverterSettings",
    "DEFAULT_SYNTAX",
    "DisplayModeConfig",
    "EnumDropdownCodec",
    "FormModeConfig",
    "IndentationMode",
    "IndentationStrategy",
    "MalformedInputError",
    "MappingNode",
    "Node",
    "OutputMode",
    "OverflowPolicy",
    "PrefixMarkerStrategy",
    "ScalarNode",
    "SequenceNode",
    "WorkbookSyntax",
    "YamlWorkbookError",
    "YamlWorkbookReader",
    "YamlWorkbookWriter",
    "build_strategy",
    "compose_documents",
    "emit_documents",
    "form_workbook",
    "from_workbook",
    "load_settings",
    "prefix_reader",
    "prefix_writer",
    "to_workbook",
    "to_yaml",
]

__version__ = "0.1.0"
