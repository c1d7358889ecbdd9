"""Convenience functions for one-shot conversions."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Union

from openpyxl import Workbook

from .config import OutputMode
from .indentation import PrefixMarkerStrategy
from .nodes import Node
from .reader import YamlWorkbookReader
from .schema import SchemaSource
from .workbook import load
from .writer import YamlWorkbookWriter
from .yaml_io import YamlSource

WorkbookSource = Union[Workbook, str, Path, None]


def _workbook(source: WorkbookSource) -> Optional[Workbook]:
    if source is None or isinstance(source, Workbook):
        return source
    return load(Path(source))


def to_workbook(*sources: YamlSource, **kwargs: Any) -> Workbook:
    """Convert YAML texts into a workbook with a default-configured writer."""

    return YamlWorkbookWriter(**kwargs).to_workbook(*sources)


def from_workbook(source: WorkbookSource, **kwargs: Any) -> List[Node]:
    """Read document trees from a workbook object or an ``.xlsx`` path."""

    return YamlWorkbookReader(**kwargs).from_workbook(_workbook(source))


def to_yaml(source: WorkbookSource, **kwargs: Any) -> str:
    """Read a workbook object or ``.xlsx`` path back into YAML text."""

    return YamlWorkbookReader(**kwargs).to_yaml(_workbook(source))


def prefix_writer(**kwargs: Any) -> YamlWorkbookWriter:
    kwargs.setdefault("indentation", PrefixMarkerStrategy())
    return YamlWorkbookWriter(**kwargs)


def prefix_reader(**kwargs: Any) -> YamlWorkbookReader:
    kwargs.setdefault("indentation", PrefixMarkerStrategy())
    return YamlWorkbookReader(**kwargs)


def form_workbook(schema: SchemaSource, *sources: YamlSource, **kwargs: Any) -> Workbook:
    """Build a form workbook for ``schema``, optionally prefilled from YAML sources."""

    kwargs["output_mode"] = OutputMode.FORM_MODE
    return YamlWorkbookWriter(json_schema=schema, **kwargs).to_form_workbook(*sources)


__all__ = [
    "to_workbook",
    "from_workbook",
    "to_yaml",
    "prefix_writer",
    "prefix_reader",
    "form_workbook",
]
