"""Indentation strategies mapping nesting depth to grid positions."""

# Module responsibilities:
# - Define the two-function marker contract (encode/decode) plus the column arithmetic
#   the writer and the reader must agree on.
# - Provide the cell-offset and prefix-marker strategies and a factory for both.

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, Sequence

from .errors import ConfigurationError
from .utils.log import get_logger

logger = get_logger("indentation")


class IndentationMode(str, Enum):
    """Built-in ways of addressing nesting depth."""

    CELL_OFFSET = "cell_offset"
    PREFIX = "prefix"


class IndentationStrategy(ABC):
    """Encode nesting levels into rows and recover them again.

    Implementations must satisfy ``decode(encode(level)) == level`` for every
    level they can produce, and ``row_level`` must invert the layout implied by
    ``content_column`` and ``marker_column``.
    """

    @abstractmethod
    def encode(self, level: int) -> str:
        """Return the marker token for ``level`` (empty when no marker is written)."""

    @abstractmethod
    def decode(self, marker: Optional[str]) -> int:
        """Return the level encoded by ``marker`` or ``-1`` when it is not a marker."""

    def is_marker(self, value: Optional[str]) -> bool:
        return self.decode(value) >= 0

    @abstractmethod
    def content_column(self, level: int) -> int:
        """Zero-based column holding the first content cell of a row at ``level``."""

    def marker_column(self, level: int) -> Optional[int]:
        """Zero-based column of the level marker, ``None`` when the row carries none."""

        return None

    @abstractmethod
    def row_level(self, cells: Sequence[Optional[str]]) -> int:
        """Recover the level of a row from its cell texts (zero-based columns)."""


class CellOffsetStrategy(IndentationStrategy):
    """Level N starts at column ``N * cells_per_level``; no marker cell."""

    def __init__(self, cells_per_level: int = 1) -> None:
        if cells_per_level < 1:
            raise ConfigurationError("cells_per_level must be at least 1")
        self.cells_per_level = cells_per_level

    def encode(self, level: int) -> str:
        return ""

    def decode(self, marker: Optional[str]) -> int:
        return 0 if not marker else -1

    def content_column(self, level: int) -> int:
        return level * self.cells_per_level

    def row_level(self, cells: Sequence[Optional[str]]) -> int:
        for column, text in enumerate(cells):
            if text is not None:
                return column // self.cells_per_level
        return 0

    def __repr__(self) -> str:
        return f"CellOffsetStrategy(cells_per_level={self.cells_per_level})"


class PrefixMarkerStrategy(IndentationStrategy):
    """Level N >= 1 writes ``"{N}>"`` in column 0 and shifts content to column 1."""

    def __init__(self, suffix: str = ">") -> None:
        if not suffix or suffix[0].isdigit():
            raise ConfigurationError("Prefix suffix must be non-empty and not start with a digit")
        self.suffix = suffix
        self._pattern = re.compile(rf"^(\d+){re.escape(suffix)}$")

    def encode(self, level: int) -> str:
        if level <= 0:
            return ""
        return f"{level}{self.suffix}"

    def decode(self, marker: Optional[str]) -> int:
        if not marker:
            return 0
        match = self._pattern.match(marker)
        if match is None:
            return -1
        level = int(match.group(1))
        return level if level > 0 else -1

    def content_column(self, level: int) -> int:
        return 1 if level > 0 else 0

    def marker_column(self, level: int) -> Optional[int]:
        return 0 if level > 0 else None

    def row_level(self, cells: Sequence[Optional[str]]) -> int:
        first = cells[0] if cells else None
        level = self.decode(first)
        if level < 0:
            if first is not None and first.endswith(self.suffix):
                logger.debug(
                    "Unreadable indentation marker treated as level 0",
                    extra={"marker": first},
                )
            return 0
        return level

    def __repr__(self) -> str:
        return f"PrefixMarkerStrategy(suffix={self.suffix!r})"


def build_strategy(
    mode: IndentationMode | str = IndentationMode.CELL_OFFSET,
    *,
    cells_per_level: int = 1,
    prefix_suffix: str = ">",
) -> IndentationStrategy:
    """Create the built-in strategy for ``mode``.

    Args:
        mode: ``cell_offset`` or ``prefix``.
        cells_per_level: Column step per level for the cell-offset strategy.
        prefix_suffix: Marker suffix for the prefix strategy.

    Returns:
        A ready indentation strategy.

    Raises:
        ConfigurationError: When ``mode`` is unknown or the parameters are invalid.
    """

    try:
        resolved = IndentationMode(mode)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown indentation mode: {mode}") from exc
    if resolved is IndentationMode.PREFIX:
        return PrefixMarkerStrategy(prefix_suffix)
    return CellOffsetStrategy(cells_per_level)


__all__ = [
    "IndentationMode",
    "IndentationStrategy",
    "CellOffsetStrategy",
    "PrefixMarkerStrategy",
    "build_strategy",
]
