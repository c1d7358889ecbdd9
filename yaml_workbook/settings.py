"""Converter settings loaded from YAML files."""

# Module responsibilities:
# - Model the settings file (mode, indentation, comment display, form, markers).
# - Load it with ruamel.yaml and validate it with pydantic.
# - Build matching writer and reader instances from one settings object.

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .comments import DisplayModeConfig
from .config import FormModeConfig, OutputMode
from .errors import ConfigurationError
from .indentation import IndentationMode, IndentationStrategy, build_strategy
from .reader import YamlWorkbookReader
from .schema import SchemaSource
from .syntax import WorkbookSyntax
from .writer import YamlWorkbookWriter
from .utils.log import get_logger

logger = get_logger("settings")


class IndentationSettings(BaseModel):
    """How nesting depth is laid out on the grid."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: IndentationMode = IndentationMode.CELL_OFFSET
    cells_per_level: int = Field(default=1, ge=1)
    prefix_suffix: str = Field(default=">", min_length=1)

    def build(self) -> IndentationStrategy:
        return build_strategy(
            self.mode,
            cells_per_level=self.cells_per_level,
            prefix_suffix=self.prefix_suffix,
        )


class SyntaxSettings(BaseModel):
    """Marker tokens; every field mirrors :class:`WorkbookSyntax`."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    frontmatter: str = "---"
    comment_mark: str = "#"
    escape_mark: str = "\\"
    item_mark: str = "-"
    hidden_sheet_suffix: str = "Hidden"
    enum_comment_prefix: str = "ENUM_VALUES:"

    def build(self) -> WorkbookSyntax:
        return WorkbookSyntax(**self.model_dump())


class ConverterSettings(BaseModel):
    """Complete settings file model."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    output_mode: OutputMode = OutputMode.YAML_ORIENTED
    indentation: IndentationSettings = Field(default_factory=IndentationSettings)
    display: DisplayModeConfig = Field(default_factory=DisplayModeConfig)
    form: FormModeConfig = Field(default_factory=FormModeConfig)
    syntax: SyntaxSettings = Field(default_factory=SyntaxSettings)

    def build_writer(self, json_schema: Optional[SchemaSource] = None) -> YamlWorkbookWriter:
        """Create a writer configured by these settings."""

        return YamlWorkbookWriter(
            output_mode=self.output_mode,
            indentation=self.indentation.build(),
            syntax=self.syntax.build(),
            display_config=self.display,
            form_config=self.form,
            json_schema=json_schema,
        )

    def build_reader(self) -> YamlWorkbookReader:
        """Create the reader matching :meth:`build_writer`."""

        return YamlWorkbookReader(
            output_mode=self.output_mode,
            indentation=self.indentation.build(),
            syntax=self.syntax.build(),
        )

    def with_overrides(self, **overrides: Any) -> "ConverterSettings":
        """Return a copy with top-level fields replaced; ``None`` values are ignored."""

        data = self.model_dump()
        for key, value in overrides.items():
            if value is not None:
                data[key] = value
        return parse_settings(data)


def parse_settings(data: Mapping[str, Any]) -> ConverterSettings:
    """Validate a decoded settings mapping.

    Raises:
        ConfigurationError: When a field is unknown or has an invalid value.
    """

    try:
        return ConverterSettings.model_validate(dict(data))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid converter settings: {exc}") from exc


def load_settings(path: str | Path) -> ConverterSettings:
    """Load converter settings from a YAML file.

    Args:
        path: Settings file; an empty file yields the defaults.

    Returns:
        The validated settings.

    Raises:
        ConfigurationError: When the file is missing, unreadable or invalid.
    """

    settings_path = Path(path)
    if not settings_path.exists():
        raise ConfigurationError(f"Settings file not found: {settings_path}")
    yaml = YAML(typ="safe")
    try:
        with settings_path.open("r", encoding="utf-8") as fh:
            data = yaml.load(fh) or {}
    except YAMLError as exc:
        raise ConfigurationError(f"Settings file is not valid YAML: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigurationError("Settings file must contain a mapping")
    settings = parse_settings(data)
    logger.debug(
        "Settings loaded",
        extra={"path": str(settings_path), "output_mode": settings.output_mode.value},
    )
    return settings


__all__ = [
    "IndentationSettings",
    "SyntaxSettings",
    "ConverterSettings",
    "parse_settings",
    "load_settings",
]
