"""Conversion modes and form layout options."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class OutputMode(str, Enum):
    """Layout family produced by the writer and expected by the reader."""

    YAML_ORIENTED = "yaml_oriented"
    DISPLAY_MODE = "display_mode"
    FORM_MODE = "form_mode"

    @property
    def recoverable(self) -> bool:
        """Whether displayed cells may hide the real value in an attached comment."""

        return self is not OutputMode.YAML_ORIENTED


class FormModeConfig(BaseModel):
    """Options for schema-driven form workbooks."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    use_hidden_sheets_for_long_enums: bool = False
    skip_all_of: bool = False
    highlight_required: bool = False


__all__ = ["OutputMode", "FormModeConfig"]
