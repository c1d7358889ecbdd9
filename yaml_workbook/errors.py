"""Custom exceptions raised by yaml_workbook conversions."""


class YamlWorkbookError(Exception):
    """Base error for the package."""


class ConfigurationError(YamlWorkbookError):
    """Invalid converter setup, raised before any workbook is touched."""


class MalformedInputError(YamlWorkbookError):
    """YAML text or a form schema could not be parsed."""


class ConversionError(YamlWorkbookError):
    """The workbook or YAML layer failed while a conversion was running.

    A workbook left behind by a failed conversion is partially written and
    should be discarded.
    """


__all__ = [
    "YamlWorkbookError",
    "ConfigurationError",
    "MalformedInputError",
    "ConversionError",
]
