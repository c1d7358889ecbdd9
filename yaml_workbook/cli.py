"""Typer based command line entry points for yaml_workbook."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from .config import OutputMode
from .errors import YamlWorkbookError
from .indentation import IndentationMode
from .schema import load_schema_file
from .settings import ConverterSettings, load_settings
from .workbook import load, save
from .utils.log import get_logger, set_level

app = typer.Typer(help="Convert YAML documents to spreadsheets and back.")
logger = get_logger("cli")


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Set global logging level (e.g. DEBUG/INFO/WARNING).",
    ),
) -> None:
    """Configure global CLI behaviour before executing commands."""

    level_value = getattr(logging, log_level.upper(), None)
    if not isinstance(level_value, int):
        raise typer.BadParameter(f"Unknown log level: {log_level}")
    set_level(level_value)


def _settings(
    settings_file: Optional[Path],
    mode: Optional[OutputMode],
    indentation: Optional[IndentationMode],
) -> ConverterSettings:
    settings = load_settings(settings_file) if settings_file else ConverterSettings()
    if indentation is not None:
        layout = settings.indentation.model_dump()
        layout["mode"] = indentation
        settings = settings.with_overrides(indentation=layout)
    return settings.with_overrides(output_mode=mode)


def _fail(message: str, exc: Exception, code: int = 1) -> typer.Exit:
    typer.secho(f"{message}: {exc}", fg=typer.colors.RED, err=True)
    return typer.Exit(code=code)


@app.command("to-xlsx")
def to_xlsx(
    inputs: List[Path] = typer.Argument(..., exists=True, dir_okay=False, help="YAML files to convert."),
    output: Path = typer.Option(..., "--output", "-o", help="Workbook to write."),
    settings_file: Optional[Path] = typer.Option(None, "--settings", help="Converter settings YAML file."),
    mode: Optional[OutputMode] = typer.Option(None, "--mode", help="Override the output mode."),
    indentation: Optional[IndentationMode] = typer.Option(None, "--indentation", help="Override the indentation strategy."),
) -> None:
    """Write the documents of one or more YAML files into a workbook."""

    try:
        writer = _settings(settings_file, mode, indentation).build_writer()
        texts = [path.read_text(encoding="utf-8") for path in inputs]
        workbook = writer.to_workbook(*texts)
        save(workbook, output)
    except YamlWorkbookError as exc:
        raise _fail("Conversion failed", exc, code=2) from exc
    except OSError as exc:
        raise _fail("Unable to access file", exc) from exc
    logger.info("Workbook saved", extra={"path": str(output), "inputs": len(inputs)})
    typer.echo(str(output))


@app.command("to-yaml")
def to_yaml(
    workbook_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Workbook to read."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="YAML file to write; stdout when omitted."),
    settings_file: Optional[Path] = typer.Option(None, "--settings", help="Converter settings YAML file."),
    mode: Optional[OutputMode] = typer.Option(None, "--mode", help="Override the output mode."),
    indentation: Optional[IndentationMode] = typer.Option(None, "--indentation", help="Override the indentation strategy."),
) -> None:
    """Read a workbook back into YAML text."""

    try:
        reader = _settings(settings_file, mode, indentation).build_reader()
        text = reader.to_yaml(load(workbook_path))
        if output is None:
            typer.echo(text, nl=False)
            return
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
    except YamlWorkbookError as exc:
        raise _fail("Conversion failed", exc, code=2) from exc
    except OSError as exc:
        raise _fail("Unable to access file", exc) from exc
    logger.info("YAML saved", extra={"path": str(output)})
    typer.echo(str(output))


@app.command("form")
def form(
    schema_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON schema of the form."),
    output: Path = typer.Option(..., "--output", "-o", help="Workbook to write."),
    prefill: List[Path] = typer.Option([], "--prefill", exists=True, dir_okay=False, help="YAML files whose documents fill the form."),
    settings_file: Optional[Path] = typer.Option(None, "--settings", help="Converter settings YAML file."),
    hidden_sheets: Optional[bool] = typer.Option(
        None,
        "--hidden-sheets/--truncate",
        help="Store long dropdown lists on hidden sheets instead of truncating them.",
    ),
    skip_all_of: Optional[bool] = typer.Option(None, "--skip-all-of/--merge-all-of", help="Ignore allOf parts of the schema."),
    highlight_required: Optional[bool] = typer.Option(
        None, "--highlight-required/--no-highlight-required", help="Highlight required keys."
    ),
) -> None:
    """Generate a data-collection workbook from a JSON schema."""

    try:
        settings = _settings(settings_file, OutputMode.FORM_MODE, None)
        options = settings.form.model_dump()
        for name, value in (
            ("use_hidden_sheets_for_long_enums", hidden_sheets),
            ("skip_all_of", skip_all_of),
            ("highlight_required", highlight_required),
        ):
            if value is not None:
                options[name] = value
        settings = settings.with_overrides(form=options)
        writer = settings.build_writer(json_schema=load_schema_file(schema_path))
        texts = [path.read_text(encoding="utf-8") for path in prefill]
        save(writer.to_form_workbook(*texts), output)
    except YamlWorkbookError as exc:
        raise _fail("Form generation failed", exc, code=2) from exc
    except OSError as exc:
        raise _fail("Unable to access file", exc) from exc
    logger.info("Form workbook saved", extra={"path": str(output), "schema": str(schema_path)})
    typer.echo(str(output))


__all__ = ["app"]
