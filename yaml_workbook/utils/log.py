"""Logging helpers for the yaml_workbook package."""

# Module responsibilities:
# - Centralize logging configuration with file + stream handlers.
# - Provide get_logger() that ensures directories exist and configuration occurs once.

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional

LOG_DIR_ENV = "YAML_WORKBOOK_LOG_DIR"
DEFAULT_LOG_BASE = Path.home() / ".yaml_workbook" / "logs"
_LOG_CONFIGURED = False


def _resolve_log_dir(log_dir: Optional[Path] = None) -> Path:
    """Resolve the log directory, ensuring existence."""
    env_dir = os.environ.get(LOG_DIR_ENV)
    target = log_dir or (Path(env_dir) if env_dir else DEFAULT_LOG_BASE)
    target.mkdir(parents=True, exist_ok=True)
    return target


def _configure_logging(log_dir: Optional[Path] = None) -> None:
    """Configure the package root logger once with rotating file + console handlers."""
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        return

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger("yaml_workbook")
    root_logger.setLevel(logging.INFO)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.INFO)
    root_logger.addHandler(console_handler)

    try:
        directory = _resolve_log_dir(log_dir)
    except OSError as exc:
        root_logger.warning(
            "Log directory unavailable, logging to console only",
            extra={"error": str(exc)},
        )
    else:
        file_handler = logging.handlers.RotatingFileHandler(
            directory / "yaml_workbook.log",
            maxBytes=2_000_000,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.INFO)
        root_logger.addHandler(file_handler)

    root_logger.propagate = False
    _LOG_CONFIGURED = True


def set_level(level: int | str) -> None:
    """Adjust the package root logger and its handlers to ``level``."""

    _configure_logging()
    root_logger = logging.getLogger("yaml_workbook")
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setLevel(level)


def get_logger(name: str, log_dir: Optional[Path] = None) -> logging.Logger:
    """Return a package-scoped logger.

    Args:
        name: Logger name suffix appended to the package root logger namespace.
        log_dir: Optional override for the logging directory.

    Returns:
        Configured logger scoped under ``yaml_workbook``.
    """

    _configure_logging(log_dir)
    return logging.getLogger(f"yaml_workbook.{name}")
