from __future__ import annotations

import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Iterator

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep test runs from writing into the user's home log directory.
os.environ.setdefault(
    "YAML_WORKBOOK_LOG_DIR", str(Path(tempfile.gettempdir()) / "yaml_workbook_test_logs")
)


@pytest.fixture
def package_caplog(caplog: pytest.LogCaptureFixture) -> Iterator[pytest.LogCaptureFixture]:
    """Capture records of the package logger, which does not propagate to root."""

    package_logger = logging.getLogger("yaml_workbook")
    package_logger.addHandler(caplog.handler)
    caplog.set_level(logging.DEBUG, logger="yaml_workbook")
    try:
        yield caplog
    finally:
        package_logger.removeHandler(caplog.handler)
