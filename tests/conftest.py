from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from packagetool.logging import set_run_label
from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def project_builder(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_packagetool_logger() -> Iterator[None]:
    """Undo configure_logging() so caplog keeps seeing packagetool records."""
    yield
    logger = logging.getLogger("packagetool")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    set_run_label(None)
