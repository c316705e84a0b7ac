"""Logging for packagetool runs, tagged with the package being built."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "packagetool"
_CONSOLE_FORMAT = "[packagetool%(run_tag)s] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s [%(run_label)s] %(name)s: %(message)s"


class RunTagFilter(logging.Filter):
    """Stamps every record with the ``<software>/<format>`` label of the current run.

    Installed on handlers rather than the logger, because records emitted by
    child loggers skip the filters of their ancestors.
    """

    def __init__(self, label: str | None = None) -> None:
        super().__init__()
        self.label = label

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_label = self.label or "-"
        record.run_tag = f":{self.label}" if self.label else ""
        return True


_run_tag = RunTagFilter()


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the packagetool hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def set_run_label(label: str | None) -> None:
    """Tag subsequent console and file records with ``label`` (``None`` clears it)."""
    _run_tag.label = label


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    run_label: str | None = None,
) -> logging.Logger:
    """Install the console handler, plus a file sink when ``log_file`` is given."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    set_run_label(run_label)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.addFilter(_run_tag)
    stream_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.addFilter(_run_tag)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["RunTagFilter", "configure_logging", "get_logger", "set_run_label"]
