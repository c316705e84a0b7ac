"""Scratch directory lifecycle for a packaging run."""

from __future__ import annotations

import shutil
import stat
import tempfile
from pathlib import Path
from types import TracebackType
from typing import List, Optional, Type

from .logging import get_logger
from .models import PrintMode


class ScratchDirectory:
    """Creates a uniquely named temp dir and removes it on exit unless kept."""

    def __init__(
        self,
        software_name: str,
        *,
        keep: bool = False,
        print_mode: PrintMode = PrintMode.NONE,
        parent: Path | None = None,
    ) -> None:
        self.software_name = software_name
        self.keep = keep
        self.print_mode = print_mode
        self.parent = parent
        self.path: Optional[Path] = None
        self.logger = get_logger("scratch")

    def __enter__(self) -> Path:
        created = tempfile.mkdtemp(
            prefix=f"{self.software_name}_tmp.",
            dir=str(self.parent) if self.parent else None,
        )
        self.path = Path(created)
        self.logger.info("Created temporary directory at %s", self.path)
        return self.path

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if self.path is None:
            return
        if self.print_mode is not PrintMode.NONE:
            self.logger.info(
                "Temporary directory contents:\n%s",
                render_tree(self.path, verbose=self.print_mode is PrintMode.VERBOSE),
            )
        if self.keep:
            self.logger.info("Keeping temporary directory at %s", self.path)
            return
        self.logger.info("Deleting temporary directory at %s", self.path)
        try:
            shutil.rmtree(self.path)
        except OSError as error:
            self.logger.error("Failed to delete temporary directory %s: %s", self.path, error)


def render_tree(root: Path, *, verbose: bool = False) -> str:
    """Return a listing of ``root``; verbose adds file mode and size."""
    lines: List[str] = [str(root)]
    for path in sorted(root.rglob("*")):
        relative = path.relative_to(root).as_posix()
        if path.is_dir():
            relative += "/"
        if verbose:
            info = path.lstat()
            lines.append(f"{stat.filemode(info.st_mode)} {info.st_size:>10} {relative}")
        else:
            lines.append(relative)
    return "\n".join(lines)


__all__ = ["ScratchDirectory", "render_tree"]
