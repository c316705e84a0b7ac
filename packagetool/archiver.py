"""Source archive creation for build sandboxes."""

from __future__ import annotations

import tarfile
from pathlib import Path

from .errors import ArchiveError
from .logging import get_logger
from .models import RunContext


class SourceArchiver:
    """Packs the working tree the way hosted-source tarballs are laid out.

    Build tools such as ``rpmbuild`` and ``abuild`` expect the sources to unpack into a
    single top-level directory, so the tree is stored under its own directory name.
    """

    def __init__(self) -> None:
        self.logger = get_logger("archiver")

    def archive(self, context: RunContext, destination_dir: Path) -> Path:
        root = context.root.resolve()
        archive_path = destination_dir / f"{context.metadata.archive_stem}.tar.gz"
        self.logger.info("Archiving %s into %s", root, archive_path)
        try:
            destination_dir.mkdir(parents=True, exist_ok=True)
            with tarfile.open(archive_path, "w:gz") as tar:
                tar.add(str(root), arcname=root.name)
        except (OSError, tarfile.TarError) as exc:
            raise ArchiveError(f"Failed to archive {root}: {exc}") from exc
        return archive_path


__all__ = ["SourceArchiver"]
