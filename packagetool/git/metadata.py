"""Repository metadata resolution from the local git checkout."""

from __future__ import annotations

import re
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional, Tuple

from ..logging import get_logger
from ..models import RepoMetadata

_URL_SEPARATORS = re.compile(r"[/:]")


class RepoMetadataResolver:
    """Reads identifying facts about a checkout without ever failing the run."""

    def __init__(
        self,
        runner: Callable[..., str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._runner = runner or self._default_runner
        self._clock = clock or _local_now
        self.logger = get_logger("git.metadata")

    def resolve(self, root: Path, software_name: str | None = None) -> RepoMetadata:
        root = Path(root)
        name = software_name or root.resolve().name

        commit = self._query(["git", "rev-parse", "HEAD"], cwd=root)
        dirty = not self._succeeds(["git", "diff-index", "--quiet", "HEAD", "--"], cwd=root)

        timestamp: Optional[str] = None
        if not dirty and commit is not None:
            timestamp = self._commit_date(commit, cwd=root)
        if timestamp is None:
            timestamp = self._clock().isoformat(timespec="seconds")

        origin_url = self._query(["git", "remote", "get-url", "origin"], cwd=root)
        origin_owner, origin_name = split_origin_url(origin_url) if origin_url else (None, None)

        metadata = RepoMetadata(
            software_name=name,
            commit=commit,
            working_tree_dirty=dirty,
            timestamp=timestamp,
            origin_url=origin_url,
            origin_name=origin_name,
            origin_owner=origin_owner,
        )
        self.logger.debug("Resolved repository metadata: %s", metadata)
        return metadata

    # ------------------------------------------------------------------
    # Internals

    def _commit_date(self, commit: str, *, cwd: Path) -> Optional[str]:
        raw = self._query(
            ["git", "show", "-s", "--format=%cd", "--date=iso-strict", commit],
            cwd=cwd,
        )
        if raw is None:
            return None
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            self.logger.debug("Ignoring unparseable commit date %r", raw)
            return None
        if parsed.tzinfo is None:
            return None
        return raw

    def _query(self, args: Iterable[str], *, cwd: Path) -> Optional[str]:
        try:
            output = self._runner(list(args), cwd=cwd, capture_output=True)
        except (subprocess.CalledProcessError, OSError, UnicodeDecodeError) as exc:
            self.logger.debug("git query %s unavailable: %s", " ".join(args), exc)
            return None
        value = output.strip()
        return value or None

    def _succeeds(self, args: Iterable[str], *, cwd: Path) -> bool:
        try:
            self._runner(list(args), cwd=cwd, capture_output=True)
        except (subprocess.CalledProcessError, OSError, UnicodeDecodeError):
            return False
        return True

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            errors="replace",
            capture_output=capture_output,
        )
        return completed.stdout if capture_output else ""


def split_origin_url(url: str) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(owner, name)`` from the last two path segments of a remote URL."""
    segments = _URL_SEPARATORS.split(url.rstrip("/"))
    name = segments[-1] or None
    owner = None
    if len(segments) > 1:
        owner = segments[-2] or None
    return owner, name


def describe(metadata: RepoMetadata) -> str:
    """Render the repository report printed by ``--print-repo-info``."""
    rows = (
        ("software_name", metadata.software_name),
        ("current_commit", metadata.commit_label),
        ("working_tree_changed", str(metadata.working_tree_dirty).lower()),
        ("timestamp", metadata.timestamp),
        ("origin_url", metadata.origin_url_label),
        ("origin_name", metadata.origin_name_label),
        ("origin_owner", metadata.origin_owner_label),
    )
    lines = ["Determined the following information about the current repository:"]
    lines.extend(f"\t{key}:{value}" for key, value in rows)
    return "\n".join(lines)


def _local_now() -> datetime:
    return datetime.now().astimezone()


__all__ = ["RepoMetadataResolver", "describe", "split_origin_url"]
