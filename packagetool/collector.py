"""Copies finished packages from the scratch tree into the release directory."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import List

from .errors import ArtifactCollectionError
from .formats import ArtifactRule, FormatProfile
from .logging import get_logger
from .models import ReleaseArtifactSet, RunContext


class ArtifactCollector:
    """Harvests artifacts declared by a format profile."""

    def __init__(self) -> None:
        self.logger = get_logger("collector")

    def collect(self, context: RunContext, profile: FormatProfile) -> ReleaseArtifactSet:
        copied: List[Path] = []
        for rule in profile.artifacts:
            copied.extend(self._collect_rule(context, rule))
        if not copied:
            raise ArtifactCollectionError(
                f"Build finished but produced no {profile.package_format.value} artifacts"
            )
        self.logger.info("Collected %d artifact(s) into %s", len(copied), context.release_dir)
        return ReleaseArtifactSet(release_dir=context.release_dir, files=tuple(copied))

    def _collect_rule(self, context: RunContext, rule: ArtifactRule) -> List[Path]:
        matches = sorted(path for path in context.scratch_root.glob(rule.source_glob) if path.is_file())
        if not matches:
            if rule.required:
                raise ArtifactCollectionError(f"No artifacts matched '{rule.source_glob}'")
            self.logger.debug("Optional artifacts '%s' not produced", rule.source_glob)
            return []

        destination = context.release_dir / rule.destination if rule.destination else context.release_dir
        copied: List[Path] = []
        try:
            destination.mkdir(parents=True, exist_ok=True)
            for source in matches:
                target = destination / source.name
                shutil.copy2(source, target)
                copied.append(target)
                self.logger.debug("Copied %s -> %s", source, target)
        except OSError as exc:
            raise ArtifactCollectionError(f"Failed to copy artifacts to {destination}: {exc}") from exc
        return copied


__all__ = ["ArtifactCollector"]
