"""Pipeline orchestration for packaging runs."""

from __future__ import annotations

import shutil
from pathlib import Path

from .archiver import SourceArchiver
from .collector import ArtifactCollector
from .config import RunSettings, ensure_disposable_release_dir
from .container.builder import ContainerBuilder
from .errors import ContainerError, PackageToolError, ReleaseDirectoryError
from .formats import FormatProfile, profile_for
from .git.metadata import RepoMetadataResolver
from .logging import get_logger, set_run_label
from .models import ReleaseArtifactSet, RepoMetadata, RunContext, RunOutcome, RunStatus
from .scratch import ScratchDirectory
from .templating.overrides import BuildDefinitionTemplater

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_NOT_IMPLEMENTED = 3

STATE_IDLE = "idle"
STATE_RESOLVING = "resolving"
STATE_COLLECTING = "collecting"
STATE_DONE = "done"
STATE_FAILED = "failed"
STATE_NOT_IMPLEMENTED = "not-implemented"


def building_state(profile: FormatProfile) -> str:
    return f"building:{profile.package_format.value}"


class Orchestrator:
    """Sequences metadata, templating, archiving, container build and collection."""

    def __init__(
        self,
        resolver: RepoMetadataResolver | None = None,
        templater: BuildDefinitionTemplater | None = None,
        archiver: SourceArchiver | None = None,
        container_builder: ContainerBuilder | None = None,
        collector: ArtifactCollector | None = None,
        scratch_parent: Path | None = None,
    ) -> None:
        self.resolver = resolver or RepoMetadataResolver()
        self.templater = templater or BuildDefinitionTemplater()
        self.archiver = archiver or SourceArchiver()
        self.container_builder = container_builder or ContainerBuilder()
        self.collector = collector or ArtifactCollector()
        self.scratch_parent = scratch_parent
        self.logger = get_logger("orchestrator")
        self.state = STATE_IDLE

    def resolve_metadata(self, root: Path, software_name: str | None = None) -> RepoMetadata:
        self._transition(STATE_RESOLVING)
        return self.resolver.resolve(root, software_name)

    def run(self, root: Path | str, settings: RunSettings) -> RunOutcome:
        """Build packages for ``root`` and return the terminal outcome."""
        root = Path(root).expanduser().resolve()
        self.logger.info(
            "Starting %s run for %s using %s",
            settings.package_format.value,
            root,
            settings.runtime.value,
        )
        metadata = self.resolve_metadata(root, settings.software_name)
        profile = profile_for(settings.package_format)
        set_run_label(f"{metadata.software_name}/{profile.package_format.value}")

        try:
            ensure_disposable_release_dir(settings.release_dir, root)
            self._reset_release_dir(settings.release_dir)
        except PackageToolError as exc:
            return self._fail(exc, metadata)

        if not profile.implemented:
            self._transition(STATE_NOT_IMPLEMENTED)
            message = f"Package system '{profile.package_format.value}' is not implemented yet"
            self.logger.warning(message)
            return RunOutcome(
                status=RunStatus.NOT_IMPLEMENTED,
                exit_code=EXIT_NOT_IMPLEMENTED,
                message=message,
                metadata=metadata,
            )

        scratch = ScratchDirectory(
            metadata.software_name,
            keep=settings.keep_temp_dir,
            print_mode=settings.print_temp_dir,
            parent=self.scratch_parent,
        )
        try:
            with scratch as scratch_root:
                context = RunContext(
                    root=root,
                    metadata=metadata,
                    settings=settings,
                    scratch_root=scratch_root,
                    release_dir=settings.release_dir,
                )
                artifacts = self._build(context, profile)
        except (PackageToolError, OSError) as exc:
            return self._fail(exc, metadata)

        self._transition(STATE_DONE)
        self.logger.info("Release artifacts: %s", ", ".join(artifacts.relative_paths()))
        return RunOutcome(
            status=RunStatus.DONE,
            exit_code=EXIT_SUCCESS,
            message=f"Built {len(artifacts.files)} {profile.package_format.value} artifact(s)",
            artifacts=artifacts,
            metadata=metadata,
        )

    # ------------------------------------------------------------------
    # Internals

    def _build(self, context: RunContext, profile: FormatProfile) -> ReleaseArtifactSet:
        self._transition(building_state(profile))
        for name in profile.scratch_dirs:
            (context.scratch_root / name).mkdir(parents=True, exist_ok=True)

        self.templater.render(context, profile)
        self.archiver.archive(context, context.scratch_root / profile.source_dir)

        build_run = self.container_builder.plan(context, profile)
        self.container_builder.build_image(context, profile, build_run)
        self.container_builder.run(build_run)

        self._transition(STATE_COLLECTING)
        return self.collector.collect(context, profile)

    def _reset_release_dir(self, release_dir: Path) -> None:
        self.logger.info("Resetting release directory %s", release_dir)
        try:
            if release_dir.exists():
                shutil.rmtree(release_dir)
            release_dir.mkdir(parents=True)
        except OSError as exc:
            raise ReleaseDirectoryError(
                f"Failed to reset release directory {release_dir}: {exc}"
            ) from exc

    def _fail(self, exc: Exception, metadata: RepoMetadata) -> RunOutcome:
        self._transition(STATE_FAILED)
        if isinstance(exc, ContainerError):
            self.logger.error("%s (exit code %d)", exc, exc.exit_code)
        else:
            self.logger.error("%s", exc)
        self.logger.debug("Run failure details", exc_info=exc)
        return RunOutcome(
            status=RunStatus.FAILED,
            exit_code=EXIT_FAILURE,
            message=str(exc),
            metadata=metadata,
        )

    def _transition(self, state: str) -> None:
        self.logger.debug("State %s -> %s", self.state, state)
        self.state = state


__all__ = [
    "EXIT_FAILURE",
    "EXIT_NOT_IMPLEMENTED",
    "EXIT_SUCCESS",
    "Orchestrator",
]
