"""Core data models shared across packagetool components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .config import RunSettings

UNKNOWN = "unknown"


class PackageFormat(str, Enum):
    """Target packaging conventions."""

    APK = "apk"
    RPM = "rpm"
    DEB = "deb"
    TARBALL = "tarball"


class ContainerRuntime(str, Enum):
    """OCI-compatible CLIs that can host the build."""

    PODMAN = "podman"
    DOCKER = "docker"


class PrintMode(str, Enum):
    """How much of the scratch tree to print before cleanup."""

    NONE = "none"
    NORMAL = "normal"
    VERBOSE = "verbose"


class RunStatus(str, Enum):
    """Terminal outcome of an orchestrated run."""

    DONE = "done"
    FAILED = "failed"
    NOT_IMPLEMENTED = "not-implemented"


@dataclass(frozen=True)
class RepoMetadata:
    """Identifying facts about the source checkout.

    ``None`` marks a value git could not resolve. Use the ``*_label`` helpers when
    rendering so unresolved values print as the historical sentinels.
    """

    software_name: str
    commit: Optional[str]
    working_tree_dirty: bool
    timestamp: str
    origin_url: Optional[str]
    origin_name: Optional[str] = None
    origin_owner: Optional[str] = None

    @property
    def commit_label(self) -> str:
        return self.commit if self.commit is not None else UNKNOWN

    @property
    def origin_url_label(self) -> str:
        return self.origin_url if self.origin_url is not None else UNKNOWN

    @property
    def origin_name_label(self) -> str:
        return self.origin_name or ""

    @property
    def origin_owner_label(self) -> str:
        return self.origin_owner or ""

    @property
    def archive_stem(self) -> str:
        """Base name used for the source archive."""
        return self.origin_name or self.software_name


@dataclass(frozen=True)
class BuildDefinition:
    """A template copy with override lines prepended."""

    template: Path
    target: Path
    overrides: Tuple[str, ...]


@dataclass(frozen=True)
class Mount:
    """A bind mount from the scratch root into the build container."""

    host_path: Path
    container_path: str

    def as_argument(self) -> str:
        return f"type=bind,source={self.host_path},target={self.container_path}"


@dataclass(frozen=True)
class BuildRun:
    """Everything needed to invoke the container for one package build."""

    package_format: PackageFormat
    runtime: ContainerRuntime
    scratch_root: Path
    mounts: Tuple[Mount, ...]
    image_tag: str
    run_command: str
    shell: str


@dataclass(frozen=True)
class ReleaseArtifactSet:
    """Files copied into the persistent release directory."""

    release_dir: Path
    files: Tuple[Path, ...] = ()

    def relative_paths(self) -> list[str]:
        return [path.relative_to(self.release_dir).as_posix() for path in self.files]


@dataclass(frozen=True)
class RunContext:
    """Immutable state for a single packaging run."""

    root: Path
    metadata: RepoMetadata
    settings: "RunSettings"
    scratch_root: Path
    release_dir: Path


@dataclass
class RunOutcome:
    """Result reported back to the CLI."""

    status: RunStatus
    exit_code: int
    message: str = ""
    artifacts: Optional[ReleaseArtifactSet] = None
    metadata: Optional[RepoMetadata] = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.status is RunStatus.DONE
