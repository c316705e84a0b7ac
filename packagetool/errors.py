"""Error taxonomy shared by every packaging stage."""

from __future__ import annotations


class PackageToolError(RuntimeError):
    """Base class for fatal packaging failures."""


class ConfigurationError(PackageToolError):
    """Raised when a required option is missing or invalid."""


class TemplateMissingError(PackageToolError):
    """Raised when a build-definition template or container recipe is absent."""


class ArchiveError(PackageToolError):
    """Raised when the source archive cannot be written."""


class ContainerError(PackageToolError):
    """Raised when the container image build or run exits non-zero."""

    def __init__(self, message: str, *, exit_code: int) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class ArtifactCollectionError(PackageToolError):
    """Raised when expected artifacts are missing or cannot be copied."""


class ReleaseDirectoryError(PackageToolError):
    """Raised when the release directory cannot be reset."""


__all__ = [
    "ArchiveError",
    "ArtifactCollectionError",
    "ConfigurationError",
    "ContainerError",
    "PackageToolError",
    "ReleaseDirectoryError",
    "TemplateMissingError",
]
