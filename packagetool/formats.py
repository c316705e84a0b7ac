"""Per-format build profiles.

Each profile describes where a format's templates live, how its scratch tree is laid
out, how that tree is mounted into the builder container, which command runs the
native build tool, and which files count as release artifacts. The templater,
archiver, container builder and collector all read from the same record.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Tuple

from .models import PackageFormat


@dataclass(frozen=True)
class ArtifactRule:
    """Copies files matching ``source_glob`` (relative to the scratch root)."""

    source_glob: str
    destination: str = ""
    required: bool = True


@dataclass(frozen=True)
class MountSpec:
    """Scratch subdirectory to container path binding."""

    scratch_dir: str
    container_path: str


@dataclass(frozen=True)
class FormatProfile:
    """Everything format-specific about a packaging pipeline."""

    package_format: PackageFormat
    implemented: bool = True
    template_dir: Path = Path()
    template_patterns: Tuple[str, ...] = ()
    override_template: str = ""
    scratch_dirs: Tuple[str, ...] = ()
    definition_dir: str = ""
    source_dir: str = ""
    containerfile: Path = Path()
    mounts: Tuple[MountSpec, ...] = ()
    shell: str = "sh"
    run_command: str = ""
    artifacts: Tuple[ArtifactRule, ...] = ()

    @property
    def image_suffix(self) -> str:
        return f"{self.package_format.value}-builder"

    def image_tag(self, software_name: str) -> str:
        return f"{software_name}-{self.image_suffix}"


APK_PROFILE = FormatProfile(
    package_format=PackageFormat.APK,
    template_dir=Path("packaging/apk-akms"),
    template_patterns=("APKBUILD", "AKMBUILD"),
    override_template="apk.overrides.j2",
    scratch_dirs=("APKBUILD", "APKBUILD/src", "packages"),
    definition_dir="APKBUILD",
    source_dir="APKBUILD",
    containerfile=Path("alpine/Containerfile"),
    mounts=(
        MountSpec("APKBUILD", "/APKBUILD"),
        MountSpec("packages", "/root/packages"),
    ),
    shell="ash",
    run_command="abuild-keygen -a -n && abuild -F checksum && abuild -F srcpkg && abuild -F",
    artifacts=(ArtifactRule("packages/*/*.apk"),),
)

RPM_PROFILE = FormatProfile(
    package_format=PackageFormat.RPM,
    template_dir=Path("packaging/rpm-akmod"),
    template_patterns=("*.spec",),
    override_template="rpm.overrides.j2",
    scratch_dirs=("SOURCES", "SPECS", "RPMS", "SRPMS"),
    definition_dir="SPECS",
    source_dir="SOURCES",
    containerfile=Path("redhat/Containerfile"),
    mounts=(
        MountSpec("SOURCES", "/root/rpmbuild/SOURCES"),
        MountSpec("SPECS", "/root/rpmbuild/SPECS"),
        MountSpec("RPMS", "/root/rpmbuild/RPMS"),
        MountSpec("SRPMS", "/root/rpmbuild/SRPMS"),
    ),
    shell="bash",
    run_command="rpmbuild -ba /root/rpmbuild/SPECS/*.spec",
    artifacts=(
        ArtifactRule("SRPMS/*.src.rpm", destination="SRPMS"),
        ArtifactRule("RPMS/*/*.rpm", destination="RPMS"),
    ),
)

# deb and tarball are accepted targets whose pipelines do not exist yet.
DEB_PROFILE = FormatProfile(package_format=PackageFormat.DEB, implemented=False)
TARBALL_PROFILE = FormatProfile(package_format=PackageFormat.TARBALL, implemented=False)

PROFILES: Dict[PackageFormat, FormatProfile] = {
    profile.package_format: profile
    for profile in (APK_PROFILE, RPM_PROFILE, DEB_PROFILE, TARBALL_PROFILE)
}


def profile_for(package_format: PackageFormat) -> FormatProfile:
    return PROFILES[package_format]


__all__ = [
    "APK_PROFILE",
    "ArtifactRule",
    "DEB_PROFILE",
    "FormatProfile",
    "MountSpec",
    "PROFILES",
    "RPM_PROFILE",
    "TARBALL_PROFILE",
    "profile_for",
]
