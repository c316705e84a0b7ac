"""Configuration loading for packagetool (.packagetool.yml)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar

import yaml

from .errors import ConfigurationError
from .models import ContainerRuntime, PackageFormat, PrintMode

CONFIG_FILENAME = ".packagetool.yml"
DEFAULT_RELEASE_DIR = ".release"

_EnumT = TypeVar("_EnumT", bound=Enum)


@dataclass
class PackageToolConfig:
    """Represents the settings defined in .packagetool.yml."""

    root: Path
    runtime: Optional[str] = None
    package_system: Optional[str] = None
    software_name: Optional[str] = None
    keep_temp_dir: bool = False
    print_temp_dir: Optional[str] = None
    release_dir: Optional[str] = None


@dataclass(frozen=True)
class RunSettings:
    """Validated options for a single run, after merging CLI and file values."""

    runtime: ContainerRuntime
    package_format: PackageFormat
    software_name: Optional[str] = None
    keep_temp_dir: bool = False
    print_temp_dir: PrintMode = PrintMode.NONE
    release_dir: Path = Path(DEFAULT_RELEASE_DIR)


def load_config(root: Path) -> PackageToolConfig:
    """Load configuration from ``root``; a missing file yields defaults."""
    root = root.expanduser().resolve()
    config_file = root / CONFIG_FILENAME
    if not config_file.exists():
        return PackageToolConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    return PackageToolConfig(
        root=root,
        runtime=_as_str(data.get("runtime")),
        package_system=_as_str(data.get("package_system")),
        software_name=_as_str(data.get("software_name")),
        keep_temp_dir=_as_bool(data.get("keep_temp_dir")) or False,
        print_temp_dir=_as_str(data.get("print_temp_dir")),
        release_dir=_as_str(data.get("release_dir")),
    )


def resolve_settings(
    config: PackageToolConfig,
    *,
    runtime: str | None = None,
    package_system: str | None = None,
    software_name: str | None = None,
    keep_temp_dir: bool | None = None,
    print_temp_dir: str | None = None,
    release_dir: str | Path | None = None,
) -> RunSettings:
    """Merge CLI values over file values and validate the result."""
    runtime_value = runtime or config.runtime
    if not runtime_value:
        raise ConfigurationError("Required option 'RUNTIME' is unset")
    format_value = package_system or config.package_system
    if not format_value:
        raise ConfigurationError("Required option 'PACKAGE_SYSTEM' is unset")

    release_value = release_dir or config.release_dir or DEFAULT_RELEASE_DIR
    release_path = Path(release_value).expanduser()
    if not release_path.is_absolute():
        release_path = config.root / release_path
    release_path = release_path.resolve()
    ensure_disposable_release_dir(release_path, config.root)

    return RunSettings(
        runtime=_as_enum(ContainerRuntime, runtime_value, "runtime"),
        package_format=_as_enum(PackageFormat, format_value, "package system"),
        software_name=software_name or config.software_name,
        keep_temp_dir=config.keep_temp_dir if keep_temp_dir is None else keep_temp_dir,
        print_temp_dir=_as_enum(
            PrintMode, print_temp_dir or config.print_temp_dir or PrintMode.NONE.value, "print_temp_dir"
        ),
        release_dir=release_path,
    )


def ensure_disposable_release_dir(release_dir: Path, root: Path) -> None:
    """Reject release directories whose wipe would delete the project or a home dir."""
    release_dir = release_dir.resolve()
    root = root.resolve()
    if release_dir == root or release_dir in root.parents:
        raise ConfigurationError(
            f"Release directory {release_dir} must not be the project root or one of its parents"
        )
    if release_dir == Path.home().resolve():
        raise ConfigurationError(f"Release directory {release_dir} must not be the home directory")


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_enum(enum_type: Type[_EnumT], value: str, label: str) -> _EnumT:
    try:
        return enum_type(value)
    except ValueError:
        valid = "|".join(member.value for member in enum_type)
        raise ConfigurationError(
            f"Invalid {label} '{value}', must be one of '({valid})'"
        ) from None


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_RELEASE_DIR",
    "ensure_disposable_release_dir",
    "PackageToolConfig",
    "RunSettings",
    "load_config",
    "resolve_settings",
]
