"""Prepends metadata overrides to format-native build definitions."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound

from ..errors import TemplateMissingError
from ..formats import FormatProfile
from ..logging import get_logger
from ..models import BuildDefinition, RepoMetadata, RunContext

_GLOB_CHARS = frozenset("*?[")


def override_variables(metadata: RepoMetadata) -> Dict[str, str]:
    """Values substituted into every override template."""
    return {
        "source_modname": metadata.software_name,
        "repo_name": metadata.origin_name_label,
        "repo_owner": metadata.origin_owner_label,
        "repo_commit": metadata.commit_label,
        "repo_commit_date": metadata.timestamp,
        "package_timestamp": metadata.timestamp,
    }


class BuildDefinitionTemplater:
    """Writes scratch copies of a format's templates with an override block on top."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        self.logger = get_logger("templating")

    def render_overrides(self, profile: FormatProfile, metadata: RepoMetadata) -> List[str]:
        try:
            template = self._env.get_template(profile.override_template)
        except TemplateNotFound as exc:
            raise TemplateMissingError(
                f"No override template '{profile.override_template}' for {profile.package_format.value}"
            ) from exc
        rendered = template.render(**override_variables(metadata))
        return [line for line in rendered.splitlines() if line.strip()]

    def render(self, context: RunContext, profile: FormatProfile) -> List[BuildDefinition]:
        sources = self._find_templates(context.root, profile)
        overrides = tuple(self.render_overrides(profile, context.metadata))
        header = "".join(f"{line}\n" for line in overrides).encode("utf-8")

        target_dir = context.scratch_root / profile.definition_dir
        target_dir.mkdir(parents=True, exist_ok=True)

        definitions: List[BuildDefinition] = []
        for source in sources:
            target = target_dir / source.name
            # Template bytes are appended untouched; only the scratch copy carries overrides.
            target.write_bytes(header + source.read_bytes())
            definitions.append(BuildDefinition(template=source, target=target, overrides=overrides))
            self.logger.debug("Wrote build definition %s", target)

        self.logger.info(
            "Prepared %d build definition(s) for %s", len(definitions), profile.package_format.value
        )
        return definitions

    def _find_templates(self, root: Path, profile: FormatProfile) -> List[Path]:
        template_dir = root / profile.template_dir
        found: List[Path] = []
        for pattern in profile.template_patterns:
            if _is_glob(pattern):
                matches = sorted(path for path in template_dir.glob(pattern) if path.is_file())
                if not matches:
                    raise TemplateMissingError(
                        f"No templates matching '{pattern}' in {template_dir}"
                    )
                found.extend(matches)
            else:
                candidate = template_dir / pattern
                if not candidate.is_file():
                    raise TemplateMissingError(f"Template not found: {candidate}")
                found.append(candidate)
        if not found:
            raise TemplateMissingError(
                f"No build-definition templates declared for {profile.package_format.value}"
            )
        return found


def _is_glob(pattern: str) -> bool:
    return any(char in _GLOB_CHARS for char in pattern)


__all__ = ["BuildDefinitionTemplater", "override_variables"]
