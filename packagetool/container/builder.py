"""Builds the ephemeral builder image and runs the package build inside it."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable, List

from ..errors import ContainerError, TemplateMissingError
from ..formats import FormatProfile
from ..logging import get_logger
from ..models import BuildRun, Mount, RunContext

_COMMAND_NOT_FOUND = 127


class ContainerBuilder:
    """Drives ``podman``/``docker`` for a single packaging run."""

    def __init__(self, runner: Callable[..., str] | None = None) -> None:
        self._runner = runner or self._default_runner
        self.logger = get_logger("container")

    def plan(self, context: RunContext, profile: FormatProfile) -> BuildRun:
        mounts = tuple(
            Mount(host_path=context.scratch_root / spec.scratch_dir, container_path=spec.container_path)
            for spec in profile.mounts
        )
        return BuildRun(
            package_format=profile.package_format,
            runtime=context.settings.runtime,
            scratch_root=context.scratch_root,
            mounts=mounts,
            image_tag=profile.image_tag(context.metadata.software_name),
            run_command=profile.run_command,
            shell=profile.shell,
        )

    def build_image(self, context: RunContext, profile: FormatProfile, build_run: BuildRun) -> None:
        """Build ``build_run.image_tag`` from the format's Containerfile.

        The recipe bytes are piped on stdin instead of passed as a path so podman and
        docker treat it identically regardless of build-context handling or encoding.
        """
        recipe_path = context.root / profile.containerfile
        try:
            recipe = recipe_path.read_bytes()
        except FileNotFoundError as exc:
            raise TemplateMissingError(f"Container recipe not found: {recipe_path}") from exc
        except OSError as exc:
            raise ContainerError(f"Failed to read {recipe_path}: {exc}", exit_code=1) from exc

        self.logger.info("Building image %s with %s", build_run.image_tag, build_run.runtime.value)
        args = [build_run.runtime.value, "build", "-t", build_run.image_tag, "-"]
        self._invoke(args, cwd=context.root, input_data=recipe, action="Image build")

    def run(self, build_run: BuildRun) -> None:
        self.logger.info("Running %s build in %s", build_run.package_format.value, build_run.image_tag)
        self._invoke(
            self.run_arguments(build_run),
            cwd=build_run.scratch_root,
            input_data=None,
            action="Container",
        )

    @staticmethod
    def run_arguments(build_run: BuildRun) -> List[str]:
        args = [build_run.runtime.value, "run", "--rm"]
        for mount in build_run.mounts:
            args.extend(["--mount", mount.as_argument()])
        args.extend([build_run.image_tag, build_run.shell, "-c", build_run.run_command])
        return args

    # ------------------------------------------------------------------
    # Helpers

    def _invoke(self, args: List[str], *, cwd: Path, input_data: bytes | None, action: str) -> None:
        self.logger.debug("Invoking: %s", " ".join(args))
        try:
            self._runner(args, cwd=cwd, input_data=input_data)
        except subprocess.CalledProcessError as exc:
            raise ContainerError(
                f"{action} exited with non-zero status '{exc.returncode}'",
                exit_code=exc.returncode,
            ) from exc
        except FileNotFoundError as exc:
            raise ContainerError(
                f"Container runtime '{args[0]}' is not installed",
                exit_code=_COMMAND_NOT_FOUND,
            ) from exc

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        input_data: bytes | None = None,
    ) -> str:
        subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            input=input_data,
        )
        return ""


__all__ = ["ContainerBuilder"]
