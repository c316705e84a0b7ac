"""Tests for the containerized builder."""

from __future__ import annotations

from pathlib import Path

import pytest

from packagetool.container.builder import ContainerBuilder
from packagetool.errors import ContainerError, TemplateMissingError
from packagetool.formats import APK_PROFILE, RPM_PROFILE
from packagetool.models import PackageFormat
from tests._fixtures.project_builder import FakeContainerRuntime, ProjectBuilder, make_context


def test_plan_uses_format_mounts_and_tag(project_builder: ProjectBuilder, tmp_path: Path) -> None:
    scratch = tmp_path / "scratch"
    context = make_context(project_builder.path(), scratch, package_format=PackageFormat.RPM)

    build_run = ContainerBuilder(runner=FakeContainerRuntime()).plan(context, RPM_PROFILE)

    assert build_run.image_tag == "widget-rpm-builder"
    assert build_run.shell == "bash"
    assert build_run.run_command == "rpmbuild -ba /root/rpmbuild/SPECS/*.spec"
    assert [(mount.host_path, mount.container_path) for mount in build_run.mounts] == [
        (scratch / "SOURCES", "/root/rpmbuild/SOURCES"),
        (scratch / "SPECS", "/root/rpmbuild/SPECS"),
        (scratch / "RPMS", "/root/rpmbuild/RPMS"),
        (scratch / "SRPMS", "/root/rpmbuild/SRPMS"),
    ]


def test_build_image_pipes_recipe_on_stdin(project_builder: ProjectBuilder, tmp_path: Path) -> None:
    root = project_builder.with_apk_assets().path()
    context = make_context(root, tmp_path / "scratch")
    runtime = FakeContainerRuntime()
    builder = ContainerBuilder(runner=runtime)

    builder.build_image(context, APK_PROFILE, builder.plan(context, APK_PROFILE))

    assert runtime.calls == [["podman", "build", "-t", "widget-apk-builder", "-"]]
    assert runtime.stdin == [(root / "alpine/Containerfile").read_bytes()]


def test_run_composes_mounts_and_shell(project_builder: ProjectBuilder, tmp_path: Path) -> None:
    scratch = tmp_path / "scratch"
    context = make_context(project_builder.path(), scratch)
    runtime = FakeContainerRuntime()
    builder = ContainerBuilder(runner=runtime)

    builder.run(builder.plan(context, APK_PROFILE))

    assert runtime.calls == [
        [
            "podman",
            "run",
            "--rm",
            "--mount",
            f"type=bind,source={scratch / 'APKBUILD'},target=/APKBUILD",
            "--mount",
            f"type=bind,source={scratch / 'packages'},target=/root/packages",
            "widget-apk-builder",
            "ash",
            "-c",
            "abuild-keygen -a -n && abuild -F checksum && abuild -F srcpkg && abuild -F",
        ]
    ]


def test_non_zero_run_reports_exit_code(project_builder: ProjectBuilder, tmp_path: Path) -> None:
    context = make_context(project_builder.path(), tmp_path / "scratch")
    builder = ContainerBuilder(runner=FakeContainerRuntime(run_exit=2))

    with pytest.raises(ContainerError) as excinfo:
        builder.run(builder.plan(context, APK_PROFILE))

    assert excinfo.value.exit_code == 2
    assert "'2'" in str(excinfo.value)


def test_missing_runtime_binary(project_builder: ProjectBuilder, tmp_path: Path) -> None:
    def runner(args, cwd, input_data=None):  # type: ignore[no-untyped-def]
        raise FileNotFoundError(args[0])

    context = make_context(project_builder.path(), tmp_path / "scratch")
    builder = ContainerBuilder(runner=runner)

    with pytest.raises(ContainerError) as excinfo:
        builder.run(builder.plan(context, APK_PROFILE))

    assert excinfo.value.exit_code == 127


def test_missing_containerfile(project_builder: ProjectBuilder, tmp_path: Path) -> None:
    context = make_context(project_builder.path(), tmp_path / "scratch")
    runtime = FakeContainerRuntime()
    builder = ContainerBuilder(runner=runtime)

    with pytest.raises(TemplateMissingError):
        builder.build_image(context, APK_PROFILE, builder.plan(context, APK_PROFILE))
    assert runtime.calls == []


def test_build_image_sends_recipe_bytes_undecoded(project_builder: ProjectBuilder, tmp_path: Path) -> None:
    recipe = b"FROM alpine:latest\n# caf\xe9 \xff\n"
    root = project_builder.with_apk_assets().path()
    (root / "alpine" / "Containerfile").write_bytes(recipe)
    context = make_context(root, tmp_path / "scratch")
    runtime = FakeContainerRuntime()
    builder = ContainerBuilder(runner=runtime)

    builder.build_image(context, APK_PROFILE, builder.plan(context, APK_PROFILE))

    assert runtime.stdin == [recipe]
