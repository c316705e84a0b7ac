"""Tests for repository metadata resolution."""

from __future__ import annotations

import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from packagetool.git import metadata as metadata_module
from packagetool.git.metadata import RepoMetadataResolver, describe, split_origin_url
from tests._fixtures.project_builder import FakeGit

NOW = datetime(2026, 10, 19, 9, 30, 0, tzinfo=timezone(timedelta(hours=2)))


def _resolver(git: FakeGit) -> RepoMetadataResolver:
    return RepoMetadataResolver(runner=git, clock=lambda: NOW)


def test_clean_tree_uses_commit_date(tmp_path: Path) -> None:
    git = FakeGit(
        commit="abc123",
        dirty=False,
        commit_date="2024-05-01T12:00:00+00:00",
        origin="https://example.com/acme/widget",
    )

    metadata = _resolver(git).resolve(tmp_path / "widget")

    assert metadata.software_name == "widget"
    assert metadata.commit == "abc123"
    assert metadata.working_tree_dirty is False
    assert metadata.timestamp == "2024-05-01T12:00:00+00:00"
    assert metadata.origin_url == "https://example.com/acme/widget"
    assert metadata.origin_name == "widget"
    assert metadata.origin_owner == "acme"
    assert ["git", "show", "-s", "--format=%cd", "--date=iso-strict", "abc123"] in git.calls


def test_dirty_tree_uses_current_time(tmp_path: Path) -> None:
    git = FakeGit(commit="abc123", dirty=True, commit_date="2024-05-01T12:00:00+00:00")

    metadata = _resolver(git).resolve(tmp_path)

    assert metadata.working_tree_dirty is True
    assert metadata.timestamp == "2026-10-19T09:30:00+02:00"
    assert not any(call[:2] == ["git", "show"] for call in git.calls)


def test_missing_repository_degrades_to_sentinels(tmp_path: Path) -> None:
    metadata = _resolver(FakeGit()).resolve(tmp_path, software_name="gadget")

    assert metadata.software_name == "gadget"
    assert metadata.commit is None
    assert metadata.commit_label == "unknown"
    assert metadata.working_tree_dirty is True
    assert metadata.origin_url_label == "unknown"
    assert metadata.origin_name_label == ""
    assert metadata.origin_owner_label == ""
    assert datetime.fromisoformat(metadata.timestamp).tzinfo is not None


def test_missing_git_binary_is_not_fatal(tmp_path: Path) -> None:
    def runner(args, cwd, capture_output=False):  # type: ignore[no-untyped-def]
        raise FileNotFoundError("git")

    metadata = RepoMetadataResolver(runner=runner).resolve(tmp_path)

    assert metadata.commit is None
    assert metadata.working_tree_dirty is True
    assert metadata.timestamp
    assert datetime.fromisoformat(metadata.timestamp).utcoffset() is not None


def test_unparseable_commit_date_falls_back_to_now(tmp_path: Path) -> None:
    git = FakeGit(commit="abc123", dirty=False, commit_date="yesterday-ish")

    metadata = _resolver(git).resolve(tmp_path)

    assert metadata.timestamp == NOW.isoformat(timespec="seconds")


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://example.com/acme/widget", ("acme", "widget")),
        ("git@github.com:acme/widget.git", ("acme", "widget.git")),
        ("https://example.com/acme/widget/", ("acme", "widget")),
        ("widget", (None, "widget")),
    ],
)
def test_split_origin_url(url: str, expected: tuple) -> None:
    assert split_origin_url(url) == expected


def test_describe_lists_every_field(tmp_path: Path) -> None:
    metadata = _resolver(FakeGit()).resolve(tmp_path, software_name="gadget")

    report = describe(metadata)

    assert report.startswith("Determined the following information")
    assert "\tsoftware_name:gadget" in report
    assert "\tcurrent_commit:unknown" in report
    assert "\tworking_tree_changed:true" in report
    assert "\torigin_url:unknown" in report
    assert "\torigin_owner:" in report


def test_undecodable_git_output_is_treated_as_unavailable(tmp_path: Path) -> None:
    git = FakeGit(commit="abc123", dirty=False, commit_date="2024-05-01T12:00:00+00:00")

    def runner(args, cwd, capture_output=False):  # type: ignore[no-untyped-def]
        if args[:3] == ["git", "remote", "get-url"]:
            raise UnicodeDecodeError("utf-8", b"\xe9", 0, 1, "invalid continuation byte")
        return git(args, cwd=cwd, capture_output=capture_output)

    metadata = RepoMetadataResolver(runner=runner, clock=lambda: NOW).resolve(tmp_path)

    assert metadata.commit == "abc123"
    assert metadata.origin_url is None
    assert metadata.origin_url_label == "unknown"


def test_default_runner_replaces_undecodable_bytes(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict = {}

    def fake_run(args, **kwargs):  # type: ignore[no-untyped-def]
        seen.update(kwargs)
        raw = b"https://example.com/acm\xe9/widget\n"
        return subprocess.CompletedProcess(args, 0, stdout=raw.decode("utf-8", errors=kwargs["errors"]))

    monkeypatch.setattr(metadata_module.subprocess, "run", fake_run)

    output = RepoMetadataResolver._default_runner(
        ["git", "remote", "get-url", "origin"], cwd=tmp_path, capture_output=True
    )

    assert seen["errors"] == "replace"
    assert seen["text"] is True
    assert output == "https://example.com/acm\ufffd/widget\n"
