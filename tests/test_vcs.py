from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from project_timer.vcs import (
    BranchSwitch,
    CommitDetected,
    FakeGitRunner,
    GitNotFoundError,
    GitRunner,
    GitSourceControl,
)
from project_timer.vcs.source_control import parse_numstat
from project_timer.vcs.utils import sanitize_environment

BRANCH = ("rev-parse", "--abbrev-ref", "HEAD")
HEAD = ("rev-parse", "HEAD")
SHOW_FORMAT = "--format=%H\x1f%an\x1f%aI\x1f%s"


def test_git_runner_executes_script(tmp_path: Path) -> None:
    script = tmp_path / "git"
    script.write_text("#!/bin/sh\necho \"$@\"\n", encoding="utf-8")
    script.chmod(0o755)

    runner = GitRunner(script)
    result = runner.run("rev-parse", "HEAD", cwd=tmp_path)

    assert result.ok
    assert result.stdout.strip() == "rev-parse HEAD"


def test_git_runner_not_found(tmp_path: Path) -> None:
    with pytest.raises(GitNotFoundError):
        GitRunner(tmp_path / "missing")


def test_fake_git_runner_records_invocations() -> None:
    fake = FakeGitRunner({BRANCH: "main\n"})

    assert fake.run(*BRANCH).stdout == "main\n"
    assert fake.run("status").returncode == 128
    assert fake.invocations == [BRANCH, ("status",)]


def test_sanitize_environment_isolates_git(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GIT_DIR", "/elsewhere/.git")
    env = sanitize_environment({"EXTRA": "1"})

    assert "GIT_DIR" not in env
    assert env["GIT_TERMINAL_PROMPT"] == "0"
    assert env["EXTRA"] == "1"


def test_parse_numstat_counts_binary_files() -> None:
    output = "10\t2\tsrc/a.py\n-\t-\timg.png\n3\t0\tREADME.md\n\n"

    assert parse_numstat(output) == (3, 13, 2)


def test_poll_reports_commits_and_branch_switches(tmp_path: Path) -> None:
    fake = FakeGitRunner({BRANCH: "main\n", HEAD: "aaa\n"})
    source = GitSourceControl(tmp_path, runner=fake)

    assert source.current_branch() == "main"
    assert source.poll() == []

    fake.responses[HEAD] = "bbb\n"
    fake.responses[("show", "-s", SHOW_FORMAT, "bbb")] = (
        "bbb\x1fDev\x1f2025-01-08T10:00:00+00:00\x1fAdd feature\n"
    )
    fake.responses[("show", "--numstat", "--format=", "bbb")] = "10\t2\tsrc/a.py\n3\t0\tREADME.md\n"

    expected_date = datetime(2025, 1, 8, 10, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert source.poll() == [
        CommitDetected(
            hash="bbb",
            message="Add feature",
            author="Dev",
            date=expected_date,
            files_changed=2,
            lines_added=13,
            lines_deleted=2,
        )
    ]
    assert source.poll() == []

    fake.responses[BRANCH] = "feature\n"
    assert source.poll() == [BranchSwitch(from_branch="main", to_branch="feature")]


def test_missing_repository_degrades_quietly(tmp_path: Path) -> None:
    source = GitSourceControl(tmp_path, runner=FakeGitRunner())

    assert source.current_branch() == ""
    assert source.poll() == []
    assert source.poll() == []


def test_no_workspace_means_no_queries() -> None:
    fake = FakeGitRunner({BRANCH: "main\n"})
    source = GitSourceControl(None, runner=fake)

    assert not source.available
    assert source.current_branch() == ""
    assert fake.invocations == []


def test_set_workspace_resets_baseline(tmp_path: Path) -> None:
    fake = FakeGitRunner({BRANCH: "main\n", HEAD: "aaa\n"})
    source = GitSourceControl(tmp_path, runner=fake)
    source.poll()

    fake.responses[BRANCH] = "other\n"
    source.set_workspace(tmp_path / "other")

    assert source.poll() == []
