"""Git-backed source-control collaborator: branch queries and commit/branch events."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Union

from .runner import GitNotFoundError, GitRunner, GitRunnerError

logger = logging.getLogger(__name__)

_FIELD_SEPARATOR = "\x1f"


@dataclass(slots=True, frozen=True)
class CommitDetected:
    hash: str
    message: str
    author: str
    date: datetime
    files_changed: int = 0
    lines_added: int = 0
    lines_deleted: int = 0


@dataclass(slots=True, frozen=True)
class BranchSwitch:
    from_branch: str
    to_branch: str


SourceControlEvent = Union[CommitDetected, BranchSwitch]


def parse_numstat(output: str) -> tuple[int, int, int]:
    """Return (files_changed, lines_added, lines_deleted) from ``git show --numstat`` output.

    Binary files report ``-`` for both counts and only count as a changed file.
    """

    files = added = deleted = 0
    for line in output.splitlines():
        parts = line.split("\t")
        if len(parts) < 3:
            continue
        files += 1
        if parts[0].isdigit():
            added += int(parts[0])
        if parts[1].isdigit():
            deleted += int(parts[1])
    return files, added, deleted


class GitSourceControl:
    """Answer branch queries for a workspace and turn HEAD movements into events.

    A missing git binary or repository is not an error: the branch reads as
    an empty string and polling yields no events.
    """

    def __init__(self, workspace: Path | str | None, runner: GitRunner | None = None) -> None:
        self._workspace = Path(workspace) if workspace else None
        self._runner = runner
        if self._runner is None:
            try:
                self._runner = GitRunner()
            except GitNotFoundError as exc:
                logger.info("Source control unavailable", extra={"error": str(exc)})
        self._last_branch: str | None = None
        self._last_head: str | None = None

    @property
    def available(self) -> bool:
        return self._runner is not None and self._workspace is not None

    def set_workspace(self, workspace: Path | str | None) -> None:
        self._workspace = Path(workspace) if workspace else None
        self._last_branch = None
        self._last_head = None

    def _git(self, *args: str) -> str | None:
        if self._runner is None or self._workspace is None:
            return None
        try:
            result = self._runner.run(*args, cwd=self._workspace)
        except GitRunnerError as exc:
            logger.debug("git invocation failed", extra={"error": str(exc)})
            return None
        if not result.ok:
            return None
        return result.stdout

    def current_branch(self) -> str:
        output = self._git("rev-parse", "--abbrev-ref", "HEAD")
        return output.strip() if output else ""

    def head_commit(self) -> str:
        output = self._git("rev-parse", "HEAD")
        return output.strip() if output else ""

    def commit_details(self, commit_hash: str) -> CommitDetected | None:
        header = self._git(
            "show",
            "-s",
            f"--format=%H{_FIELD_SEPARATOR}%an{_FIELD_SEPARATOR}%aI{_FIELD_SEPARATOR}%s",
            commit_hash,
        )
        if not header:
            return None
        fields = header.strip().split(_FIELD_SEPARATOR)
        if len(fields) < 4:
            return None
        full_hash, author, date_raw, message = fields[:4]
        try:
            # stored as local naive time, like every other timestamp in the stores
            date = datetime.fromisoformat(date_raw).astimezone().replace(tzinfo=None)
        except ValueError:
            date = datetime.now()

        numstat = self._git("show", "--numstat", "--format=", commit_hash) or ""
        files, added, deleted = parse_numstat(numstat)
        return CommitDetected(
            hash=full_hash,
            message=message,
            author=author,
            date=date,
            files_changed=files,
            lines_added=added,
            lines_deleted=deleted,
        )

    def poll(self) -> list[SourceControlEvent]:
        """Compare branch and HEAD with the previous poll and report what changed."""

        branch = self.current_branch()
        head = self.head_commit()
        events: list[SourceControlEvent] = []

        first_poll = self._last_branch is None and self._last_head is None
        if not first_poll:
            if branch and self._last_branch and branch != self._last_branch:
                events.append(BranchSwitch(from_branch=self._last_branch, to_branch=branch))
            elif head and self._last_head and head != self._last_head:
                details = self.commit_details(head)
                if details is not None:
                    events.append(details)

        self._last_branch = branch or self._last_branch
        self._last_head = head or self._last_head
        return events


__all__ = [
    "BranchSwitch",
    "CommitDetected",
    "GitSourceControl",
    "SourceControlEvent",
    "parse_numstat",
]
