"""Attribute live session time to detected commits."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from ..storage import CommitData, DataStores, Productivity
from ..vcs import BranchSwitch, CommitDetected
from .aggregation import AggregationEngine
from .session import SessionStateMachine

logger = logging.getLogger(__name__)


def classify_commit_productivity(time_spent: float, lines_added: int, lines_deleted: int) -> Productivity:
    """Classify a commit from its change volume per minute of attributed time."""

    minutes = time_spent / 60
    changes_per_minute = (lines_added + lines_deleted) / minutes if minutes > 0 else 0.0

    if changes_per_minute > 10 and time_spent > 300:
        return "high"
    if changes_per_minute > 5 or time_spent > 600:
        return "medium"
    return "low"


def summarize_commits(commits: Iterable[CommitData]) -> dict[str, Any]:
    summary: dict[str, Any] = {
        "commits": 0,
        "time_spent": 0.0,
        "average_time_per_commit": 0.0,
        "files_changed": 0,
        "lines_added": 0,
        "lines_deleted": 0,
        "productivity": {"high": 0, "medium": 0, "low": 0},
    }
    for commit in commits:
        summary["commits"] += 1
        summary["time_spent"] += commit.time_spent
        summary["files_changed"] += commit.files_changed
        summary["lines_added"] += commit.lines_added
        summary["lines_deleted"] += commit.lines_deleted
        summary["productivity"][commit.productivity] += 1
    if summary["commits"]:
        summary["average_time_per_commit"] = summary["time_spent"] / summary["commits"]
    return summary


class CommitAttributor:
    """Annotate commits with the elapsed time of the live session.

    Attribution never stops or resets the session.
    """

    def __init__(
        self,
        stores: DataStores,
        *,
        session: SessionStateMachine,
        aggregator: AggregationEngine,
    ) -> None:
        self._stores = stores
        self._session = session
        self._aggregator = aggregator

    def on_commit(self, event: CommitDetected) -> CommitData | None:
        project = self._session.current_project
        if not project:
            logger.debug("Ignoring commit without an active project", extra={"commit": event.hash})
            return None

        time_spent = self._session.current_session_seconds()
        record = CommitData(
            commit_hash=event.hash,
            message=event.message,
            author=event.author,
            date=event.date,
            branch=self._session.current_branch,
            time_spent=time_spent,
            files_changed=event.files_changed,
            lines_added=event.lines_added,
            lines_deleted=event.lines_deleted,
            productivity=classify_commit_productivity(time_spent, event.lines_added, event.lines_deleted),
        )

        with self._stores.lock:
            self._stores.commits.setdefault(project, []).append(record)

        logger.info(
            "Attributed commit",
            extra={
                "project": project,
                "commit": event.hash[:12],
                "time_spent": time_spent,
                "productivity": record.productivity,
            },
        )
        self._aggregator.persist()
        self._aggregator.notify()
        return record

    def on_branch_switch(self, event: BranchSwitch) -> None:
        self._session.on_branch_switch(event.from_branch, event.to_branch)

    def commit_history(self, project_name: str | None = None) -> list[CommitData]:
        """Commits of a project (the current one by default), newest first."""

        project = project_name or self._session.current_project
        commits = list(self._stores.commits.get(project, []))
        commits.sort(key=lambda commit: commit.date, reverse=True)
        return commits

    def commit_stats(self) -> dict[str, Any]:
        projects = {name: summarize_commits(commits) for name, commits in self._stores.commits.items()}
        total = summarize_commits(commit for commits in self._stores.commits.values() for commit in commits)
        return {"total": total, "projects": projects}


__all__ = ["CommitAttributor", "classify_commit_productivity", "summarize_commits"]
