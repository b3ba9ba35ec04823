from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace

import pytest

from project_timer.config import TimerSettings
from project_timer.storage import DataStores
from project_timer.tracking import (
    AggregationEngine,
    CommitAttributor,
    ManualScheduler,
    ResolvedProject,
    SessionStateMachine,
    classify_commit_productivity,
)
from project_timer.vcs import BranchSwitch, CommitDetected


class StubResolver:
    def __init__(self, project: ResolvedProject | None) -> None:
        self.project = project

    def resolve(self) -> ResolvedProject | None:
        return self.project


class StubBranches:
    def current_branch(self) -> str:
        return "main"


def build(project: ResolvedProject | None = ResolvedProject("demo", "/work/demo")):
    scheduler = ManualScheduler(datetime(2025, 1, 8, 9, 0, 0))
    stores = DataStores()
    aggregator = AggregationEngine(stores, clock=scheduler.now)
    session = SessionStateMachine(
        TimerSettings(inactivity_threshold_minutes=60),
        scheduler=scheduler,
        resolver=StubResolver(project),
        aggregator=aggregator,
        branch_source=StubBranches(),
        notify=lambda level, message: None,
    )
    attributor = CommitAttributor(stores, session=session, aggregator=aggregator)
    return SimpleNamespace(scheduler=scheduler, stores=stores, session=session, attributor=attributor)


def commit(hash_: str, day: int = 8, *, added: int = 30, deleted: int = 10) -> CommitDetected:
    return CommitDetected(
        hash=hash_,
        message=f"commit {hash_}",
        author="Dev",
        date=datetime(2025, 1, day, 12, 0),
        files_changed=2,
        lines_added=added,
        lines_deleted=deleted,
    )


@pytest.mark.parametrize(
    ("time_spent", "added", "deleted", "expected"),
    [
        (400, 30, 10, "medium"),
        (120, 2, 0, "low"),
        (600, 200, 0, "high"),
        (700, 0, 0, "medium"),
        (0, 50, 0, "low"),
    ],
)
def test_classify_commit_productivity(time_spent, added, deleted, expected) -> None:
    assert classify_commit_productivity(time_spent, added, deleted) == expected


def test_commit_without_project_is_ignored() -> None:
    env = build(project=None)

    assert env.attributor.on_commit(commit("abc")) is None
    assert env.stores.commits == {}


def test_commit_attributes_live_session_time() -> None:
    env = build()
    env.session.start_tracking()
    env.scheduler.advance(400)

    record = env.attributor.on_commit(commit("abc"))

    assert record is not None
    assert record.time_spent == 400
    assert record.productivity == "medium"
    assert record.branch == "main"
    assert env.stores.commits["demo"] == [record]
    assert env.session.is_tracking
    assert env.session.current_session_seconds() == 400


def test_history_is_newest_first_for_current_project() -> None:
    env = build()
    env.session.start_tracking()
    env.attributor.on_commit(commit("older", day=6))
    env.attributor.on_commit(commit("newest", day=8))
    env.attributor.on_commit(commit("middle", day=7))

    history = env.attributor.commit_history()

    assert [item.commit_hash for item in history] == ["newest", "middle", "older"]
    assert env.attributor.commit_history("other") == []


def test_commit_stats_totals() -> None:
    env = build()
    env.session.start_tracking()
    env.scheduler.advance(400)
    env.attributor.on_commit(commit("a"))
    env.scheduler.advance(300)
    env.attributor.on_commit(commit("b", added=2, deleted=0))

    stats = env.attributor.commit_stats()

    demo = stats["projects"]["demo"]
    assert demo["commits"] == 2
    assert demo["time_spent"] == 1100
    assert demo["average_time_per_commit"] == 550
    assert demo["lines_added"] == 32
    assert demo["lines_deleted"] == 10
    assert demo["files_changed"] == 4
    assert demo["productivity"] == {"high": 0, "medium": 2, "low": 0}
    assert stats["total"]["commits"] == 2


def test_branch_switch_updates_session_branch() -> None:
    env = build()
    env.session.start_tracking()

    env.attributor.on_branch_switch(BranchSwitch(from_branch="main", to_branch="feature"))

    assert env.session.current_branch == "feature"
    assert env.session.current_session().git_branch == "feature"
