"""Data models for persistent tracking."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Productivity = Literal["high", "medium", "low"]


def to_epoch_ms(moment: datetime) -> float:
    """Convert a datetime to epoch milliseconds (the persisted timestamp unit)."""

    return float(round(moment.timestamp() * 1000))


def from_epoch_ms(value: float) -> datetime:
    """Convert persisted epoch milliseconds back to a local datetime."""

    return datetime.fromtimestamp(value / 1000)


def date_key(moment: date) -> str:
    """Return the local calendar date as zero-padded YYYY-MM-DD."""

    return f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"


class _StoreModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimeEntry(_StoreModel):
    """One completed tracking session attributed to a project."""

    project_name: str
    start_time: float = Field(..., description="Epoch milliseconds.")
    end_time: float = Field(..., description="Epoch milliseconds.")
    duration: float = Field(..., description="Seconds.")
    git_branch: str = ""
    file_types: dict[str, float] = Field(default_factory=dict)
    focus_time: float = 0.0
    context_tag: str = ""


class ProjectProductivity(_StoreModel):
    average_focus_time: float = 0.0
    longest_session: float = 0.0
    total_sessions: int = 0
    interruption_count: int = 0


class ProjectTime(_StoreModel):
    """Cumulative record for one project."""

    project_name: str
    project_path: str = ""
    total_time: float = 0.0
    entries: list[TimeEntry] = Field(default_factory=list)
    last_active: float | None = None
    file_type_stats: dict[str, float] = Field(default_factory=dict)
    branch_stats: dict[str, float] = Field(default_factory=dict)
    productivity: ProjectProductivity = Field(default_factory=ProjectProductivity)


class DailyProductivity(_StoreModel):
    average_session_length: float = 0.0
    longest_focus_session: float = 0.0
    context_switches: int = 0


class DailyRecord(_StoreModel):
    """Cumulative record for one local calendar day."""

    date: str
    projects: dict[str, float] = Field(default_factory=dict)
    total_time: float = 0.0
    file_types: dict[str, float] = Field(default_factory=dict)
    branches: dict[str, float] = Field(default_factory=dict)
    focus_time: float = 0.0
    session_count: int = 0
    most_productive_hour: int = 0
    productivity: DailyProductivity = Field(default_factory=DailyProductivity)


class CommitData(_StoreModel):
    """A detected commit and the session time attributed to it."""

    commit_hash: str
    message: str = ""
    author: str = ""
    date: datetime
    branch: str = ""
    time_spent: float = 0.0
    files_changed: int = 0
    lines_added: int = 0
    lines_deleted: int = 0
    productivity: Productivity = "low"


@dataclass(slots=True)
class WorkSession:
    """Live, in-memory view of the session being tracked."""

    start_time: datetime
    git_branch: str = ""
    end_time: datetime | None = None
    duration: float = 0.0
    focus_time: float = 0.0
    interruptions: int = 0
    files_worked_on: list[str] = field(default_factory=list)
    productivity: Productivity = "medium"


@dataclass(slots=True)
class DataStores:
    """The three mutable stores plus the lock guarding their mutation."""

    projects: dict[str, ProjectTime] = field(default_factory=dict)
    days: dict[str, DailyRecord] = field(default_factory=dict)
    commits: dict[str, list[CommitData]] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)


__all__ = [
    "CommitData",
    "DailyProductivity",
    "DailyRecord",
    "DataStores",
    "ProjectProductivity",
    "ProjectTime",
    "Productivity",
    "TimeEntry",
    "WorkSession",
    "date_key",
    "from_epoch_ms",
    "to_epoch_ms",
]
