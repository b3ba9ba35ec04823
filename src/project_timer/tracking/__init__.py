"""Session tracking, aggregation and commit attribution."""

from .aggregation import AggregationEngine, InvalidDataFormatError
from .collaborators import (
    BranchSource,
    Notifier,
    ProjectResolver,
    ResolvedProject,
    WorkspaceProjectResolver,
    log_notifier,
)
from .commits import CommitAttributor, classify_commit_productivity, summarize_commits
from .debounce import ActivityDebouncer, ActivityPriority
from .file_types import FileTypeStats, FileTypeTracker
from .scheduler import ManualScheduler, Scheduler, ThreadedScheduler, TimerHandle
from .session import NoActiveProjectError, SessionStateMachine, classify_session_productivity

__all__ = [
    "ActivityDebouncer",
    "ActivityPriority",
    "AggregationEngine",
    "BranchSource",
    "CommitAttributor",
    "FileTypeStats",
    "FileTypeTracker",
    "InvalidDataFormatError",
    "ManualScheduler",
    "NoActiveProjectError",
    "Notifier",
    "ProjectResolver",
    "ResolvedProject",
    "Scheduler",
    "SessionStateMachine",
    "ThreadedScheduler",
    "TimerHandle",
    "WorkspaceProjectResolver",
    "classify_commit_productivity",
    "classify_session_productivity",
    "log_notifier",
    "summarize_commits",
]
