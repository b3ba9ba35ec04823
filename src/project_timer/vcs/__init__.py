"""Source-control integration."""

from .runner import FakeGitRunner, GitExecutionResult, GitNotFoundError, GitRunner, GitRunnerError
from .source_control import BranchSwitch, CommitDetected, GitSourceControl, SourceControlEvent

__all__ = [
    "BranchSwitch",
    "CommitDetected",
    "FakeGitRunner",
    "GitExecutionResult",
    "GitNotFoundError",
    "GitRunner",
    "GitRunnerError",
    "GitSourceControl",
    "SourceControlEvent",
]
