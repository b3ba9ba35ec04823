"""Interfaces the tracker consumes from its environment."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]


def log_notifier(level: str, message: str) -> None:
    """Default notifier: surface user-facing messages through logging."""

    getattr(logger, level, logger.info)(message)


@dataclass(slots=True, frozen=True)
class ResolvedProject:
    name: str
    path: str


class ProjectResolver(Protocol):
    def resolve(self) -> ResolvedProject | None:
        ...


class BranchSource(Protocol):
    def current_branch(self) -> str:
        ...


class WorkspaceProjectResolver:
    """Resolve the project from a workspace directory: its base name is the project name."""

    def __init__(self, workspace_path: Path | str | None = None) -> None:
        self._workspace = Path(workspace_path) if workspace_path else None

    @property
    def workspace(self) -> Path | None:
        return self._workspace

    def set_workspace(self, workspace_path: Path | str | None) -> None:
        self._workspace = Path(workspace_path) if workspace_path else None

    def resolve(self) -> ResolvedProject | None:
        if self._workspace is None or not self._workspace.exists():
            return None
        path = self._workspace.resolve()
        return ResolvedProject(name=path.name, path=str(path))


__all__ = [
    "BranchSource",
    "Notifier",
    "ProjectResolver",
    "ResolvedProject",
    "WorkspaceProjectResolver",
    "log_notifier",
]
