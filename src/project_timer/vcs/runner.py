"""Runner for the git CLI."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .utils import sanitize_environment


class GitRunnerError(RuntimeError):
    """Base class for git runner errors."""


class GitNotFoundError(GitRunnerError):
    """Raised when the git executable cannot be located."""


@dataclass(slots=True)
class GitExecutionResult:
    """Holds the outcome of a git invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class GitRunner:
    """Execute git commands with a sanitized environment."""

    def __init__(self, executable: Path | None = None, *, timeout: float = 10.0) -> None:
        self._executable_path = self._resolve_executable(executable)
        self._timeout = timeout

    @staticmethod
    def _resolve_executable(explicit: Path | None) -> Path:
        if explicit is not None:
            candidate = Path(explicit)
            if candidate.exists() and candidate.is_file():
                return candidate
            raise GitNotFoundError(f"git executable not found at {candidate}")

        binary = shutil.which("git")
        if binary is None:
            raise GitNotFoundError("git executable not found on PATH")
        return Path(binary)

    @property
    def executable(self) -> Path:
        return self._executable_path

    def run(self, *args: str, cwd: Path | None = None) -> GitExecutionResult:
        return self._invoke(*args, cwd=cwd)

    def _invoke(self, *args: str, cwd: Path | None = None) -> GitExecutionResult:
        cmd = [str(self._executable_path), *args]
        try:
            process = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd is not None else None,
                capture_output=True,
                stdin=subprocess.DEVNULL,
                env=sanitize_environment(),
                timeout=self._timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise GitRunnerError(f"git {' '.join(args)} failed: {exc}") from exc
        stdout = process.stdout.decode("utf-8", errors="replace")
        stderr = process.stderr.decode("utf-8", errors="replace")
        return GitExecutionResult(args=tuple(cmd), returncode=process.returncode, stdout=stdout, stderr=stderr)


class FakeGitRunner(GitRunner):
    """Test double that answers git commands from a response table."""

    def __init__(self, responses: Mapping[tuple[str, ...], str | GitExecutionResult] | None = None) -> None:  # type: ignore[override]
        self.responses: dict[tuple[str, ...], str | GitExecutionResult] = dict(responses or {})
        self._invocations: list[tuple[str, ...]] = []
        self._executable_path = Path("/tmp/fake-git")
        self._timeout = 0

    def _invoke(self, *args: str, cwd: Path | None = None) -> GitExecutionResult:  # type: ignore[override]
        self._invocations.append(tuple(args))
        response = self.responses.get(tuple(args))
        if response is None:
            return GitExecutionResult(args=tuple(args), returncode=128, stdout="", stderr="not a git repository")
        if isinstance(response, GitExecutionResult):
            return response
        return GitExecutionResult(args=tuple(args), returncode=0, stdout=response, stderr="")

    @property
    def invocations(self) -> list[tuple[str, ...]]:
        return self._invocations
