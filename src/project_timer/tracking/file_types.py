"""Per-extension timing of the file in focus."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePath
from typing import Callable

logger = logging.getLogger(__name__)

UNKNOWN_EXTENSION = ".unknown"

FILE_TYPE_CATEGORIES: dict[str, str] = {
    ".ts": "TypeScript",
    ".tsx": "React TypeScript",
    ".js": "JavaScript",
    ".jsx": "React JavaScript",
    ".py": "Python",
    ".java": "Java",
    ".kt": "Kotlin",
    ".c": "C",
    ".cpp": "C++",
    ".cs": "C#",
    ".go": "Go",
    ".rs": "Rust",
    ".rb": "Ruby",
    ".php": "PHP",
    ".swift": "Swift",
    ".scala": "Scala",
    ".sh": "Shell Script",
    ".ps1": "PowerShell",
    ".html": "HTML",
    ".htm": "HTML",
    ".css": "CSS",
    ".scss": "SCSS",
    ".vue": "Vue.js",
    ".svelte": "Svelte",
    ".json": "JSON",
    ".xml": "XML",
    ".yaml": "YAML",
    ".yml": "YAML",
    ".toml": "TOML",
    ".ini": "INI",
    ".cfg": "Config",
    ".env": "Environment",
    ".md": "Markdown",
    ".rst": "reStructuredText",
    ".txt": "Text",
    ".tex": "LaTeX",
    ".sql": "SQL",
    ".csv": "CSV",
    ".log": "Log File",
}


def file_extension(file_name: str) -> str:
    suffix = PurePath(file_name).suffix.lower()
    return suffix or UNKNOWN_EXTENSION


def file_category(extension: str) -> str:
    return FILE_TYPE_CATEGORIES.get(extension, "Other")


@dataclass(slots=True)
class FileTypeStats:
    extension: str
    category: str
    total_time: float = 0
    session_count: int = 0
    average_session_time: float = 0
    last_active: datetime | None = None


class FileTypeTracker:
    """Track how long each file extension stays in focus."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or datetime.now
        self._current: str = ""
        self._span_start: datetime | None = None
        self._stats: dict[str, FileTypeStats] = {}
        self._session: dict[str, float] = {}
        self._listeners: list[Callable[[str], None]] = []

    @property
    def current_file_type(self) -> str:
        return self._current

    @property
    def current_category(self) -> str:
        return file_category(self._current) if self._current else ""

    def on_file_type_change(self, callback: Callable[[str], None]) -> None:
        self._listeners.append(callback)

    def on_file_change(self, file_name: str) -> None:
        extension = file_extension(file_name)
        if extension == self._current:
            return

        self._close_span()
        self._current = extension
        self._span_start = self._clock()
        logger.debug("Active file type changed", extra={"extension": extension})
        for callback in list(self._listeners):
            callback(extension)

    def _close_span(self) -> None:
        if not self._current or self._span_start is None:
            return
        now = self._clock()
        seconds = (now - self._span_start).total_seconds()
        self._span_start = now
        if seconds <= 0:
            return

        stats = self._stats.get(self._current)
        if stats is None:
            stats = FileTypeStats(extension=self._current, category=file_category(self._current))
            self._stats[self._current] = stats
        stats.total_time += seconds
        stats.session_count += 1
        stats.average_session_time = stats.total_time / stats.session_count
        stats.last_active = now
        self._session[self._current] = self._session.get(self._current, 0) + seconds

    def start_session(self) -> None:
        self._session = {}
        self._span_start = self._clock() if self._current else None

    def end_session(self) -> dict[str, float]:
        """Close the running span and return seconds per extension since ``start_session``."""

        self._close_span()
        self._span_start = None
        durations, self._session = self._session, {}
        return durations

    def stats(self) -> dict[str, FileTypeStats]:
        return dict(self._stats)

    def top_file_types(self, limit: int = 5) -> list[FileTypeStats]:
        ranked = sorted(self._stats.values(), key=lambda item: item.total_time, reverse=True)
        return ranked[:limit]

    def category_stats(self) -> dict[str, dict[str, object]]:
        categories: dict[str, dict[str, object]] = {}
        for stats in self._stats.values():
            bucket = categories.setdefault(stats.category, {"total_time": 0.0, "file_types": []})
            bucket["total_time"] = float(bucket["total_time"]) + stats.total_time  # type: ignore[arg-type]
            bucket["file_types"].append(stats.extension)  # type: ignore[union-attr]
        return categories


__all__ = ["FILE_TYPE_CATEGORIES", "FileTypeStats", "FileTypeTracker", "file_category", "file_extension"]
