"""Fold completed sessions into per-project and per-day statistics."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Mapping

from pydantic import ValidationError

from ..storage import (
    CommitData,
    DailyRecord,
    DataStores,
    JsonDataStore,
    ProjectTime,
    StorageFailureError,
    TimeEntry,
    date_key,
    to_epoch_ms,
)
from ..storage.json_store import COMMITS_ADAPTER, DAYS_ADAPTER, PROJECTS_ADAPTER

logger = logging.getLogger(__name__)


class InvalidDataFormatError(ValueError):
    """Raised when an import payload fails structural validation."""


def _merge_durations(target: dict[str, float], source: Mapping[str, float]) -> None:
    for key, seconds in source.items():
        target[key] = target.get(key, 0) + seconds


class AggregationEngine:
    """Single writer for the project and day stores."""

    def __init__(
        self,
        stores: DataStores,
        *,
        storage: JsonDataStore | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._stores = stores
        self._storage = storage
        self._clock = clock or datetime.now
        self._listeners: list[Callable[[], None]] = []

    @property
    def stores(self) -> DataStores:
        return self._stores

    def register_listener(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def notify(self) -> None:
        for callback in list(self._listeners):
            try:
                callback()
            except Exception:
                logger.exception("Data-changed listener failed")

    def persist(self) -> bool:
        """Write both stores; failures are logged and the in-memory state kept."""

        if self._storage is None:
            return False
        try:
            self._storage.save(self._stores)
        except StorageFailureError as exc:
            logger.error("Error saving project timer data", extra={"error": str(exc)})
            return False
        return True

    def record_completed_session(
        self,
        project_name: str,
        project_path: str,
        start_time: datetime,
        end_time: datetime,
        duration: float,
        file_type_durations: Mapping[str, float] | None = None,
        branch: str = "",
        focus_time: float = 0,
        interruptions: int = 0,
        context_tag: str = "",
    ) -> TimeEntry | None:
        file_types = {key: float(seconds) for key, seconds in (file_type_durations or {}).items()}
        duration = float(duration)
        focus_time = float(focus_time)

        with self._stores.lock:
            project = self._stores.projects.get(project_name)
            if project is None:
                if not project_path:
                    logger.error(
                        "Cannot create a project entry without a path",
                        extra={"project": project_name},
                    )
                    return None
                project = ProjectTime(project_name=project_name, project_path=project_path)
                self._stores.projects[project_name] = project

            entry = TimeEntry(
                project_name=project_name,
                start_time=to_epoch_ms(start_time),
                end_time=to_epoch_ms(end_time),
                duration=duration,
                git_branch=branch,
                file_types=file_types,
                focus_time=focus_time,
                context_tag=context_tag,
            )
            project.entries.append(entry)
            project.total_time += duration
            project.last_active = to_epoch_ms(self._clock())

            _merge_durations(project.file_type_stats, file_types)
            if branch:
                project.branch_stats[branch] = project.branch_stats.get(branch, 0) + duration

            stats = project.productivity
            stats.total_sessions += 1
            stats.average_focus_time = (
                stats.average_focus_time * (stats.total_sessions - 1) + focus_time
            ) / stats.total_sessions
            stats.longest_session = max(stats.longest_session, duration)
            stats.interruption_count += interruptions

            day_key = date_key(start_time)
            day = self._stores.days.get(day_key)
            if day is None:
                day = DailyRecord(date=day_key, most_productive_hour=start_time.hour)
                self._stores.days[day_key] = day

            day.projects[project_name] = day.projects.get(project_name, 0) + duration
            day.total_time += duration
            day.focus_time += focus_time
            day.session_count += 1
            _merge_durations(day.file_types, file_types)
            if branch:
                day.branches[branch] = day.branches.get(branch, 0) + duration
            day.productivity.average_session_length = day.total_time / day.session_count
            day.productivity.longest_focus_session = max(
                day.productivity.longest_focus_session, focus_time
            )
            day.productivity.context_switches += interruptions

        logger.info(
            "Recorded session",
            extra={"project": project_name, "duration": duration, "day": day_key},
        )
        self.persist()
        self.notify()
        return entry

    def reset_today(self) -> None:
        """Drop today's record and every entry that started since local midnight."""

        now = self._clock()
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        cutoff = to_epoch_ms(midnight)

        with self._stores.lock:
            self._stores.days.pop(date_key(now), None)
            for project in self._stores.projects.values():
                project.entries = [entry for entry in project.entries if entry.start_time < cutoff]
                project.total_time = float(sum(entry.duration for entry in project.entries))

        logger.info("Reset today's stats", extra={"day": date_key(now)})
        self.persist()
        self.notify()

    def import_data(
        self,
        project_store: Any,
        day_store: Any,
        commit_store: Any = None,
    ) -> None:
        """Replace the stores wholesale. Nothing is merged."""

        if not isinstance(project_store, Mapping) or not isinstance(day_store, Mapping):
            raise InvalidDataFormatError("Invalid data format: project and day stores must be mappings")
        if commit_store is not None and not isinstance(commit_store, Mapping):
            raise InvalidDataFormatError("Invalid data format: commit store must be a mapping")

        try:
            projects = PROJECTS_ADAPTER.validate_python(_plain(project_store))
            days = DAYS_ADAPTER.validate_python(_plain(day_store))
            commits: dict[str, list[CommitData]] | None = (
                COMMITS_ADAPTER.validate_python(_plain(commit_store)) if commit_store is not None else None
            )
        except ValidationError as exc:
            raise InvalidDataFormatError(f"Invalid data format: {exc}") from exc

        with self._stores.lock:
            self._stores.projects = projects
            self._stores.days = days
            if commits is not None:
                self._stores.commits = commits

        logger.info("Imported data", extra={"projects": len(projects), "days": len(days)})
        self.persist()
        self.notify()


def _plain(store: Mapping[str, Any]) -> dict[str, Any]:
    """Accept either model instances or raw JSON-shaped values."""

    result: dict[str, Any] = {}
    for key, value in store.items():
        if isinstance(value, (ProjectTime, DailyRecord)):
            result[key] = value.model_dump(by_alias=True)
        elif isinstance(value, list):
            result[key] = [
                item.model_dump(by_alias=True) if isinstance(item, CommitData) else item for item in value
            ]
        else:
            result[key] = value
    return result


__all__ = ["AggregationEngine", "InvalidDataFormatError"]
