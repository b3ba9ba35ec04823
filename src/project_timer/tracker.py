"""Facade wiring the tracking core to its collaborators."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Callable

from .analytics import (
    AnalyticsEngine,
    CodeVelocityMetrics,
    ProductivityInsight,
    ProductivityPattern,
    WeeklyInsights,
)
from .config import TimerSettings
from .storage import CommitData, DataStores, JsonDataStore, WorkSession, date_key, dump_stores
from .tracking import (
    ActivityDebouncer,
    ActivityPriority,
    AggregationEngine,
    CommitAttributor,
    FileTypeTracker,
    InvalidDataFormatError,
    NoActiveProjectError,
    Notifier,
    Scheduler,
    SessionStateMachine,
    ThreadedScheduler,
    TimerHandle,
    WorkspaceProjectResolver,
    log_notifier,
)
from .vcs import BranchSwitch, CommitDetected, GitSourceControl, SourceControlEvent

logger = logging.getLogger(__name__)


class ProjectTimer:
    """Single entry point for raw editor events, commands and read accessors.

    Every public operation runs under the stores' lock, which is also the lock
    the threaded scheduler holds while firing timers.
    """

    def __init__(
        self,
        settings: TimerSettings,
        *,
        storage: JsonDataStore | None = None,
        scheduler: Scheduler | None = None,
        resolver: WorkspaceProjectResolver | None = None,
        source_control: GitSourceControl | None = None,
        notify: Notifier | None = None,
    ) -> None:
        self._settings = settings
        self._storage = storage if storage is not None else JsonDataStore(settings.data_path)
        self._stores = self._storage.load()
        self._lock = self._stores.lock
        self._scheduler = scheduler or ThreadedScheduler(self._lock)
        self._resolver = resolver or WorkspaceProjectResolver(settings.workspace_path)
        self._source_control = source_control or GitSourceControl(settings.workspace_path)
        self._notify = notify or log_notifier

        self._file_types = FileTypeTracker(clock=self._scheduler.now)
        self._aggregator = AggregationEngine(self._stores, storage=self._storage, clock=self._scheduler.now)
        self._session = SessionStateMachine(
            settings,
            scheduler=self._scheduler,
            resolver=self._resolver,
            aggregator=self._aggregator,
            branch_source=self._source_control,
            file_types=self._file_types,
            notify=self._notify,
        )
        self._file_types.on_file_type_change(self._session.on_file_type_change)
        self._commits = CommitAttributor(self._stores, session=self._session, aggregator=self._aggregator)
        self._debouncer = ActivityDebouncer(self._scheduler, self._session.on_activity)
        self._analytics = AnalyticsEngine(self._stores.days, self._stores.projects, clock=self._scheduler.now)
        self._aggregator.register_listener(self._sync_analytics)

        self._save_handle: TimerHandle | None = None
        self._poll_handle: TimerHandle | None = None
        self._started = False

    # --- wiring ---

    @property
    def settings(self) -> TimerSettings:
        return self._settings

    @property
    def stores(self) -> DataStores:
        return self._stores

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def analytics(self) -> AnalyticsEngine:
        return self._analytics

    @property
    def file_types(self) -> FileTypeTracker:
        return self._file_types

    def _sync_analytics(self) -> None:
        self._analytics.update_data(self._stores.days, self._stores.projects)

    def register_data_listener(self, callback: Callable[[], None]) -> None:
        self._aggregator.register_listener(callback)

    # --- raw inputs ---

    def record_activity(self, priority: ActivityPriority = ActivityPriority.NORMAL) -> None:
        with self._lock:
            self._debouncer.signal(priority)

    def report_file_change(self, file_name: str) -> None:
        """The file in focus changed: an activity signal and a possible file-type switch."""

        with self._lock:
            self._session.note_file(file_name)
            if self._settings.track_file_types:
                self._file_types.on_file_change(file_name)
            self._debouncer.signal(ActivityPriority.NORMAL)

    def handle_commit(self, event: CommitDetected) -> CommitData | None:
        with self._lock:
            return self._commits.on_commit(event)

    def handle_branch_switch(self, event: BranchSwitch) -> None:
        with self._lock:
            self._commits.on_branch_switch(event)

    def poll_source_control(self) -> list[SourceControlEvent]:
        if not self._settings.track_git_info:
            return []
        events = self._source_control.poll()
        with self._lock:
            for event in events:
                if isinstance(event, BranchSwitch):
                    self._commits.on_branch_switch(event)
                else:
                    self._commits.on_commit(event)
        return events

    # --- commands ---

    def start_tracking(self) -> bool:
        with self._lock:
            try:
                self._session.start_tracking()
            except NoActiveProjectError as exc:
                self._notify("warning", str(exc))
                return False
            return True

    def stop_tracking(self) -> WorkSession | None:
        with self._lock:
            return self._session.stop_tracking()

    def resume_tracking(self) -> bool:
        with self._lock:
            return self._session.resume_tracking()

    def reset_today(self) -> None:
        with self._lock:
            self._aggregator.reset_today()
        self._notify("info", "Today's stats have been reset.")

    def import_data(self, project_store: Any, day_store: Any, commit_store: Any = None) -> bool:
        with self._lock:
            try:
                self._aggregator.import_data(project_store, day_store, commit_store)
            except InvalidDataFormatError as exc:
                self._notify("error", str(exc))
                return False
        self._notify("info", "Data imported successfully.")
        return True

    def export_data(self) -> dict[str, Any]:
        with self._lock:
            return dump_stores(self._stores)

    def toggle_pomodoro(self) -> bool:
        with self._lock:
            enabled = self._session.toggle_pomodoro()
            self._settings = self._session.settings
            return enabled

    def update_settings(self, settings: TimerSettings) -> None:
        with self._lock:
            workspace_changed = settings.workspace_path != self._settings.workspace_path
            self._settings = settings
            self._session.update_settings(settings)
            if workspace_changed:
                self._switch_workspace(settings.workspace_path)
            self._aggregator.notify()

    def open_workspace(self, path: Path | str | None) -> str:
        """Point the tracker at another workspace, carrying an active session over to it."""

        with self._lock:
            workspace = Path(path) if path else None
            self._settings = self._settings.model_copy(update={"workspace_path": workspace})
            self._session.update_settings(self._settings)
            self._switch_workspace(workspace)
            return self._session.current_project

    def _switch_workspace(self, workspace: Path | None) -> None:
        was_tracking = self._session.is_tracking
        if was_tracking:
            self._session.stop_tracking()
        self._resolver.set_workspace(workspace)
        self._source_control.set_workspace(workspace)
        logger.info("Workspace changed", extra={"workspace": str(workspace) if workspace else None})
        if was_tracking:
            try:
                self._session.start_tracking()
            except NoActiveProjectError as exc:
                self._notify("warning", str(exc))

    # --- lifecycle ---

    def start(self) -> None:
        """Begin tracking the current workspace and arm the periodic save and git poll."""

        with self._lock:
            if self._started:
                return
            self._started = True
            self._schedule_save()
        if self._settings.track_git_info:
            # first poll records the baseline branch and HEAD
            self._source_control.poll()
            self._schedule_poll()
        self.start_tracking()

    def _schedule_save(self) -> None:
        self._save_handle = self._scheduler.call_later(self._settings.save_interval_seconds, self._on_save_due)

    def _on_save_due(self) -> None:
        self._aggregator.persist()
        if self._started:
            self._schedule_save()

    def _schedule_poll(self) -> None:
        if self._settings.git_poll_interval_seconds <= 0:
            return
        # git runs outside the store lock; poll_source_control locks only the dispatch
        self._poll_handle = self._scheduler.call_later(
            self._settings.git_poll_interval_seconds, self._on_poll_due, hold_lock=False
        )

    def _on_poll_due(self) -> None:
        self.poll_source_control()
        with self._lock:
            if self._started:
                self._schedule_poll()

    def dispose(self) -> None:
        """Stop tracking, cancel every timer and force a final save."""

        with self._lock:
            self._started = False
            self._debouncer.cancel()
            self._session.dispose()
            for handle in (self._save_handle, self._poll_handle):
                if handle is not None:
                    handle.cancel()
            self._save_handle = None
            self._poll_handle = None
            saved = self._aggregator.persist()
        if isinstance(self._scheduler, ThreadedScheduler):
            self._scheduler.shutdown()
        logger.info("Project timer disposed", extra={"saved": saved})

    # --- accessors ---

    @property
    def is_tracking(self) -> bool:
        return self._session.is_tracking

    @property
    def in_break(self) -> bool:
        return self._session.in_break

    @property
    def current_project(self) -> str:
        return self._session.current_project

    @property
    def current_branch(self) -> str:
        return self._session.current_branch

    @property
    def current_file_type(self) -> str:
        return self._session.current_file_type

    @property
    def session_interruptions(self) -> int:
        return self._session.interruptions

    @property
    def current_project_path(self) -> str:
        return self._session.current_project_path

    @property
    def last_activity(self) -> datetime | None:
        return self._session.last_activity

    def current_session(self) -> WorkSession | None:
        with self._lock:
            return self._session.current_session()

    def current_session_seconds(self) -> float:
        return self._session.current_session_seconds()

    def current_focus_seconds(self) -> float:
        return self._session.calculate_focus_time()

    def today_total_seconds(self) -> float:
        with self._lock:
            record = self._stores.days.get(date_key(self._scheduler.now()))
            return record.total_time if record is not None else 0.0

    def goal_progress(self) -> dict[str, dict[str, float]]:
        with self._lock:
            return self._goal_progress()

    def _goal_progress(self) -> dict[str, dict[str, float]]:
        today = self._scheduler.now().date()
        week_start = today - timedelta(days=today.weekday())
        weekly_total = 0.0
        for key, record in self._stores.days.items():
            try:
                day = date.fromisoformat(key)
            except ValueError:
                continue
            if day >= week_start:
                weekly_total += record.total_time

        def _progress(spent: float, goal_hours: float) -> dict[str, float]:
            goal = goal_hours * 3600
            return {"spent": spent, "goal": goal, "percentage": spent / goal * 100 if goal > 0 else 0.0}

        return {
            "daily": _progress(self.today_total_seconds(), self._settings.daily_goal_hours),
            "weekly": _progress(weekly_total, self._settings.weekly_goal_hours),
        }

    def commit_history(self, project_name: str | None = None) -> list[CommitData]:
        with self._lock:
            return self._commits.commit_history(project_name)

    def commit_stats(self) -> dict[str, Any]:
        with self._lock:
            return self._commits.commit_stats()

    # --- analytics, computed under the store lock ---

    def productivity_pattern(self, window_days: int = 30) -> ProductivityPattern:
        with self._lock:
            return self._analytics.productivity_pattern(window_days)

    def code_velocity_metrics(self) -> CodeVelocityMetrics:
        with self._lock:
            return self._analytics.code_velocity_metrics()

    def weekly_insights(self) -> WeeklyInsights:
        with self._lock:
            return self._analytics.weekly_insights()

    def productivity_insights(self) -> list[ProductivityInsight]:
        with self._lock:
            return self._analytics.productivity_insights()


__all__ = ["ProjectTimer"]
