"""Session tracking state machine."""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime

from ..config import TimerSettings
from ..storage import Productivity, WorkSession
from .aggregation import AggregationEngine
from .collaborators import BranchSource, Notifier, ProjectResolver, log_notifier
from .debounce import ActivityPriority
from .file_types import FileTypeTracker
from .scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

MIN_SESSION_SECONDS = 1.0
RAPID_SWITCH_SECONDS = 60.0


class NoActiveProjectError(RuntimeError):
    """Raised when tracking is requested but no workspace project resolves."""


def classify_session_productivity(duration: float, focus_time: float, interruptions: int) -> Productivity:
    """Classify a finished session from its focus ratio and hourly interruption rate."""

    if duration <= 0:
        return "low"
    focus_ratio = focus_time / duration
    interruption_rate = interruptions / (duration / 3600)

    if focus_ratio > 0.8 and interruption_rate < 2:
        return "high"
    if focus_ratio > 0.5 and interruption_rate < 5:
        return "medium"
    return "low"


class SessionStateMachine:
    """Owns the Idle/Tracking state, the live WorkSession and every session timer.

    Inactivity is the only automatic way out of Tracking; activity while Idle
    schedules a delayed resume that re-checks the state when it fires.
    """

    def __init__(
        self,
        settings: TimerSettings,
        *,
        scheduler: Scheduler,
        resolver: ProjectResolver,
        aggregator: AggregationEngine,
        branch_source: BranchSource | None = None,
        file_types: FileTypeTracker | None = None,
        notify: Notifier | None = None,
    ) -> None:
        self._settings = settings
        self._scheduler = scheduler
        self._resolver = resolver
        self._aggregator = aggregator
        self._branch_source = branch_source
        self._file_types = file_types
        self._notify = notify or log_notifier

        self._tracking = False
        self._in_break = False
        self._project = ""
        self._project_path = ""
        self._start_time: datetime | None = None
        self._focus_start: datetime | None = None
        self._last_context_switch: datetime | None = None
        self._last_activity: datetime | None = None
        self._interruptions = 0
        self._branch = ""
        self._file_type = ""
        self._session: WorkSession | None = None

        self._inactivity_handle: TimerHandle | None = None
        self._resume_handle: TimerHandle | None = None
        self._pomodoro_handle: TimerHandle | None = None

    # --- state ---

    @property
    def settings(self) -> TimerSettings:
        return self._settings

    @property
    def is_tracking(self) -> bool:
        return self._tracking

    @property
    def in_break(self) -> bool:
        return self._in_break

    @property
    def current_project(self) -> str:
        return self._project

    @property
    def current_project_path(self) -> str:
        return self._project_path

    @property
    def current_branch(self) -> str:
        return self._branch

    @property
    def current_file_type(self) -> str:
        return self._file_type

    @property
    def interruptions(self) -> int:
        return self._interruptions

    @property
    def last_activity(self) -> datetime | None:
        return self._last_activity

    def current_session(self) -> WorkSession | None:
        if self._session is None:
            return None
        return dataclasses.replace(self._session, files_worked_on=list(self._session.files_worked_on))

    def current_session_seconds(self) -> float:
        if not self._tracking or self._start_time is None:
            return 0.0
        return (self._scheduler.now() - self._start_time).total_seconds()

    def calculate_focus_time(self) -> float:
        """Seconds since the last disruptive context switch of the live session."""

        if not self._tracking or self._focus_start is None:
            return 0.0
        return (self._scheduler.now() - self._focus_start).total_seconds()

    def current_context(self) -> str:
        parts = []
        if self._branch:
            parts.append(f"branch:{self._branch}")
        if self._file_type:
            parts.append(f"file:{self._file_type}")
        return ",".join(parts)

    # --- transitions ---

    def _resolve_project(self) -> bool:
        project = self._resolver.resolve()
        if project is None:
            self._project = ""
            self._project_path = ""
            return False
        self._project = project.name
        self._project_path = project.path
        return True

    def start_tracking(self) -> WorkSession:
        if self._tracking and self._session is not None:
            return self._session

        if not self._resolve_project():
            raise NoActiveProjectError("No active project detected. Time will not be tracked.")

        now = self._scheduler.now()
        self._start_time = now
        self._focus_start = now
        self._last_activity = now
        self._interruptions = 0

        if self._settings.track_git_info and self._branch_source is not None:
            # "" when the workspace has no repository
            self._branch = self._branch_source.current_branch()

        if self._settings.track_file_types and self._file_types is not None:
            self._file_types.start_session()
            self._file_type = self._file_types.current_file_type

        self._session = WorkSession(start_time=now, git_branch=self._branch)
        self._tracking = True

        if self._settings.enable_pomodoro and self._pomodoro_handle is None:
            self._start_pomodoro_cycle()
        self._arm_inactivity_timer()

        logger.info("Started tracking", extra={"project": self._project, "branch": self._branch})
        self._aggregator.notify()
        return self._session

    def stop_tracking(self) -> WorkSession | None:
        """Stop the live session, recording it when it lasted more than a second."""

        if not self._tracking:
            return None

        now = self._scheduler.now()
        start_time = self._start_time or now
        duration = (now - start_time).total_seconds()
        file_durations: dict[str, float] = {}
        if self._settings.track_file_types and self._file_types is not None:
            file_durations = self._file_types.end_session()

        finished: WorkSession | None = None
        if self._project and duration > MIN_SESSION_SECONDS:
            focus_time = self.calculate_focus_time()
            finished = self._session or WorkSession(start_time=start_time, git_branch=self._branch)
            finished.end_time = now
            finished.duration = duration
            finished.focus_time = focus_time
            finished.interruptions = self._interruptions
            finished.productivity = classify_session_productivity(duration, focus_time, self._interruptions)

            self._aggregator.record_completed_session(
                self._project,
                self._project_path,
                start_time,
                now,
                duration,
                file_durations,
                branch=self._branch,
                focus_time=focus_time,
                interruptions=self._interruptions,
                context_tag=self.current_context(),
            )
        else:
            logger.debug("Discarded short session", extra={"duration": duration})

        self._tracking = False
        self._start_time = None
        self._focus_start = None
        self._session = None
        self._cancel(self._inactivity_handle)
        self._inactivity_handle = None
        self._stop_pomodoro_cycle()

        logger.info("Stopped tracking", extra={"project": self._project, "duration": duration})
        if finished is None:
            self._aggregator.notify()
        return finished

    def resume_tracking(self) -> bool:
        if self._tracking:
            return True
        if not self._resolve_project():
            self._notify("warning", "Cannot resume tracking: No active project detected.")
            return False
        try:
            self.start_tracking()
        except NoActiveProjectError:
            self._notify("warning", "Cannot resume tracking: No active project detected.")
            return False
        return True

    # --- activity & context ---

    def on_activity(self, priority: ActivityPriority = ActivityPriority.NORMAL) -> None:
        """Handle one debounced activity burst."""

        self._last_activity = self._scheduler.now()
        if not self._tracking and self._settings.auto_resume:
            if priority is ActivityPriority.LOW:
                delay = self._settings.passive_resume_delay_seconds
            else:
                delay = self._settings.auto_resume_delay_seconds
            self._schedule_resume(delay)
        self._arm_inactivity_timer()

    def on_context_switch(self) -> None:
        now = self._scheduler.now()
        if (
            self._tracking
            and self._last_context_switch is not None
            and (now - self._last_context_switch).total_seconds() < RAPID_SWITCH_SECONDS
        ):
            self._interruptions += 1
            self._focus_start = now
            if self._session is not None:
                self._session.interruptions = self._interruptions
        self._last_context_switch = now

    def on_file_type_change(self, extension: str) -> None:
        self._file_type = extension
        self.on_context_switch()

    def on_branch_switch(self, from_branch: str, to_branch: str) -> None:
        logger.info("Branch switched", extra={"from_branch": from_branch, "to_branch": to_branch})
        self._branch = to_branch
        if self._session is not None:
            self._session.git_branch = to_branch
        if not self._tracking and self._settings.auto_resume:
            self._schedule_resume(self._settings.auto_resume_delay_seconds)
        self.on_context_switch()

    def note_file(self, file_name: str) -> None:
        if self._session is not None and file_name not in self._session.files_worked_on:
            self._session.files_worked_on.append(file_name)

    # --- timers ---

    @staticmethod
    def _cancel(handle: TimerHandle | None) -> None:
        if handle is not None:
            handle.cancel()

    def _arm_inactivity_timer(self) -> None:
        self._cancel(self._inactivity_handle)
        self._inactivity_handle = self._scheduler.call_later(
            self._settings.inactivity_threshold_minutes * 60, self._on_inactivity
        )

    def _on_inactivity(self) -> None:
        self._inactivity_handle = None
        if self._tracking:
            self._notify("info", f"Inactivity detected, pausing timer for {self._project}.")
            self.stop_tracking()

    def _schedule_resume(self, delay_seconds: float) -> None:
        if self._resume_handle is not None:
            return
        self._resume_handle = self._scheduler.call_later(delay_seconds, self._on_resume_due)

    def _on_resume_due(self) -> None:
        self._resume_handle = None
        if self._tracking or not self._settings.auto_resume:
            return
        if self.resume_tracking():
            self._notify("info", f"Activity detected - auto-resuming timer for {self._project}")

    def _start_pomodoro_cycle(self) -> None:
        self._cancel(self._pomodoro_handle)
        if self._in_break:
            minutes = self._settings.break_duration_minutes
            message = "Break's over! Time to get back to work."
        else:
            minutes = self._settings.work_duration_minutes
            message = f"Time for a break! You've worked for {self._settings.work_duration_minutes:g} minutes."

        def _expire() -> None:
            self._pomodoro_handle = None
            self._notify("info", message)
            self._in_break = not self._in_break
            self._start_pomodoro_cycle()

        self._pomodoro_handle = self._scheduler.call_later(minutes * 60, _expire)

    def _stop_pomodoro_cycle(self) -> None:
        self._cancel(self._pomodoro_handle)
        self._pomodoro_handle = None
        self._in_break = False

    def toggle_pomodoro(self) -> bool:
        enabled = not self._settings.enable_pomodoro
        self._settings = self._settings.model_copy(update={"enable_pomodoro": enabled})
        if enabled:
            self._notify("info", "Pomodoro enabled.")
            if self._tracking:
                self._start_pomodoro_cycle()
        else:
            self._notify("info", "Pomodoro disabled.")
            self._stop_pomodoro_cycle()
        return enabled

    def update_settings(self, settings: TimerSettings) -> None:
        self._settings = settings
        if not self._tracking:
            return
        if settings.enable_pomodoro and self._pomodoro_handle is None:
            self._start_pomodoro_cycle()
        elif not settings.enable_pomodoro:
            self._stop_pomodoro_cycle()
        self._arm_inactivity_timer()

    def dispose(self) -> None:
        self.stop_tracking()
        for handle in (self._inactivity_handle, self._resume_handle, self._pomodoro_handle):
            self._cancel(handle)
        self._inactivity_handle = None
        self._resume_handle = None
        self._pomodoro_handle = None


__all__ = [
    "MIN_SESSION_SECONDS",
    "NoActiveProjectError",
    "SessionStateMachine",
    "classify_session_productivity",
]
