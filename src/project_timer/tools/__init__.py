"""Tool registration for the Project Timer MCP server."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Literal

from fastmcp import Context, FastMCP

from ..config import TimerSettings
from ..tracker import ProjectTimer
from ..tracking import ActivityPriority

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ToolHandles:
    start_tracking: Any
    stop_tracking: Any
    resume_tracking: Any
    reset_today: Any
    record_activity: Any
    report_file_change: Any
    open_workspace: Any
    toggle_pomodoro: Any
    session_status: Any
    goal_progress: Any
    productivity_pattern: Any
    code_velocity: Any
    weekly_insights: Any
    productivity_insights: Any
    commit_history: Any
    commit_stats: Any
    export_data: Any
    import_data: Any


def session_snapshot(timer: ProjectTimer) -> dict[str, Any]:
    """Live tracking state as a JSON-ready mapping."""

    session = timer.current_session()
    last_activity = timer.last_activity
    return {
        "tracking": timer.is_tracking,
        "project": timer.current_project or None,
        "project_path": timer.current_project_path or None,
        "branch": timer.current_branch or None,
        "file_type": timer.current_file_type or None,
        "in_break": timer.in_break,
        "session_seconds": timer.current_session_seconds(),
        "focus_seconds": timer.current_focus_seconds(),
        "interruptions": timer.session_interruptions,
        "files_worked_on": list(session.files_worked_on) if session is not None else [],
        "today_seconds": timer.today_total_seconds(),
        "last_activity": last_activity.isoformat() if last_activity is not None else None,
    }


def register_tools(
    server: FastMCP,
    *,
    timer: ProjectTimer,
    settings: TimerSettings,
) -> ToolHandles:
    """Register Project Timer's MCP tools on the server."""

    def _start_tracking(context: Context | None = None) -> dict[str, Any]:
        """Start tracking the current workspace project."""

        started = timer.start_tracking()
        _emit_log(
            context,
            "info" if started else "warning",
            "Start tracking requested",
            extra={"started": started, "project": timer.current_project},
        )
        return {"started": started, **session_snapshot(timer)}

    def _stop_tracking(context: Context | None = None) -> dict[str, Any]:
        """Stop tracking, recording the session when it lasted more than a second."""

        finished = timer.stop_tracking()
        recorded = finished is not None
        _emit_log(context, "info", "Stop tracking requested", extra={"recorded": recorded})
        payload: dict[str, Any] = {"recorded": recorded, **session_snapshot(timer)}
        if finished is not None:
            payload["session"] = {
                "duration": finished.duration,
                "focus_time": finished.focus_time,
                "interruptions": finished.interruptions,
                "productivity": finished.productivity,
                "git_branch": finished.git_branch,
            }
        return payload

    def _resume_tracking(context: Context | None = None) -> dict[str, Any]:
        resumed = timer.resume_tracking()
        _emit_log(context, "info", "Resume tracking requested", extra={"resumed": resumed})
        return {"resumed": resumed, **session_snapshot(timer)}

    def _reset_today(context: Context | None = None) -> dict[str, Any]:
        timer.reset_today()
        _emit_log(context, "info", "Reset today's stats")
        return {"reset": True, "today_seconds": timer.today_total_seconds()}

    tool_start = server.tool(
        name="start_tracking",
        description="Start tracking time for the project of the current workspace.",
    )(_start_tracking)

    tool_stop = server.tool(
        name="stop_tracking",
        description="Stop tracking and fold the finished session into the project and day statistics.",
    )(_stop_tracking)

    tool_resume = server.tool(
        name="resume_tracking",
        description="Resume tracking if a workspace project can be resolved.",
    )(_resume_tracking)

    tool_reset = server.tool(
        name="reset_today",
        description="Delete today's record and every entry that started today.",
        annotations={
            "safety": {
                "level": "caution",
                "notes": "Removes today's tracked time permanently",
            }
        },
    )(_reset_today)

    def _record_activity(
        priority: Literal["high", "normal", "low"] = "normal",
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Report raw editor activity; bursts are debounced by priority."""

        timer.record_activity(ActivityPriority(priority))
        _emit_log(context, "debug", "Recorded activity", extra={"priority": priority})
        return {"accepted": True, "priority": priority}

    def _report_file_change(file_name: str, context: Context | None = None) -> dict[str, Any]:
        """Report that the file in focus changed."""

        timer.report_file_change(file_name)
        _emit_log(context, "debug", "File in focus changed", extra={"file_name": file_name})
        return {"file_type": timer.current_file_type or None, "interruptions": timer.session_interruptions}

    def _open_workspace(path: str, context: Context | None = None) -> dict[str, Any]:
        project = timer.open_workspace(path)
        _emit_log(context, "info", "Opened workspace", extra={"path": path, "project": project})
        return {"project": project or None, "tracking": timer.is_tracking}

    def _toggle_pomodoro(context: Context | None = None) -> dict[str, Any]:
        enabled = timer.toggle_pomodoro()
        _emit_log(context, "info", "Toggled Pomodoro", extra={"enabled": enabled})
        return {
            "enabled": enabled,
            "in_break": timer.in_break,
            "work_duration_minutes": timer.settings.work_duration_minutes,
            "break_duration_minutes": timer.settings.break_duration_minutes,
        }

    tool_activity = server.tool(
        name="record_activity",
        description="Signal editor activity (priority high for edits/saves, low for passive changes).",
    )(_record_activity)

    tool_file_change = server.tool(
        name="report_file_change",
        description="Report the file now in focus so file-type time and context switches are tracked.",
    )(_report_file_change)

    tool_workspace = server.tool(
        name="open_workspace",
        description="Switch the tracked workspace directory; an active session carries over to the new project.",
    )(_open_workspace)

    tool_pomodoro = server.tool(
        name="toggle_pomodoro",
        description="Enable or disable the advisory Pomodoro work/break cycle.",
    )(_toggle_pomodoro)

    def _session_status(context: Context | None = None) -> dict[str, Any]:
        """Return the live tracking state."""

        snapshot = session_snapshot(timer)
        _emit_log(context, "debug", "Session status requested", extra={"tracking": snapshot["tracking"]})
        return snapshot

    def _goal_progress(context: Context | None = None) -> dict[str, Any]:
        return timer.goal_progress()

    def _productivity_pattern(window_days: int = 30, context: Context | None = None) -> dict[str, Any]:
        """Hour-of-day histogram, best days, weekly trend and focus metrics."""

        pattern = timer.productivity_pattern(window_days)
        _emit_log(context, "debug", "Computed productivity pattern", extra={"window_days": window_days})
        return asdict(pattern)

    def _code_velocity(context: Context | None = None) -> dict[str, Any]:
        return asdict(timer.code_velocity_metrics())

    def _weekly_insights(context: Context | None = None) -> dict[str, Any]:
        return asdict(timer.weekly_insights())

    def _productivity_insights(context: Context | None = None) -> list[dict[str, Any]]:
        insights = [asdict(insight) for insight in timer.productivity_insights()]
        _emit_log(context, "debug", "Generated insights", extra={"count": len(insights)})
        return insights

    tool_status = server.tool(
        name="session_status",
        description="Report whether tracking is active, with project, branch, file type and focus counters.",
    )(_session_status)

    tool_goals = server.tool(
        name="goal_progress",
        description="Daily and weekly goal progress (seconds spent, goal seconds, percentage).",
    )(_goal_progress)

    tool_pattern = server.tool(
        name="productivity_pattern",
        description="Productivity pattern over the most recent tracked days (window_days, default 30).",
    )(_productivity_pattern)

    tool_velocity = server.tool(
        name="code_velocity",
        description="Average session time, file-type shares and focus ratios, and branch-switch frequency.",
    )(_code_velocity)

    tool_weekly = server.tool(
        name="weekly_insights",
        description="Compare the current Monday-anchored week with the previous one and suggest improvements.",
    )(_weekly_insights)

    tool_insights = server.tool(
        name="productivity_insights",
        description="Short prioritized list of human-readable productivity insights.",
    )(_productivity_insights)

    def _commit_history(
        project_name: str | None = None,
        limit: int | None = None,
        context: Context | None = None,
    ) -> list[dict[str, Any]]:
        """Commits attributed to a project (current project by default), newest first."""

        commits = timer.commit_history(project_name)
        if limit is not None:
            commits = commits[: max(limit, 0)]
        _emit_log(
            context,
            "debug",
            "Listed commit history",
            extra={"project": project_name or timer.current_project, "count": len(commits)},
        )
        return [commit.model_dump(mode="json", by_alias=True) for commit in commits]

    def _commit_stats(context: Context | None = None) -> dict[str, Any]:
        return timer.commit_stats()

    def _export_data(context: Context | None = None) -> dict[str, Any]:
        """Return the full persisted document."""

        document = timer.export_data()
        _emit_log(
            context,
            "info",
            "Exported data",
            extra={"projects": len(document["projectData"]), "days": len(document["dailyData"])},
        )
        return document

    def _import_data(document: dict[str, Any], context: Context | None = None) -> dict[str, Any]:
        """Replace all stores with the given document; nothing is merged."""

        imported = timer.import_data(
            document.get("projectData"),
            document.get("dailyData"),
            document.get("commitData"),
        )
        _emit_log(context, "info" if imported else "error", "Import requested", extra={"imported": imported})
        with timer.stores.lock:
            projects = sorted(timer.stores.projects)
        return {"imported": imported, "projects": projects}

    tool_commits = server.tool(
        name="commit_history",
        description="List commits with attributed session time for a project, newest first.",
    )(_commit_history)

    tool_commit_stats = server.tool(
        name="commit_stats",
        description="Commit totals per project and overall, with a productivity breakdown.",
    )(_commit_stats)

    tool_export = server.tool(
        name="export_data",
        description="Export projectData, dailyData and commitData as a JSON document.",
    )(_export_data)

    tool_import = server.tool(
        name="import_data",
        description="Replace all tracked data with a previously exported document.",
        annotations={
            "safety": {
                "level": "caution",
                "notes": "Import is destructive: existing data is replaced, not merged",
            }
        },
    )(_import_data)

    logger.debug("Registered tools", extra={"data_path": str(settings.data_path)})

    return ToolHandles(
        start_tracking=tool_start,
        stop_tracking=tool_stop,
        resume_tracking=tool_resume,
        reset_today=tool_reset,
        record_activity=tool_activity,
        report_file_change=tool_file_change,
        open_workspace=tool_workspace,
        toggle_pomodoro=tool_pomodoro,
        session_status=tool_status,
        goal_progress=tool_goals,
        productivity_pattern=tool_pattern,
        code_velocity=tool_velocity,
        weekly_insights=tool_weekly,
        productivity_insights=tool_insights,
        commit_history=tool_commits,
        commit_stats=tool_commit_stats,
        export_data=tool_export,
        import_data=tool_import,
    )


def _emit_log(
    context: Context | None,
    level: str,
    message: str,
    *,
    extra: dict[str, Any] | None = None,
) -> None:
    """Best-effort logging that prefers the MCP context logger when available."""

    payload = extra or {}

    if context is not None:
        ctx_logger = getattr(context, "logger", None)
        if ctx_logger is not None:
            log_method = getattr(ctx_logger, level, None)
            if callable(log_method):
                log_method(message, extra=payload)
                return

    fallback = getattr(logger, level, logger.info)
    fallback(message, extra=payload)


__all__ = ["ToolHandles", "register_tools", "session_snapshot"]
