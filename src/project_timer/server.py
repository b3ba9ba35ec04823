"""FastMCP server bootstrap for Project Timer."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastmcp import Context, FastMCP

from . import __version__
from .config import TimerSettings, get_settings
from .tools import register_tools, session_snapshot
from .tracker import ProjectTimer


def configure_logging(level: str) -> None:
    """Configure root logging for the Project Timer server."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def build_status(timer: ProjectTimer, settings: TimerSettings) -> dict[str, Any]:
    """Summarize runtime state for the status resource."""

    stores = timer.stores
    with stores.lock:
        storage = {
            "path": str(settings.data_path),
            "projects": len(stores.projects),
            "days": len(stores.days),
            "commits": sum(len(commits) for commits in stores.commits.values()),
        }
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "server_version": __version__,
        "log_level": settings.log_level,
        "session": session_snapshot(timer),
        "goals": timer.goal_progress(),
        "storage": storage,
        "settings": {
            "inactivity_threshold_minutes": settings.inactivity_threshold_minutes,
            "auto_resume": settings.auto_resume,
            "enable_pomodoro": timer.settings.enable_pomodoro,
            "track_file_types": settings.track_file_types,
            "track_git_info": settings.track_git_info,
        },
    }


def create_server(
    settings: Optional[TimerSettings] = None,
    timer: ProjectTimer | None = None,
) -> FastMCP:
    """Instantiate the FastMCP server with the status resource and tracking tools."""

    settings = settings or get_settings()
    timer = timer or ProjectTimer(settings)

    server = FastMCP(
        name="Project Timer",
        version=__version__,
        instructions=(
            "Project Timer tracks time spent per project, day and commit from editor "
            "activity. Report activity and file changes, control tracking, and query "
            "productivity analytics with the provided tools."
        ),
    )

    handles = register_tools(server, timer=timer, settings=settings)

    @server.resource(
        "resource://project-timer/status",
        name="project_timer_status",
        title="Project Timer Status",
        description="Provides the current tracking state and store summary.",
        mime_type="application/json",
        tags={"status", "health"},
    )
    def status_resource(context: Context) -> str:
        """Return a JSON string summarizing tracking state."""

        payload = build_status(timer, settings)
        payload["request_id"] = getattr(context, "request_id", None)
        return json.dumps(payload)

    setattr(server, "timer", timer)
    setattr(server, "tool_handles", handles)
    return server


def main() -> None:
    """Entry point for running the Project Timer MCP server via CLI."""

    settings = get_settings()
    configure_logging(settings.log_level)

    server = create_server(settings)
    timer: ProjectTimer = getattr(server, "timer")
    logging.getLogger(__name__).info(
        "Launching Project Timer MCP server",
        extra={
            "version": __version__,
            "log_level": settings.log_level,
            "data_path": str(settings.data_path),
            "workspace": str(settings.workspace_path) if settings.workspace_path else None,
        },
    )
    timer.start()
    try:
        server.run()
    finally:
        timer.dispose()


if __name__ == "__main__":
    main()
