"""Project Timer diagnostics CLI."""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict
from datetime import datetime

from project_timer.analytics import AnalyticsEngine
from project_timer.config import TimerSettings
from project_timer.storage import DataStores, JsonDataStore, date_key, from_epoch_ms
from project_timer.tracking import summarize_commits


def load_store(settings: TimerSettings) -> DataStores:
    path = settings.data_path.expanduser()
    if not path.exists():
        print(f"No data file found at {path}")
        raise SystemExit(1)
    return JsonDataStore(path).load()


def format_seconds(seconds: float) -> str:
    minutes = int(seconds // 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes:02d}m"


def _analytics(stores: DataStores) -> AnalyticsEngine:
    return AnalyticsEngine(stores.days, stores.projects)


def cmd_projects(args: argparse.Namespace) -> None:
    stores = load_store(TimerSettings())
    projects = sorted(stores.projects.values(), key=lambda project: project.total_time, reverse=True)
    if args.json:
        payload = [
            {
                "project": project.project_name,
                "path": project.project_path,
                "total_time": project.total_time,
                "entries": len(project.entries),
                "last_active": (
                    from_epoch_ms(project.last_active).isoformat() if project.last_active else None
                ),
            }
            for project in projects
        ]
        print(json.dumps(payload, indent=2))
    else:
        for project in projects:
            print(f"{project.project_name} [{format_seconds(project.total_time)}] -> {len(project.entries)} entries")


def cmd_today(args: argparse.Namespace) -> None:
    stores = load_store(TimerSettings())
    key = args.date or date_key(datetime.now())
    record = stores.days.get(key)
    if record is None:
        print(json.dumps({"date": key, "total_time": 0, "projects": {}}, indent=2))
        return
    print(json.dumps(record.model_dump(mode="json"), indent=2))


def cmd_weekly(args: argparse.Namespace) -> None:
    stores = load_store(TimerSettings())
    today = datetime.fromisoformat(args.date).date() if args.date else None
    print(json.dumps(asdict(_analytics(stores).weekly_insights(today)), indent=2))


def cmd_pattern(args: argparse.Namespace) -> None:
    stores = load_store(TimerSettings())
    print(json.dumps(asdict(_analytics(stores).productivity_pattern(args.window_days)), indent=2))


def cmd_insights(args: argparse.Namespace) -> None:
    stores = load_store(TimerSettings())
    insights = _analytics(stores).productivity_insights()
    print(json.dumps([asdict(insight) for insight in insights], indent=2))


def cmd_commits(args: argparse.Namespace) -> None:
    stores = load_store(TimerSettings())
    if args.project:
        commits = sorted(stores.commits.get(args.project, []), key=lambda commit: commit.date, reverse=True)
        if args.limit is not None and args.limit > 0:
            commits = commits[: args.limit]
        print(json.dumps([commit.model_dump(mode="json") for commit in commits], indent=2))
        return

    summary = {name: summarize_commits(commits) for name, commits in stores.commits.items()}
    print(json.dumps(summary, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Project Timer diagnostics")
    sub = parser.add_subparsers(dest="cmd")

    p_projects = sub.add_parser("projects", help="List tracked projects by total time")
    p_projects.add_argument("--json", action="store_true", help="Output JSON")
    p_projects.set_defaults(func=cmd_projects)

    p_today = sub.add_parser("today", help="Show the daily record (today by default)")
    p_today.add_argument("--date", help="Date key YYYY-MM-DD")
    p_today.set_defaults(func=cmd_today)

    p_weekly = sub.add_parser("weekly", help="Weekly insights for the week containing --date")
    p_weekly.add_argument("--date", help="Any date in the week, YYYY-MM-DD")
    p_weekly.set_defaults(func=cmd_weekly)

    p_pattern = sub.add_parser("pattern", help="Productivity pattern over recent tracked days")
    p_pattern.add_argument("--window-days", type=int, default=30)
    p_pattern.set_defaults(func=cmd_pattern)

    p_insights = sub.add_parser("insights", help="Prioritized productivity insights")
    p_insights.set_defaults(func=cmd_insights)

    p_commits = sub.add_parser("commits", help="Commit stats per project, or one project's history")
    p_commits.add_argument("--project")
    p_commits.add_argument(
        "--limit",
        type=int,
        default=None,
        help="If provided with --project, show only the latest N commits",
    )
    p_commits.set_defaults(func=cmd_commits)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
