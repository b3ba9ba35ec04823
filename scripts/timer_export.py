"""Export persisted Project Timer data for backups and reporting."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from project_timer.config import TimerSettings
from project_timer.storage import DataStores, JsonDataStore, ProjectTime, dump_stores


def load_store(settings: TimerSettings) -> DataStores:
    """Load the stores from the configured data file."""

    path = settings.data_path.expanduser()
    if not path.exists():
        raise FileNotFoundError(f"No data file found at {path}")
    return JsonDataStore(path).load()


def _select(stores: DataStores, *, project: str | None, limit: int | None) -> DataStores:
    projects = dict(stores.projects)
    commits = dict(stores.commits)
    days = dict(stores.days)
    if project:
        projects = {project: projects[project]}
        commits = {project: commits[project]} if project in commits else {}
        days = {key: record for key, record in days.items() if project in record.projects}

    if limit is not None and limit > 0:
        projects = {
            name: record.model_copy(update={"entries": record.entries[-limit:]})
            for name, record in projects.items()
        }
    return DataStores(projects=projects, days=days, commits=commits)


def _format_seconds(seconds: float) -> str:
    minutes = int(seconds // 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes:02d}m"


def _default_project_formatter(project: ProjectTime, commit_count: int) -> str:
    return " | ".join(
        [
            f"project={project.project_name}",
            f"total={_format_seconds(project.total_time)}",
            f"entries={len(project.entries)}",
            f"sessions={project.productivity.total_sessions}",
            f"commits={commit_count}",
            f"path={project.project_path}",
        ]
    )


def export_data(args: argparse.Namespace, *, formatter=_default_project_formatter) -> int:
    settings = TimerSettings()
    try:
        stores = load_store(settings)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    if args.project and args.project not in stores.projects:
        print(f"Unknown project: {args.project}", file=sys.stderr)
        return 1

    selected = _select(stores, project=args.project, limit=args.limit)
    if args.format == "json":
        output_text = json.dumps(dump_stores(selected), indent=2)
    else:
        ranked = sorted(selected.projects.values(), key=lambda item: item.total_time, reverse=True)
        output_text = "\n".join(
            formatter(project, len(selected.commits.get(project.project_name, []))) for project in ranked
        )

    if args.output:
        output_path = Path(args.output)
        output_path.write_text(output_text, encoding="utf-8")
    else:
        print(output_text)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Export tracked time data to stdout or a file for backups and reporting."
    )
    parser.add_argument("--project", help="Export only this project", default=None)
    parser.add_argument(
        "--format",
        choices={"json", "text"},
        default="json",
        help="Output format (default: json)",
    )
    parser.add_argument("--output", help="Optional path to write the export to")
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="If provided, keep only the latest N entries per project",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    exit_code = export_data(args)
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
