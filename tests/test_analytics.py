from __future__ import annotations

from datetime import date, datetime

import pytest

from project_timer.analytics import (
    AnalyticsEngine,
    CodeVelocityMetrics,
    DayTime,
    HourlyAverage,
    WeeklyTrendPoint,
)
from project_timer.storage import DailyRecord, ProjectTime, TimeEntry, to_epoch_ms

HOUR = 3600.0


def day(key: str, hours: float, focus_hours: float = 0.0) -> DailyRecord:
    return DailyRecord(
        date=key,
        projects={"demo": hours * HOUR},
        total_time=hours * HOUR,
        focus_time=focus_hours * HOUR,
        session_count=1,
    )


def days(*records: DailyRecord) -> dict[str, DailyRecord]:
    return {record.date: record for record in records}


def entry(start: datetime, duration: float, *, branch: str = "main", file_types=None, focus: float = 0.0):
    return TimeEntry(
        project_name="demo",
        start_time=to_epoch_ms(start),
        end_time=to_epoch_ms(start) + duration * 1000,
        duration=duration,
        git_branch=branch,
        file_types=file_types or {},
        focus_time=focus,
    )


def sample_projects() -> dict[str, ProjectTime]:
    entries = [
        entry(datetime(2025, 1, 8, 9, 0), 3600, file_types={".py": 3000, ".md": 600}, focus=3000),
        entry(datetime(2025, 1, 8, 9, 30), 1800, file_types={".py": 1800}, focus=900),
        entry(datetime(2025, 1, 8, 14, 0), 600, branch="feature", file_types={".ts": 600}, focus=600),
    ]
    return {"demo": ProjectTime(project_name="demo", project_path="/work/demo", entries=entries)}


@pytest.mark.parametrize(
    ("current_hours", "trend", "change"),
    [(12, "improving", 20.0), (8, "declining", -20.0), (10.5, "stable", 5.0)],
)
def test_weekly_trend_label(current_hours, trend, change) -> None:
    engine = AnalyticsEngine(days(day("2025-01-06", 10), day("2025-01-13", current_hours)), {})

    insights = engine.weekly_insights(date(2025, 1, 15))

    assert insights.productivity_trend == trend
    assert insights.total_time == current_hours * HOUR
    assert engine.weekly_trend()[-1].change == pytest.approx(change)


def test_weekly_insights_without_data_bootstraps() -> None:
    insights = AnalyticsEngine({}, {}).weekly_insights(date(2025, 1, 15))

    assert insights.total_time == 0
    assert insights.average_daily_time == 0
    assert insights.longest_day == DayTime()
    assert insights.productivity_trend == "stable"
    assert insights.suggestions == ["Start tracking time to get insights!"]


def test_weekly_insights_suggestions_in_order() -> None:
    engine = AnalyticsEngine(
        days(
            day("2025-01-06", 10, focus_hours=2),
            day("2025-01-13", 3, focus_hours=1),
            day("2025-01-18", 5, focus_hours=0.5),
        ),
        {},
    )

    insights = engine.weekly_insights(date(2025, 1, 19))

    assert insights.productivity_trend == "declining"
    assert insights.focus_time_improvement == pytest.approx(-25.0)
    assert insights.average_daily_time == pytest.approx(8 * HOUR / 7)
    assert insights.longest_day == DayTime(date="2025-01-18", time=5 * HOUR)
    assert insights.shortest_day == DayTime(date="2025-01-13", time=3 * HOUR)
    assert insights.suggestions == [
        "Consider increasing your daily coding time to build consistency.",
        "Your focus time decreased this week. Try eliminating distractions during work sessions.",
        "Your productivity is declining. Consider taking breaks and reviewing your workflow.",
        "You worked significantly on weekends. Consider better work-life balance.",
    ]


def test_weekly_insights_positive_message() -> None:
    previous = [day(f"2025-01-0{n}", 8, focus_hours=4) for n in range(6, 10)]
    current = [day(f"2025-01-1{n}", 8, focus_hours=4) for n in range(3, 7)]
    previous.append(day("2025-01-10", 8, focus_hours=4))
    current.append(day("2025-01-17", 8, focus_hours=4))
    engine = AnalyticsEngine(days(*previous, *current), {})

    insights = engine.weekly_insights(date(2025, 1, 17))

    assert insights.total_time == 40 * HOUR
    assert insights.productivity_trend == "stable"
    assert insights.suggestions == ["Great work this week! Keep maintaining your productivity patterns."]


def test_productivity_pattern_hours_and_focus() -> None:
    engine = AnalyticsEngine(days(day("2025-01-08", 6000 / HOUR)), sample_projects())

    pattern = engine.productivity_pattern()

    assert pattern.most_productive_hours[0] == HourlyAverage(hour=9, average_time=2700)
    assert pattern.most_productive_hours[1] == HourlyAverage(hour=14, average_time=600)
    assert [item.hour for item in pattern.least_productive_hours] == [23, 22, 21, 20, 19]
    assert all(item.average_time == 0 for item in pattern.least_productive_hours)
    assert pattern.best_days[0].day == "2025-01-08"
    assert pattern.focus_time_ratio == pytest.approx(4500 / 6000)
    assert pattern.average_session_length == pytest.approx(2000)
    assert pattern.context_switch_frequency == pytest.approx(2 / 3)


def test_productivity_pattern_window_excludes_older_days() -> None:
    projects = sample_projects()
    projects["demo"].entries.insert(0, entry(datetime(2025, 1, 1, 8, 0), 1200))
    engine = AnalyticsEngine(days(day("2025-01-01", 1 / 3), day("2025-01-08", 6000 / HOUR)), projects)

    narrow = engine.productivity_pattern(window_days=1)
    wide = engine.productivity_pattern(window_days=30)

    assert [item.hour for item in narrow.most_productive_hours[:2]] == [9, 14]
    assert narrow.most_productive_hours[2].average_time == 0
    assert [day_total.day for day_total in narrow.best_days] == ["2025-01-08"]
    assert HourlyAverage(hour=8, average_time=1200) in wide.most_productive_hours


def test_weekly_trend_groups_by_monday() -> None:
    engine = AnalyticsEngine(days(day("2025-01-06", 10), day("2025-01-08", 2), day("2025-01-13", 6)), {})

    assert engine.weekly_trend() == [
        WeeklyTrendPoint(week="2025-01-06", total_time=12 * HOUR, change=0.0),
        WeeklyTrendPoint(week="2025-01-13", total_time=6 * HOUR, change=-50.0),
    ]


def test_code_velocity_metrics() -> None:
    metrics = AnalyticsEngine({}, sample_projects()).code_velocity_metrics()

    assert metrics.average_session_time == pytest.approx(2000)
    assert metrics.branch_switch_frequency == pytest.approx(0.5)
    assert [(item.extension, item.time_percent) for item in metrics.most_used_file_types] == [
        (".py", pytest.approx(80.0)),
        (".md", pytest.approx(10.0)),
        (".ts", pytest.approx(10.0)),
    ]
    focus = {item.extension: item.avg_focus_ratio for item in metrics.productivity_by_file_type}
    assert focus[".py"] == pytest.approx(3900 / 4800)
    assert focus[".ts"] == pytest.approx(1.0)


def test_productivity_insights_compose() -> None:
    engine = AnalyticsEngine(
        days(day("2025-01-08", 6000 / HOUR)),
        sample_projects(),
        clock=lambda: datetime(2025, 1, 8, 18, 0),
    )

    insights = engine.productivity_insights()

    assert [insight.title for insight in insights] == ["Peak Productivity Hour", "Primary Technology"]
    assert insights[0].importance == "high"
    assert insights[0].description.startswith("You're most productive at 9:00.")
    assert insights[1].description == "You spend 80.0% of your time working with .py files."


def test_low_focus_and_improving_insights() -> None:
    projects = {
        "demo": ProjectTime(
            project_name="demo",
            project_path="/work/demo",
            entries=[entry(datetime(2025, 1, 14, 10, 0), 3600, focus=600)],
        )
    }
    engine = AnalyticsEngine(
        days(day("2025-01-06", 1), day("2025-01-14", 2)),
        projects,
        clock=lambda: datetime(2025, 1, 15, 18, 0),
    )

    titles = [insight.title for insight in engine.productivity_insights()]

    assert titles == ["Peak Productivity Hour", "Improve Focus Time", "Great Progress!"]


def test_empty_history_has_zero_results() -> None:
    engine = AnalyticsEngine({}, {}, clock=lambda: datetime(2025, 1, 8, 18, 0))

    pattern = engine.productivity_pattern()

    assert pattern.focus_time_ratio == 0
    assert pattern.average_session_length == 0
    assert pattern.context_switch_frequency == 0
    assert pattern.best_days == []
    assert pattern.weekly_trend == []
    assert len(pattern.most_productive_hours) == 5
    assert engine.code_velocity_metrics() == CodeVelocityMetrics()
    assert engine.productivity_insights() == []


def test_update_data_replaces_snapshot() -> None:
    engine = AnalyticsEngine({}, {})

    engine.update_data(days(day("2025-01-08", 2)), sample_projects())

    assert engine.code_velocity_metrics().average_session_time == pytest.approx(2000)


def test_context_switch_compares_file_type_sets() -> None:
    same_types = {
        "demo": ProjectTime(
            project_name="demo",
            project_path="/work/demo",
            entries=[
                entry(datetime(2025, 1, 8, 9, 0), 600, file_types={".py": 500, ".md": 100}),
                entry(datetime(2025, 1, 8, 10, 0), 900, file_types={".md": 50, ".py": 850}),
            ],
        )
    }
    new_type = {
        "demo": ProjectTime(
            project_name="demo",
            project_path="/work/demo",
            entries=[
                entry(datetime(2025, 1, 8, 9, 0), 600, file_types={".py": 600}),
                entry(datetime(2025, 1, 8, 10, 0), 600, file_types={".py": 300, ".ts": 300}),
            ],
        )
    }

    assert AnalyticsEngine({}, same_types).productivity_pattern().context_switch_frequency == 0
    assert AnalyticsEngine({}, new_type).productivity_pattern().context_switch_frequency == pytest.approx(0.5)
