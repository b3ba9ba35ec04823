"""Productivity analytics over the accumulated project and day stores.

Every function here is a pure derivation from the last supplied snapshot and
has a defined zero/empty result for sparse or empty history.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Literal, Mapping

from ..storage import DailyRecord, ProjectTime, TimeEntry, date_key, from_epoch_ms

logger = logging.getLogger(__name__)

Trend = Literal["improving", "stable", "declining"]
InsightType = Literal["pattern", "suggestion", "achievement"]
Importance = Literal["high", "medium", "low"]

TREND_THRESHOLD_PERCENT = 10.0
LOW_DAILY_AVERAGE_SECONDS = 4 * 3600
WEEKEND_SHARE_LIMIT = 0.3
LOW_FOCUS_RATIO = 0.6


@dataclass(slots=True)
class HourlyAverage:
    hour: int
    average_time: float


@dataclass(slots=True)
class DayTotal:
    day: str
    total_time: float


@dataclass(slots=True)
class WeeklyTrendPoint:
    week: str
    total_time: float
    change: float


@dataclass(slots=True)
class ProductivityPattern:
    most_productive_hours: list[HourlyAverage]
    least_productive_hours: list[HourlyAverage]
    best_days: list[DayTotal]
    weekly_trend: list[WeeklyTrendPoint]
    focus_time_ratio: float
    average_session_length: float
    context_switch_frequency: float


@dataclass(slots=True)
class FileTypeShare:
    extension: str
    time_percent: float


@dataclass(slots=True)
class FileTypeFocus:
    extension: str
    avg_focus_ratio: float


@dataclass(slots=True)
class CodeVelocityMetrics:
    average_session_time: float = 0.0
    branch_switch_frequency: float = 0.0
    most_used_file_types: list[FileTypeShare] = field(default_factory=list)
    productivity_by_file_type: list[FileTypeFocus] = field(default_factory=list)


@dataclass(slots=True)
class DayTime:
    date: str = ""
    time: float = 0.0


@dataclass(slots=True)
class WeeklyInsights:
    total_time: float = 0.0
    average_daily_time: float = 0.0
    longest_day: DayTime = field(default_factory=DayTime)
    shortest_day: DayTime = field(default_factory=DayTime)
    focus_time_improvement: float = 0.0
    productivity_trend: Trend = "stable"
    suggestions: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ProductivityInsight:
    type: InsightType
    title: str
    description: str
    importance: Importance
    data: dict[str, Any] | None = None


def _percent_change(current: float, previous: float) -> float:
    return (current - previous) / previous * 100 if previous > 0 else 0.0


def _week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def _parse_day(key: str) -> date | None:
    try:
        return date.fromisoformat(key)
    except ValueError:
        return None


class AnalyticsEngine:
    """Derive productivity patterns, weekly insights and suggestions."""

    def __init__(
        self,
        days: Mapping[str, DailyRecord] | None = None,
        projects: Mapping[str, ProjectTime] | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._days: Mapping[str, DailyRecord] = days or {}
        self._projects: Mapping[str, ProjectTime] = projects or {}
        self._clock = clock or datetime.now

    def update_data(self, days: Mapping[str, DailyRecord], projects: Mapping[str, ProjectTime]) -> None:
        self._days = days
        self._projects = projects

    # --- helpers ---

    def _all_entries(self) -> list[TimeEntry]:
        entries = [entry for project in self._projects.values() for entry in project.entries]
        entries.sort(key=lambda entry: entry.start_time)
        return entries

    def _recent_days(self, window_days: int) -> list[DailyRecord]:
        keys = sorted(self._days.keys(), reverse=True)[: max(window_days, 0)]
        return [self._days[key] for key in keys]

    def _week_records(self, week_start: date) -> list[DailyRecord]:
        records = []
        for offset in range(7):
            record = self._days.get(date_key(week_start + timedelta(days=offset)))
            if record is not None:
                records.append(record)
        return records

    # --- patterns ---

    def productivity_pattern(self, window_days: int = 30) -> ProductivityPattern:
        recent = self._recent_days(window_days)
        recent_keys = {record.date for record in recent}

        hourly: dict[int, list[float]] = {hour: [] for hour in range(24)}
        for entry in self._all_entries():
            started = from_epoch_ms(entry.start_time)
            if date_key(started) in recent_keys:
                hourly[started.hour].append(entry.duration)

        averages = [
            HourlyAverage(hour=hour, average_time=sum(times) / len(times) if times else 0.0)
            for hour, times in hourly.items()
        ]
        ranked = sorted(averages, key=lambda item: item.average_time, reverse=True)
        best_days = sorted(recent, key=lambda record: record.total_time, reverse=True)[:7]

        focus_ratio, average_length, switch_frequency = self._focus_metrics()
        return ProductivityPattern(
            most_productive_hours=ranked[:5],
            least_productive_hours=list(reversed(ranked[-5:])),
            best_days=[DayTotal(day=record.date, total_time=record.total_time) for record in best_days],
            weekly_trend=self.weekly_trend(),
            focus_time_ratio=focus_ratio,
            average_session_length=average_length,
            context_switch_frequency=switch_frequency,
        )

    def weekly_trend(self) -> list[WeeklyTrendPoint]:
        """Totals per Monday-anchored week with the change from the previous listed week."""

        weeks: dict[str, float] = {}
        for key, record in self._days.items():
            day = _parse_day(key)
            if day is None:
                continue
            week = date_key(_week_start(day))
            weeks[week] = weeks.get(week, 0.0) + record.total_time

        trend: list[WeeklyTrendPoint] = []
        previous: float | None = None
        for week, total in sorted(weeks.items()):
            baseline = total if previous is None else previous
            trend.append(WeeklyTrendPoint(week=week, total_time=total, change=_percent_change(total, baseline)))
            previous = total
        return trend

    def _focus_metrics(self) -> tuple[float, float, float]:
        entries = self._all_entries()
        if not entries:
            return 0.0, 0.0, 0.0

        total_time = sum(entry.duration for entry in entries)
        total_focus = sum(entry.focus_time for entry in entries)

        switches = 0
        for previous, current in zip(entries, entries[1:]):
            if current.git_branch != previous.git_branch or set(current.file_types) != set(previous.file_types):
                switches += 1

        focus_ratio = total_focus / total_time if total_time > 0 else 0.0
        return focus_ratio, total_time / len(entries), switches / len(entries)

    def code_velocity_metrics(self) -> CodeVelocityMetrics:
        entries = self._all_entries()
        if not entries:
            return CodeVelocityMetrics()

        average_session_time = sum(entry.duration for entry in entries) / len(entries)

        per_type: dict[str, dict[str, float]] = {}
        for entry in entries:
            for extension, seconds in entry.file_types.items():
                bucket = per_type.setdefault(extension, {"time": 0.0, "focus": 0.0})
                bucket["time"] += seconds
                bucket["focus"] += entry.focus_time

        total_time = sum(bucket["time"] for bucket in per_type.values())
        shares = [
            FileTypeShare(
                extension=extension,
                time_percent=bucket["time"] / total_time * 100 if total_time > 0 else 0.0,
            )
            for extension, bucket in per_type.items()
        ]
        shares.sort(key=lambda item: item.time_percent, reverse=True)

        focus = [
            FileTypeFocus(
                extension=extension,
                avg_focus_ratio=bucket["focus"] / bucket["time"] if bucket["time"] > 0 else 0.0,
            )
            for extension, bucket in per_type.items()
        ]
        focus.sort(key=lambda item: item.avg_focus_ratio, reverse=True)

        branch_switches = sum(
            1 for previous, current in zip(entries, entries[1:]) if current.git_branch != previous.git_branch
        )
        branch_frequency = branch_switches / (len(entries) - 1) if len(entries) > 1 else 0.0

        return CodeVelocityMetrics(
            average_session_time=average_session_time,
            branch_switch_frequency=branch_frequency,
            most_used_file_types=shares[:10],
            productivity_by_file_type=focus[:10],
        )

    # --- weekly ---

    def weekly_insights(self, today: date | None = None) -> WeeklyInsights:
        today = today or self._clock().date()
        week_start = _week_start(today)
        current = self._week_records(week_start)
        previous = self._week_records(week_start - timedelta(days=7))

        if not current:
            return WeeklyInsights(suggestions=["Start tracking time to get insights!"])

        total_time = sum(record.total_time for record in current)
        ranked = sorted(current, key=lambda record: record.total_time, reverse=True)

        current_focus = sum(record.focus_time for record in current)
        previous_focus = sum(record.focus_time for record in previous)
        focus_improvement = _percent_change(current_focus, previous_focus)

        previous_total = sum(record.total_time for record in previous)
        change = _percent_change(total_time, previous_total)
        trend: Trend = "stable"
        if previous_total > 0:
            if change > TREND_THRESHOLD_PERCENT:
                trend = "improving"
            elif change < -TREND_THRESHOLD_PERCENT:
                trend = "declining"

        return WeeklyInsights(
            total_time=total_time,
            average_daily_time=total_time / 7,
            longest_day=DayTime(date=ranked[0].date, time=ranked[0].total_time),
            shortest_day=DayTime(date=ranked[-1].date, time=ranked[-1].total_time),
            focus_time_improvement=focus_improvement,
            productivity_trend=trend,
            suggestions=self._suggestions(current, total_time, focus_improvement, trend),
        )

    @staticmethod
    def _suggestions(
        week: list[DailyRecord], total_time: float, focus_improvement: float, trend: Trend
    ) -> list[str]:
        suggestions: list[str] = []

        if total_time / 7 < LOW_DAILY_AVERAGE_SECONDS:
            suggestions.append("Consider increasing your daily coding time to build consistency.")
        if focus_improvement < 0:
            suggestions.append(
                "Your focus time decreased this week. Try eliminating distractions during work sessions."
            )
        if trend == "declining":
            suggestions.append(
                "Your productivity is declining. Consider taking breaks and reviewing your workflow."
            )

        weekend_time = 0.0
        for record in week:
            day = _parse_day(record.date)
            if day is not None and day.weekday() >= 5:
                weekend_time += record.total_time
        if weekend_time > total_time * WEEKEND_SHARE_LIMIT:
            suggestions.append("You worked significantly on weekends. Consider better work-life balance.")

        if not suggestions:
            suggestions.append("Great work this week! Keep maintaining your productivity patterns.")
        return suggestions

    # --- composed ---

    def productivity_insights(self) -> list[ProductivityInsight]:
        insights: list[ProductivityInsight] = []
        pattern = self.productivity_pattern()
        weekly = self.weekly_insights()
        velocity = self.code_velocity_metrics()

        top_hour = pattern.most_productive_hours[0] if pattern.most_productive_hours else None
        if top_hour is not None and top_hour.average_time > 0:
            insights.append(
                ProductivityInsight(
                    type="pattern",
                    title="Peak Productivity Hour",
                    description=(
                        f"You're most productive at {top_hour.hour}:00. "
                        "Consider scheduling important tasks during this time."
                    ),
                    data={"hour": top_hour.hour, "average_time": top_hour.average_time},
                    importance="high",
                )
            )

        if pattern.average_session_length > 0 and pattern.focus_time_ratio < LOW_FOCUS_RATIO:
            insights.append(
                ProductivityInsight(
                    type="suggestion",
                    title="Improve Focus Time",
                    description=(
                        f"Your focus time ratio is {pattern.focus_time_ratio * 100:.1f}%. "
                        "Try minimizing distractions to increase deep work time."
                    ),
                    data={"focus_ratio": pattern.focus_time_ratio},
                    importance="high",
                )
            )

        if weekly.productivity_trend == "improving":
            insights.append(
                ProductivityInsight(
                    type="achievement",
                    title="Great Progress!",
                    description="Your productivity is trending upward. Keep up the great work!",
                    importance="medium",
                )
            )

        if velocity.most_used_file_types:
            top_type = velocity.most_used_file_types[0]
            insights.append(
                ProductivityInsight(
                    type="pattern",
                    title="Primary Technology",
                    description=(
                        f"You spend {top_type.time_percent:.1f}% of your time working with "
                        f"{top_type.extension} files."
                    ),
                    data={"extension": top_type.extension, "time_percent": top_type.time_percent},
                    importance="low",
                )
            )

        logger.debug("Generated productivity insights", extra={"count": len(insights)})
        return insights


__all__ = [
    "AnalyticsEngine",
    "CodeVelocityMetrics",
    "DayTime",
    "DayTotal",
    "FileTypeFocus",
    "FileTypeShare",
    "HourlyAverage",
    "ProductivityInsight",
    "ProductivityPattern",
    "WeeklyInsights",
    "WeeklyTrendPoint",
]
