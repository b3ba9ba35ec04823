"""Productivity analytics exports."""

from .engine import (
    AnalyticsEngine,
    CodeVelocityMetrics,
    DayTime,
    DayTotal,
    FileTypeFocus,
    FileTypeShare,
    HourlyAverage,
    ProductivityInsight,
    ProductivityPattern,
    WeeklyInsights,
    WeeklyTrendPoint,
)

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
