from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from project_timer.config import TimerSettings, get_settings


def test_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    settings = TimerSettings()

    assert settings.inactivity_threshold_minutes == 10
    assert settings.auto_resume is True
    assert settings.auto_resume_delay_seconds == 2
    assert settings.passive_resume_delay_seconds == 5
    assert settings.enable_pomodoro is False
    assert settings.work_duration_minutes == 25
    assert settings.break_duration_minutes == 5
    assert settings.daily_goal_hours == 0
    assert settings.log_level == "INFO"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PROJECT_TIMER_INACTIVITY_THRESHOLD", "15")
    monkeypatch.setenv("PROJECT_TIMER_ENABLE_POMODORO", "true")
    monkeypatch.setenv("PROJECT_TIMER_LOG_LEVEL", "debug")

    settings = TimerSettings()

    assert settings.inactivity_threshold_minutes == 15
    assert settings.enable_pomodoro is True
    assert settings.log_level == "DEBUG"


def test_yaml_file_is_read(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "project-timer.yaml").write_text(
        "daily_goal_hours: 6\nweekly_goal_hours: 30\ntrack_git_info: false\n",
        encoding="utf-8",
    )

    settings = TimerSettings()

    assert settings.daily_goal_hours == 6
    assert settings.weekly_goal_hours == 30
    assert settings.track_git_info is False


@pytest.mark.parametrize(
    "overrides",
    [
        {"log_level": "verbose"},
        {"inactivity_threshold_minutes": 0},
        {"work_duration_minutes": -1},
        {"auto_resume_delay_seconds": -2},
        {"daily_goal_hours": -1},
    ],
)
def test_invalid_values_rejected(overrides) -> None:
    with pytest.raises(ValidationError):
        TimerSettings(**overrides)


def test_get_settings_expands_paths(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PROJECT_TIMER_DATA_PATH", "data/timer.json")
    monkeypatch.setenv("PROJECT_TIMER_WORKSPACE", ".")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.data_path == (tmp_path / "data" / "timer.json").resolve()
        assert settings.workspace_path == tmp_path.resolve()
        assert get_settings() is settings
    finally:
        get_settings.cache_clear()
