"""Configuration management for Project Timer."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


def _alias(field_name: str, env_name: str) -> AliasChoices:
    return AliasChoices(field_name, env_name)


class TimerSettings(BaseSettings):
    """Runtime configuration sourced from environment variables, .env and project-timer.yaml."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file="project-timer.yaml",
        extra="ignore",
        populate_by_name=True,
    )

    data_path: Path = Field(
        default=Path("~/.project-timer/project-time-data.json"),
        validation_alias=_alias("data_path", "PROJECT_TIMER_DATA_PATH"),
    )
    workspace_path: Path | None = Field(
        default=None, validation_alias=_alias("workspace_path", "PROJECT_TIMER_WORKSPACE")
    )
    log_level: str = Field(default="INFO", validation_alias=_alias("log_level", "PROJECT_TIMER_LOG_LEVEL"))

    inactivity_threshold_minutes: float = Field(
        default=10, validation_alias=_alias("inactivity_threshold_minutes", "PROJECT_TIMER_INACTIVITY_THRESHOLD")
    )
    auto_resume: bool = Field(default=True, validation_alias=_alias("auto_resume", "PROJECT_TIMER_AUTO_RESUME"))
    auto_resume_delay_seconds: float = Field(
        default=2, validation_alias=_alias("auto_resume_delay_seconds", "PROJECT_TIMER_AUTO_RESUME_DELAY")
    )
    passive_resume_delay_seconds: float = Field(
        default=5,
        validation_alias=_alias("passive_resume_delay_seconds", "PROJECT_TIMER_PASSIVE_RESUME_DELAY"),
    )

    enable_pomodoro: bool = Field(
        default=False, validation_alias=_alias("enable_pomodoro", "PROJECT_TIMER_ENABLE_POMODORO")
    )
    work_duration_minutes: float = Field(
        default=25, validation_alias=_alias("work_duration_minutes", "PROJECT_TIMER_WORK_DURATION")
    )
    break_duration_minutes: float = Field(
        default=5, validation_alias=_alias("break_duration_minutes", "PROJECT_TIMER_BREAK_DURATION")
    )

    daily_goal_hours: float = Field(
        default=0, validation_alias=_alias("daily_goal_hours", "PROJECT_TIMER_DAILY_GOAL_HOURS")
    )
    weekly_goal_hours: float = Field(
        default=0, validation_alias=_alias("weekly_goal_hours", "PROJECT_TIMER_WEEKLY_GOAL_HOURS")
    )

    track_file_types: bool = Field(
        default=True, validation_alias=_alias("track_file_types", "PROJECT_TIMER_TRACK_FILE_TYPES")
    )
    track_git_info: bool = Field(
        default=True, validation_alias=_alias("track_git_info", "PROJECT_TIMER_TRACK_GIT_INFO")
    )

    save_interval_seconds: float = Field(
        default=60, validation_alias=_alias("save_interval_seconds", "PROJECT_TIMER_SAVE_INTERVAL")
    )
    git_poll_interval_seconds: float = Field(
        default=15, validation_alias=_alias("git_poll_interval_seconds", "PROJECT_TIMER_GIT_POLL_INTERVAL")
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "PROJECT_TIMER_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator(
        "inactivity_threshold_minutes",
        "work_duration_minutes",
        "break_duration_minutes",
        "save_interval_seconds",
    )
    @classmethod
    def _validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("durations and thresholds must be > 0")
        return value

    @field_validator(
        "auto_resume_delay_seconds",
        "passive_resume_delay_seconds",
        "daily_goal_hours",
        "weekly_goal_hours",
        "git_poll_interval_seconds",
    )
    @classmethod
    def _validate_non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("delays, goals and poll intervals must be >= 0")
        return value


@lru_cache(maxsize=1)
def get_settings() -> TimerSettings:
    """Return cached settings instance."""

    settings = TimerSettings()
    settings.data_path = settings.data_path.expanduser().resolve()
    if settings.workspace_path is not None:
        settings.workspace_path = settings.workspace_path.expanduser().resolve()
    return settings


__all__ = ["TimerSettings", "get_settings"]
