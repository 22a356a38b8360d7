"""Configuration management for Timekeeper."""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Annotated
import os

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .errors import ConfigurationError


class TimekeeperSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    data_path: Path = Field(
        default=Path("~/.timekeeper"), validation_alias="TIMEKEEPER_DATA_PATH"
    )
    idle_threshold_minutes: float = Field(
        default=30.0, validation_alias="TIMEKEEPER_IDLE_THRESHOLD_MINUTES"
    )
    lock_timeout_seconds: float = Field(
        default=5.0, validation_alias="TIMEKEEPER_LOCK_TIMEOUT_SECONDS"
    )
    planner_paths: Annotated[tuple[Path, ...], NoDecode] = Field(
        default=(Path("planners"),), validation_alias="TIMEKEEPER_PLANNER_PATHS"
    )
    planner_id: str | None = Field(default=None, validation_alias="TIMEKEEPER_PLANNER_ID")
    log_level: str = Field(default="WARNING", validation_alias="TIMEKEEPER_LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "TIMEKEEPER_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("planner_paths", mode="before")
    @classmethod
    def _parse_planner_paths(cls, value):
        if value is None or value == "":
            return (Path("planners"),)
        if isinstance(value, (list, tuple)):
            return tuple(Path(str(item)) for item in value)
        if isinstance(value, str):
            parts = [part.strip() for part in value.split(os.pathsep) if part.strip()]
            return tuple(Path(part) for part in parts) or (Path("planners"),)
        raise TypeError("TIMEKEEPER_PLANNER_PATHS must be a list of paths or a path-separated string")

    @field_validator("idle_threshold_minutes")
    @classmethod
    def _validate_idle_threshold(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("TIMEKEEPER_IDLE_THRESHOLD_MINUTES must be > 0")
        return value

    @field_validator("lock_timeout_seconds")
    @classmethod
    def _validate_lock_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("TIMEKEEPER_LOCK_TIMEOUT_SECONDS must be > 0")
        return value

    @property
    def idle_threshold(self) -> timedelta:
        return timedelta(minutes=self.idle_threshold_minutes)

    @property
    def schedule_path(self) -> Path:
        return self.data_path / "schedule"

    @property
    def session_path(self) -> Path:
        return self.data_path / "session"


@lru_cache(maxsize=1)
def get_settings() -> TimekeeperSettings:
    """Return cached settings instance."""

    try:
        settings = TimekeeperSettings()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc.errors()[0]['msg']}") from exc
    settings.data_path = settings.data_path.expanduser().resolve()
    settings.planner_paths = tuple(path.expanduser().resolve() for path in settings.planner_paths)
    return settings


__all__ = ["TimekeeperSettings", "get_settings"]
