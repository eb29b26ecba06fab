from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/studymood.db",
        alias="DATABASE_URL",
    )
    log_file: Path = Field(default=Path("logs/studymood.log"))

    # Analytics
    reporting_timezone: str = Field(default="UTC", alias="REPORTING_TIMEZONE")
    analytics_window_days: int = Field(default=7, alias="ANALYTICS_WINDOW_DAYS")
    group_activity_days: int = Field(default=7, alias="GROUP_ACTIVITY_DAYS")

    study_log_rate_limit: int = Field(default=30, alias="STUDY_LOG_RATE_LIMIT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    version: str = Field(default_factory=lambda: Settings._load_version())

    @staticmethod
    def _load_version() -> str:
        version_env = os.getenv("VERSION")
        if version_env:
            return version_env
        version_file = Path("VERSION")
        if version_file.exists():
            return version_file.read_text(encoding="utf-8").strip()
        return "0.0.0"

    @field_validator("log_file", mode="before")
    @classmethod
    def _validate_log_file(cls, value: Path | str) -> Path:
        path = Path(value)
        if not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        return path

    @field_validator("reporting_timezone", mode="before")
    @classmethod
    def _validate_timezone(cls, value: str | None) -> str:
        if not value or str(value).upper() == "UTC":
            return "UTC"
        try:
            ZoneInfo(str(value))
        except (ZoneInfoNotFoundError, ValueError):
            return "UTC"
        return str(value)

    @field_validator("analytics_window_days", mode="before")
    @classmethod
    def _validate_window(cls, value: int | str | None) -> int:
        if value is None:
            return 7
        return min(max(int(value), 1), 90)

    @field_validator("group_activity_days", mode="before")
    @classmethod
    def _validate_group_window(cls, value: int | str | None) -> int:
        if value is None:
            return 7
        return max(int(value), 1)

    @field_validator("study_log_rate_limit", mode="before")
    @classmethod
    def _validate_rate_limit(cls, value: int | str | None) -> int:
        if value is None:
            return 30
        return max(int(value), 1)

    @field_validator("database_url", mode="before")
    @classmethod
    def _validate_database_url(cls, value: str | None) -> str:
        if not value:
            value = "sqlite:///./data/studymood.db"

        normalized = str(value)
        if normalized.startswith("postgres://"):
            normalized = normalized.replace("postgres://", "postgresql://", 1)
        if normalized.startswith("postgresql://") and "+asyncpg" not in normalized:
            normalized = normalized.replace("postgresql://", "postgresql+asyncpg://", 1)
        if normalized.startswith("sqlite://") and "+aiosqlite" not in normalized:
            normalized = normalized.replace("sqlite://", "sqlite+aiosqlite://", 1)

        if normalized.startswith("sqlite+aiosqlite:///"):
            db_path = normalized.split("///", maxsplit=1)[-1]
            if db_path and db_path != ":memory:":
                db_file = Path(db_path)
                db_file.parent.mkdir(parents=True, exist_ok=True)

        return normalized


@lru_cache
def get_settings() -> Settings:
    """Cached settings accessor."""

    return Settings()
