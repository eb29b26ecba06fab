from __future__ import annotations

from pathlib import Path

import pytest

from backend.app.core import config
from backend.app.core.config import get_settings


@pytest.fixture(autouse=True)
def reset_settings_cache() -> None:
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


def test_settings_read_values_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("VERSION", "9.9.9")
    monkeypatch.setenv("REPORTING_TIMEZONE", "Europe/Berlin")
    monkeypatch.setenv("ANALYTICS_WINDOW_DAYS", "14")
    monkeypatch.setenv("DATABASE_URL", "postgres://user:pass@db:5432/studymood")
    monkeypatch.chdir(tmp_path)

    settings = get_settings()

    assert settings.version == "9.9.9"
    assert settings.reporting_timezone == "Europe/Berlin"
    assert settings.analytics_window_days == 14
    assert settings.database_url == "postgresql+asyncpg://user:pass@db:5432/studymood"
    assert settings.log_file.parent.exists()


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("REPORTING_TIMEZONE", "ANALYTICS_WINDOW_DAYS", "STUDY_LOG_RATE_LIMIT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

    settings = get_settings()

    assert settings.reporting_timezone == "UTC"
    assert settings.analytics_window_days == 7
    assert settings.study_log_rate_limit == 30


def test_settings_clamp_invalid_values(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("REPORTING_TIMEZONE", "Nowhere/Special")
    monkeypatch.setenv("ANALYTICS_WINDOW_DAYS", "365")
    monkeypatch.setenv("GROUP_ACTIVITY_DAYS", "0")
    monkeypatch.chdir(tmp_path)

    settings = get_settings()

    assert settings.reporting_timezone == "UTC"
    assert settings.analytics_window_days == 90
    assert settings.group_activity_days == 1


def test_settings_fallback_to_version_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    version_file = tmp_path / "VERSION"
    version_file.write_text("1.2.3", encoding="utf-8")
    monkeypatch.delenv("VERSION", raising=False)
    monkeypatch.chdir(tmp_path)

    settings = get_settings()

    assert settings.version == "1.2.3"
    assert settings.log_file.parent.exists()
