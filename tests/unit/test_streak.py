from __future__ import annotations

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from backend.app.analytics.streak import compute_streak, study_dates


def _at(day: date, hour: int = 10) -> datetime:
    return datetime(day.year, day.month, day.day, hour)


def test_streak_stops_at_first_gap(make_log) -> None:
    days = [date(2024, 5, 10), date(2024, 5, 9), date(2024, 5, 8), date(2024, 5, 6)]
    logs = [make_log("Math", _at(day), ("Calm", 5)) for day in days]

    assert compute_streak(logs, date(2024, 5, 10)) == 3


def test_streak_is_zero_without_a_log_today(make_log) -> None:
    today = date(2024, 5, 10)
    logs = [
        make_log("Math", _at(today - timedelta(days=offset)), ("Calm", 5))
        for offset in range(1, 6)
    ]

    assert compute_streak(logs, today) == 0


def test_streak_counts_distinct_days(make_log) -> None:
    today = date(2024, 5, 10)
    logs = [
        make_log("Math", _at(today, 8), ("Calm", 5)),
        make_log("Art", _at(today, 20), ("Happy", 7)),
        make_log("Math", _at(today - timedelta(days=1), 9), ("Tired", 3)),
    ]

    assert study_dates(logs) == [today, today - timedelta(days=1)]
    assert compute_streak(logs, today) == 2


def test_streak_for_empty_logs() -> None:
    assert compute_streak([], date(2024, 5, 10)) == 0


def test_streak_uses_reporting_timezone(make_log) -> None:
    tokyo = ZoneInfo("Asia/Tokyo")
    # 16:00 UTC on May 9 is already May 10 in Tokyo
    logs = [make_log("Math", datetime(2024, 5, 9, 16, 0), ("Calm", 5))]

    assert compute_streak(logs, date(2024, 5, 10)) == 0
    assert compute_streak(logs, date(2024, 5, 10), tz=tokyo) == 1
