from __future__ import annotations

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from backend.app.analytics.aggregator import aggregate, round_average
from backend.app.analytics.taxonomy import Emotion, StudyLogRecord

NOW = datetime(2024, 5, 10, 12, 0, 0)


def test_empty_logs_produce_empty_summaries() -> None:
    result = aggregate([], NOW)
    assert result.total_sessions == 0
    assert result.subject_emotions == ()
    assert result.weekly_trend == ()
    assert result.time_analysis == ()


@pytest.mark.parametrize(
    ("total", "count", "expected"),
    [
        (161, 20, 8.1),  # 8.05 rounds up
        (1, 40, 0.0),  # 0.025
        (3, 40, 0.1),  # 0.075
        (20, 3, 6.7),
        (10, 4, 2.5),
    ],
)
def test_round_average_is_half_up(total: int, count: int, expected: float) -> None:
    assert round_average(total, count) == expected


def test_subject_emotions_grouped_and_sorted(make_log) -> None:
    logs = [
        make_log("Physics", NOW, ("Stressed", 8), ("Tired", 4)),
        make_log("Math", NOW, ("Stressed", 5)),
        make_log("Physics", NOW - timedelta(days=40), ("Stressed", 7)),
    ]
    result = aggregate(logs, NOW)

    rows = [(item.subject, item.emotion.value, item.avg_score, item.count, item.total_score)
            for item in result.subject_emotions]
    assert rows == [
        ("Math", "Stressed", 5.0, 1, 5.0),
        ("Physics", "Stressed", 7.5, 2, 15.0),
        ("Physics", "Tired", 4.0, 1, 4.0),
    ]


def test_count_conservation(make_log) -> None:
    logs = [
        make_log("Math", NOW, ("Happy", 3), ("Calm", 6), ("Focused", 9)),
        make_log("Art", NOW - timedelta(hours=5), ("Bored", 2)),
        make_log("Art", NOW - timedelta(days=12), ("Bored", 4), ("Happy", 1)),
    ]
    result = aggregate(logs, NOW)

    expected = sum(len(log.emotions) for log in logs)
    assert sum(item.count for item in result.subject_emotions) == expected
    assert sum(item.count for item in result.time_analysis) == expected


def test_aggregation_is_deterministic(make_log) -> None:
    logs = [
        make_log("Math", NOW - timedelta(hours=offset), ("Focused", offset % 11))
        for offset in range(30)
    ]
    assert aggregate(logs, NOW) == aggregate(list(logs), NOW)


def test_weekly_trend_ignores_old_logs_but_other_summaries_do_not(make_log) -> None:
    logs = [
        make_log("History", NOW - timedelta(days=30), ("Calm", 6)),
        make_log("History", NOW - timedelta(days=30, hours=3), ("Anxious", 2)),
    ]
    result = aggregate(logs, NOW)

    assert result.weekly_trend == ()
    assert {item.emotion for item in result.subject_emotions} == {Emotion.CALM, Emotion.ANXIOUS}
    assert sum(item.count for item in result.time_analysis) == 2
    assert result.total_sessions == 2


def test_weekly_trend_window_bounds(make_log) -> None:
    logs = [
        make_log("Math", NOW - timedelta(days=7), ("Happy", 4)),  # exactly on the lower bound
        make_log("Math", NOW - timedelta(days=7, seconds=1), ("Happy", 10)),
        make_log("Math", NOW, ("Happy", 6)),
        make_log("Math", NOW + timedelta(minutes=1), ("Happy", 1)),
    ]
    result = aggregate(logs, NOW)

    rows = [(item.date, item.emotion.value, item.avg_score, item.count)
            for item in result.weekly_trend]
    assert rows == [
        ("2024-05-03", "Happy", 4.0, 1),
        ("2024-05-10", "Happy", 6.0, 1),
    ]


def test_weekly_trend_custom_window(make_log) -> None:
    logs = [make_log("Math", NOW - timedelta(days=10), ("Calm", 5))]
    assert aggregate(logs, NOW).weekly_trend == ()
    assert len(aggregate(logs, NOW, window_days=14).weekly_trend) == 1


def test_time_analysis_hours(make_log) -> None:
    today = datetime(2024, 5, 10)
    logs = [
        make_log("Math", today.replace(hour=23, minute=30), ("Stressed", 8)),
        make_log("Math", today.replace(hour=23, minute=45), ("Tired", 7)),
        make_log("Math", today.replace(hour=6), ("Focused", 9)),
    ]
    result = aggregate(logs, NOW)

    rows = [(item.hour, item.emotion.value, item.avg_score, item.count)
            for item in result.time_analysis]
    assert rows == [
        (6, "Focused", 9.0, 1),
        (23, "Stressed", 8.0, 1),
        (23, "Tired", 7.0, 1),
    ]


def test_reporting_timezone_shifts_hours_and_dates(make_log) -> None:
    tz = ZoneInfo("America/New_York")
    # 02:30 UTC on May 10 is 22:30 on May 9 in New York (EDT, UTC-4)
    logs = [make_log("Math", datetime(2024, 5, 10, 2, 30), ("Calm", 5))]
    result = aggregate(logs, NOW, tz=tz)

    assert result.time_analysis[0].hour == 22
    assert result.weekly_trend[0].date == "2024-05-09"


def test_aware_timestamps_are_normalized(make_log) -> None:
    aware_now = NOW.replace(tzinfo=UTC)
    logs = [make_log("Math", NOW - timedelta(days=1), ("Happy", 5))]
    assert len(aggregate(logs, aware_now).weekly_trend) == 1


def test_record_without_emotions_contributes_nothing() -> None:
    record = StudyLogRecord(id=1, user_id=1, subject="Math", emotions=(), study_time=NOW)
    result = aggregate([record], NOW)

    assert result.total_sessions == 1
    assert result.subject_emotions == ()
    assert result.time_analysis == ()
