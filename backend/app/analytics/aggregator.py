from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, tzinfo
from decimal import ROUND_HALF_UP, Decimal

from .taxonomy import Emotion, EmotionReading, StudyLogRecord

DEFAULT_WINDOW_DAYS = 7
_ONE_DECIMAL = Decimal("0.1")


@dataclass(frozen=True)
class SubjectEmotionStat:
    subject: str
    emotion: Emotion
    avg_score: float
    count: int
    total_score: float


@dataclass(frozen=True)
class TimeSlotEmotionStat:
    hour: int
    emotion: Emotion
    avg_score: float
    count: int


@dataclass(frozen=True)
class DailyTrendStat:
    date: str
    emotion: Emotion
    avg_score: float
    count: int


@dataclass(frozen=True)
class Aggregation:
    total_sessions: int
    subject_emotions: tuple[SubjectEmotionStat, ...]
    weekly_trend: tuple[DailyTrendStat, ...]
    time_analysis: tuple[TimeSlotEmotionStat, ...]


def round_average(total: int | float, count: int) -> float:
    """Average rounded half-up to one decimal place."""

    value = Decimal(total) / Decimal(count)
    return float(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def localize(value: datetime, tz: tzinfo) -> datetime:
    """Project a stored timestamp (naive UTC) into the reporting timezone."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(tz)


def _readings(logs: Iterable[StudyLogRecord]) -> Iterator[tuple[StudyLogRecord, EmotionReading]]:
    for record in logs:
        for reading in record.emotions or ():
            yield record, reading


def _group(
    pairs: Iterable[tuple[object, EmotionReading]],
) -> dict[tuple[object, Emotion], list[int]]:
    buckets: dict[tuple[object, Emotion], list[int]] = {}
    for key, reading in pairs:
        bucket = buckets.setdefault((key, reading.emotion), [0, 0])
        bucket[0] += reading.score
        bucket[1] += 1
    return buckets


def _sort_key(item: tuple[tuple[object, Emotion], list[int]]) -> tuple[object, str]:
    (key, emotion), _ = item
    return key, emotion.value


def subject_emotions(logs: Iterable[StudyLogRecord]) -> tuple[SubjectEmotionStat, ...]:
    buckets = _group((record.subject, reading) for record, reading in _readings(logs))
    return tuple(
        SubjectEmotionStat(
            subject=subject,  # type: ignore[arg-type]
            emotion=emotion,
            avg_score=round_average(total, count),
            count=count,
            total_score=float(total),
        )
        for (subject, emotion), (total, count) in sorted(buckets.items(), key=_sort_key)
    )


def time_analysis(
    logs: Iterable[StudyLogRecord], tz: tzinfo = UTC
) -> tuple[TimeSlotEmotionStat, ...]:
    buckets = _group(
        (localize(record.study_time, tz).hour, reading) for record, reading in _readings(logs)
    )
    return tuple(
        TimeSlotEmotionStat(
            hour=hour,  # type: ignore[arg-type]
            emotion=emotion,
            avg_score=round_average(total, count),
            count=count,
        )
        for (hour, emotion), (total, count) in sorted(buckets.items(), key=_sort_key)
    )


def weekly_trend(
    logs: Iterable[StudyLogRecord],
    now: datetime,
    *,
    window_days: int = DEFAULT_WINDOW_DAYS,
    tz: tzinfo = UTC,
) -> tuple[DailyTrendStat, ...]:
    upper = to_utc_naive(now)
    lower = upper - timedelta(days=window_days)
    in_window = (
        record for record in logs if lower <= to_utc_naive(record.study_time) <= upper
    )
    buckets = _group(
        (localize(record.study_time, tz).date().isoformat(), reading)
        for record, reading in _readings(in_window)
    )
    return tuple(
        DailyTrendStat(
            date=day,  # type: ignore[arg-type]
            emotion=emotion,
            avg_score=round_average(total, count),
            count=count,
        )
        for (day, emotion), (total, count) in sorted(buckets.items(), key=_sort_key)
    )


def aggregate(
    logs: Sequence[StudyLogRecord],
    now: datetime,
    window_days: int = DEFAULT_WINDOW_DAYS,
    *,
    tz: tzinfo = UTC,
) -> Aggregation:
    """Build the grouped summaries for one user's study logs.

    Only the day trend is restricted to the trailing window; subject and
    hour-of-day summaries cover every log.
    """

    return Aggregation(
        total_sessions=len(logs),
        subject_emotions=subject_emotions(logs),
        weekly_trend=weekly_trend(logs, now, window_days=window_days, tz=tz),
        time_analysis=time_analysis(logs, tz),
    )


__all__ = [
    "Aggregation",
    "DEFAULT_WINDOW_DAYS",
    "DailyTrendStat",
    "SubjectEmotionStat",
    "TimeSlotEmotionStat",
    "aggregate",
    "localize",
    "round_average",
    "subject_emotions",
    "time_analysis",
    "to_utc_naive",
    "weekly_trend",
]
