from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, timedelta, tzinfo

from .aggregator import localize
from .taxonomy import StudyLogRecord


def study_dates(logs: Iterable[StudyLogRecord], tz: tzinfo = UTC) -> list[date]:
    """Distinct calendar dates with at least one log, newest first."""

    return sorted({localize(record.study_time, tz).date() for record in logs}, reverse=True)


def compute_streak(logs: Iterable[StudyLogRecord], today: date, *, tz: tzinfo = UTC) -> int:
    """Count consecutive logged days walking back from ``today``.

    The streak must include ``today``: a missing today yields 0, and the
    first gap ends the walk.
    """

    streak = 0
    for offset, logged in enumerate(study_dates(logs, tz)):
        if logged != today - timedelta(days=offset):
            break
        streak += 1
    return streak


__all__ = ["compute_streak", "study_dates"]
