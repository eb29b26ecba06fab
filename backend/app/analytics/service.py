from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from typing import Protocol, runtime_checkable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.config import Settings
from ..core.errors import DataUnavailable
from ..metrics import ANALYTICS_FAILURES, SUGGESTIONS_EMITTED
from .aggregator import (
    DailyTrendStat,
    SubjectEmotionStat,
    TimeSlotEmotionStat,
    aggregate,
    localize,
)
from .streak import compute_streak
from .suggestions import Suggestion, generate_suggestions
from .taxonomy import StudyLogRecord

logger = logging.getLogger(__name__)


@runtime_checkable
class StudyLogStore(Protocol):  # pragma: no cover - structural typing helper
    async def fetch_logs(self, user_id: int) -> Sequence[StudyLogRecord]: ...


@dataclass(frozen=True)
class AnalyticsReport:
    total_sessions: int
    subject_emotions: tuple[SubjectEmotionStat, ...]
    weekly_trend: tuple[DailyTrendStat, ...]
    time_analysis: tuple[TimeSlotEmotionStat, ...]
    streak: int


def resolve_timezone(name: str | None) -> tzinfo:
    if not name or name.upper() == "UTC":
        return UTC
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown reporting timezone %s, using UTC", name)
        return UTC


class AnalyticsService:
    """Compose aggregation, streak and suggestions for one user per request."""

    def __init__(
        self,
        storage: StudyLogStore,
        *,
        settings: Settings,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._storage = storage
        self._window_days = settings.analytics_window_days
        self._tz = resolve_timezone(settings.reporting_timezone)
        self._clock = clock or datetime.utcnow

    @property
    def timezone(self) -> tzinfo:
        return self._tz

    async def build_report(self, user_id: int, now: datetime | None = None) -> AnalyticsReport:
        logs = await self._fetch(user_id)
        return self._compose(logs, now or self._clock())

    async def suggestions(self, user_id: int, now: datetime | None = None) -> list[Suggestion]:
        _, suggestions = await self.overview(user_id, now)
        return suggestions

    async def overview(
        self, user_id: int, now: datetime | None = None
    ) -> tuple[AnalyticsReport, list[Suggestion]]:
        logs = await self._fetch(user_id)
        report = self._compose(logs, now or self._clock())
        suggestions = generate_suggestions(report, logs, tz=self._tz)
        for item in suggestions:
            SUGGESTIONS_EMITTED.labels(category=item.category.value).inc()
        return report, suggestions

    async def _fetch(self, user_id: int) -> Sequence[StudyLogRecord]:
        try:
            return await self._storage.fetch_logs(user_id)
        except DataUnavailable as exc:
            ANALYTICS_FAILURES.labels(reason="data_unavailable").inc()
            logger.warning("Study logs unavailable for analytics: %s", exc)
            raise

    def _compose(self, logs: Sequence[StudyLogRecord], now: datetime) -> AnalyticsReport:
        summary = aggregate(logs, now, self._window_days, tz=self._tz)
        today = localize(now, self._tz).date()
        streak = compute_streak(logs, today, tz=self._tz)
        logger.debug(
            "Analytics report built sessions=%s streak=%s",
            summary.total_sessions,
            streak,
        )
        return AnalyticsReport(
            total_sessions=summary.total_sessions,
            subject_emotions=summary.subject_emotions,
            weekly_trend=summary.weekly_trend,
            time_analysis=summary.time_analysis,
            streak=streak,
        )


__all__ = ["AnalyticsReport", "AnalyticsService", "StudyLogStore", "resolve_timezone"]
