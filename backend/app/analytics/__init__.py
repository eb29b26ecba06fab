"""Study log analytics: aggregation, streaks and rule-based suggestions."""

from .aggregator import (
    Aggregation,
    DailyTrendStat,
    SubjectEmotionStat,
    TimeSlotEmotionStat,
    aggregate,
)
from .service import AnalyticsReport, AnalyticsService, StudyLogStore
from .streak import compute_streak
from .suggestions import Suggestion, SuggestionCategory, generate_suggestions
from .taxonomy import Emotion, EmotionReading, StudyLogRecord

__all__ = [
    "Aggregation",
    "AnalyticsReport",
    "AnalyticsService",
    "DailyTrendStat",
    "Emotion",
    "EmotionReading",
    "StudyLogRecord",
    "StudyLogStore",
    "SubjectEmotionStat",
    "Suggestion",
    "SuggestionCategory",
    "TimeSlotEmotionStat",
    "aggregate",
    "compute_streak",
    "generate_suggestions",
]
