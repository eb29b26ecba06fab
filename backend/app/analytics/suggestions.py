from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, tzinfo
from enum import Enum
from typing import Protocol

from .aggregator import SubjectEmotionStat, TimeSlotEmotionStat, localize
from .taxonomy import NEGATIVE_EMOTIONS, POSITIVE_EMOTIONS, Emotion, StudyLogRecord

STRESS_THRESHOLD_PCT = 60.0
MORNING_FOCUS_SHARE_PCT = 50.0
LATE_NIGHT_TIRED_PCT = 50.0
TIRED_SCORE_THRESHOLD = 5
POSITIVE_AVG_THRESHOLD = 6.0
NEGATIVE_AVG_THRESHOLD = 5.0
BORED_AVG_THRESHOLD = 5.0

# Hours 0-5 belong to no bucket; only 18-23 counts as evening.
MORNING_HOURS = range(6, 12)
AFTERNOON_HOURS = range(12, 18)
EVENING_HOURS = range(18, 24)
LATE_NIGHT_START_HOUR = 23
LATE_NIGHT_END_HOUR = 2


class SuggestionCategory(str, Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"


@dataclass(frozen=True)
class Suggestion:
    category: SuggestionCategory
    message: str


class SummarySource(Protocol):
    total_sessions: int
    subject_emotions: Sequence[SubjectEmotionStat]
    time_analysis: Sequence[TimeSlotEmotionStat]


RuleFn = Callable[[SummarySource, Sequence[StudyLogRecord], tzinfo], list[Suggestion]]


@dataclass(frozen=True)
class Rule:
    id: str
    evaluate: RuleFn


def _weighted(stats: Sequence[SubjectEmotionStat] | Sequence[TimeSlotEmotionStat]) -> float:
    return sum(item.avg_score * item.count for item in stats)


def stress_by_subject(
    report: SummarySource, logs: Sequence[StudyLogRecord], tz: tzinfo
) -> list[Suggestion]:
    totals: dict[str, int] = {}
    stressed: dict[str, int] = {}
    for item in report.subject_emotions:
        totals[item.subject] = totals.get(item.subject, 0) + item.count
        stressed.setdefault(item.subject, 0)
        if item.emotion is Emotion.STRESSED:
            stressed[item.subject] += item.count

    suggestions: list[Suggestion] = []
    for subject, total in totals.items():
        if not total:
            continue
        percentage = stressed[subject] / total * 100
        if percentage > STRESS_THRESHOLD_PCT:
            suggestions.append(
                Suggestion(
                    SuggestionCategory.WARNING,
                    f"You seem stressed while studying {subject} "
                    f"({percentage:.1f}% of sessions). "
                    "Consider shorter sessions or taking more breaks.",
                )
            )
    return suggestions


def morning_focus(
    report: SummarySource, logs: Sequence[StudyLogRecord], tz: tzinfo
) -> list[Suggestion]:
    focused = [item for item in report.time_analysis if item.emotion is Emotion.FOCUSED]
    morning = _weighted([item for item in focused if item.hour in MORNING_HOURS])
    afternoon = _weighted([item for item in focused if item.hour in AFTERNOON_HOURS])
    evening = _weighted([item for item in focused if item.hour in EVENING_HOURS])

    total = morning + afternoon + evening
    if total > 0 and morning / total * 100 > MORNING_FOCUS_SHARE_PCT:
        return [
            Suggestion(
                SuggestionCategory.SUCCESS,
                "You are most focused in the morning! "
                "Try scheduling difficult subjects earlier in the day.",
            )
        ]
    return []


def _is_late_night(record: StudyLogRecord, tz: tzinfo) -> bool:
    hour = localize(record.study_time, tz).hour
    return hour >= LATE_NIGHT_START_HOUR or hour < LATE_NIGHT_END_HOUR


def late_night_fatigue(
    report: SummarySource, logs: Sequence[StudyLogRecord], tz: tzinfo
) -> list[Suggestion]:
    late = [record for record in logs if _is_late_night(record, tz)]
    if not late:
        return []
    tired = [
        record
        for record in late
        if any(
            reading.emotion is Emotion.TIRED and reading.score > TIRED_SCORE_THRESHOLD
            for reading in record.emotions
        )
    ]
    if len(tired) / len(late) * 100 > LATE_NIGHT_TIRED_PCT:
        return [
            Suggestion(
                SuggestionCategory.WARNING,
                "Late-night study sessions may reduce focus. "
                "Consider studying earlier in the day for better productivity.",
            )
        ]
    return []


def emotional_balance(
    report: SummarySource, logs: Sequence[StudyLogRecord], tz: tzinfo
) -> list[Suggestion]:
    if report.total_sessions <= 0:
        return []
    positive = _weighted(
        [item for item in report.subject_emotions if item.emotion in POSITIVE_EMOTIONS]
    )
    negative = _weighted(
        [item for item in report.subject_emotions if item.emotion in NEGATIVE_EMOTIONS]
    )
    positive_avg = positive / report.total_sessions
    negative_avg = negative / report.total_sessions

    if positive_avg > POSITIVE_AVG_THRESHOLD:
        return [
            Suggestion(
                SuggestionCategory.SUCCESS,
                "Great emotional balance! Your average positive emotion score is "
                f"{positive_avg:.1f}/10. Keep up the good work!",
            )
        ]
    if negative_avg > NEGATIVE_AVG_THRESHOLD:
        return [
            Suggestion(
                SuggestionCategory.WARNING,
                f"Your average negative emotion score is {negative_avg:.1f}/10. "
                "Consider stress management techniques and regular breaks.",
            )
        ]
    return []


def boredom(
    report: SummarySource, logs: Sequence[StudyLogRecord], tz: tzinfo
) -> list[Suggestion]:
    subjects = [
        item.subject
        for item in report.subject_emotions
        if item.emotion is Emotion.BORED and item.avg_score > BORED_AVG_THRESHOLD
    ]
    if not subjects:
        return []
    return [
        Suggestion(
            SuggestionCategory.INFO,
            f"You seem bored with {', '.join(subjects)}. "
            "Try new study methods or break down topics into smaller, engaging tasks.",
        )
    ]


RULES: tuple[Rule, ...] = (
    Rule("subject_stress", stress_by_subject),
    Rule("morning_focus", morning_focus),
    Rule("late_night_fatigue", late_night_fatigue),
    Rule("emotional_balance", emotional_balance),
    Rule("boredom", boredom),
)

NO_DATA = Suggestion(
    SuggestionCategory.INFO,
    "Start logging your study sessions to get personalized suggestions!",
)
KEEP_TRACKING = Suggestion(
    SuggestionCategory.INFO,
    "Keep tracking your study sessions to discover patterns and improve your study habits!",
)


def generate_suggestions(
    report: SummarySource,
    logs: Sequence[StudyLogRecord],
    *,
    tz: tzinfo = UTC,
    rules: Sequence[Rule] = RULES,
) -> list[Suggestion]:
    """Evaluate every rule in order and concatenate what fires."""

    if not logs:
        return [NO_DATA]

    suggestions: list[Suggestion] = []
    for rule in rules:
        suggestions.extend(rule.evaluate(report, logs, tz))

    if not suggestions:
        suggestions.append(KEEP_TRACKING)
    return suggestions


__all__ = [
    "KEEP_TRACKING",
    "NO_DATA",
    "RULES",
    "Rule",
    "Suggestion",
    "SuggestionCategory",
    "SummarySource",
    "boredom",
    "emotional_balance",
    "generate_suggestions",
    "late_night_fatigue",
    "morning_focus",
    "stress_by_subject",
]
