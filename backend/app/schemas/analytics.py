from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..analytics.service import AnalyticsReport
from ..analytics.suggestions import Suggestion, SuggestionCategory
from ..analytics.taxonomy import Emotion


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SubjectEmotionModel(_CamelModel):
    subject: str
    emotion: Emotion
    avg_score: float
    count: int
    total_score: float


class DailyTrendModel(_CamelModel):
    date: str
    emotion: Emotion
    avg_score: float
    count: int


class TimeSlotModel(_CamelModel):
    hour: int
    emotion: Emotion
    avg_score: float
    count: int


class AnalyticsResponse(_CamelModel):
    total_sessions: int
    subject_emotions: list[SubjectEmotionModel]
    weekly_trend: list[DailyTrendModel]
    time_analysis: list[TimeSlotModel]
    streak: int

    @classmethod
    def from_report(cls, report: AnalyticsReport) -> AnalyticsResponse:
        return cls(
            total_sessions=report.total_sessions,
            subject_emotions=[
                SubjectEmotionModel.model_validate(item) for item in report.subject_emotions
            ],
            weekly_trend=[DailyTrendModel.model_validate(item) for item in report.weekly_trend],
            time_analysis=[TimeSlotModel.model_validate(item) for item in report.time_analysis],
            streak=report.streak,
        )


class SuggestionModel(BaseModel):
    type: SuggestionCategory
    message: str

    @classmethod
    def from_suggestion(cls, suggestion: Suggestion) -> SuggestionModel:
        return cls(type=suggestion.category, message=suggestion.message)


class SuggestionListResponse(BaseModel):
    items: list[SuggestionModel]


__all__ = [
    "AnalyticsResponse",
    "DailyTrendModel",
    "SubjectEmotionModel",
    "SuggestionListResponse",
    "SuggestionModel",
    "TimeSlotModel",
]
