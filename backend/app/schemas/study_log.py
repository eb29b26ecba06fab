from __future__ import annotations

import json
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..analytics.taxonomy import SCORE_MAX, SCORE_MIN, Emotion


class EmotionScore(BaseModel):
    emotion: Emotion
    score: int = Field(..., ge=SCORE_MIN, le=SCORE_MAX)


class StudyLogCreate(BaseModel):
    subject: str = Field(..., min_length=1, max_length=120)
    emotions: list[EmotionScore] = Field(..., min_length=1)
    study_time: datetime | None = None
    duration: int | None = Field(default=None, ge=1)
    notes: str | None = Field(default=None, max_length=500)
    tags: list[str] = Field(default_factory=list)

    @field_validator("subject")
    @classmethod
    def _strip_subject(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("subject must not be blank")
        return stripped

    @field_validator("notes")
    @classmethod
    def _strip_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, value: list[str]) -> list[str]:
        cleaned: list[str] = []
        for tag in value:
            stripped = str(tag).strip()
            if stripped and stripped not in cleaned:
                cleaned.append(stripped)
        return cleaned


class StudyLogModel(BaseModel):
    id: int
    subject: str
    emotions: list[EmotionScore]
    study_time: datetime
    duration: int | None
    notes: str | None
    tags: list[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("emotions", "tags", mode="before")
    @classmethod
    def _decode_json(cls, value: object) -> object:
        if isinstance(value, str):
            return json.loads(value or "[]")
        return value


class StudyLogListResponse(BaseModel):
    items: list[StudyLogModel]


class StudyLogCreateResponse(BaseModel):
    ok: bool = True
    id: int
    log: StudyLogModel
