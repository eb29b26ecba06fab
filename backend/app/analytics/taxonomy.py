from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ..core.errors import InvalidEmotionReading

SCORE_MIN = 0
SCORE_MAX = 10


class Emotion(str, Enum):
    HAPPY = "Happy"
    TIRED = "Tired"
    STRESSED = "Stressed"
    EXCITED = "Excited"
    ANXIOUS = "Anxious"
    FOCUSED = "Focused"
    BORED = "Bored"
    CONFIDENT = "Confident"
    FRUSTRATED = "Frustrated"
    CALM = "Calm"

    @classmethod
    def parse(cls, value: object, score: object = None) -> Emotion:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            allowed = ", ".join(item.value for item in cls)
            raise InvalidEmotionReading(
                value, score, f"emotion must be one of: {allowed}"
            ) from exc


POSITIVE_EMOTIONS = frozenset(
    {Emotion.HAPPY, Emotion.EXCITED, Emotion.CONFIDENT, Emotion.CALM, Emotion.FOCUSED}
)
NEGATIVE_EMOTIONS = frozenset({Emotion.STRESSED, Emotion.ANXIOUS, Emotion.FRUSTRATED})


@dataclass(frozen=True)
class EmotionReading:
    emotion: Emotion
    score: int

    def __post_init__(self) -> None:
        emotion = Emotion.parse(self.emotion, self.score)
        # bool is an int subclass but never a valid score
        if isinstance(self.score, bool) or not isinstance(self.score, int):
            raise InvalidEmotionReading(emotion.value, self.score, "score must be an integer")
        if not SCORE_MIN <= self.score <= SCORE_MAX:
            raise InvalidEmotionReading(
                emotion.value,
                self.score,
                f"score must be between {SCORE_MIN} and {SCORE_MAX}",
            )
        object.__setattr__(self, "emotion", emotion)

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> EmotionReading:
        return cls(emotion=payload.get("emotion"), score=payload.get("score"))  # type: ignore[arg-type]

    def to_dict(self) -> dict[str, object]:
        return {"emotion": self.emotion.value, "score": self.score}


@dataclass(frozen=True)
class StudyLogRecord:
    """One study session as seen by the analytics engine.

    ``study_time`` and ``created_at`` are naive UTC timestamps, the same
    convention the storage layer uses for every ``DateTime`` column.
    """

    id: int
    user_id: int
    subject: str
    emotions: tuple[EmotionReading, ...]
    study_time: datetime
    duration_minutes: int | None = None
    notes: str | None = None
    tags: frozenset[str] = field(default_factory=frozenset)
    created_at: datetime | None = None


__all__ = [
    "Emotion",
    "EmotionReading",
    "NEGATIVE_EMOTIONS",
    "POSITIVE_EMOTIONS",
    "SCORE_MAX",
    "SCORE_MIN",
    "StudyLogRecord",
]
