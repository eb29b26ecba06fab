from __future__ import annotations


class InvalidEmotionReading(ValueError):
    """Raised when an emotion name or score falls outside the taxonomy."""

    def __init__(self, emotion: object, score: object, reason: str) -> None:
        super().__init__(f"invalid emotion reading {emotion!r}={score!r}: {reason}")
        self.emotion = emotion
        self.score = score
        self.reason = reason


class DataUnavailable(RuntimeError):
    """The study log store could not be reached."""


class GroupNotFound(LookupError):
    """Group does not exist or the caller is not a member."""


class InviteeNotFound(LookupError):
    """No user is registered with the invited email."""


class AlreadyMember(ValueError):
    """The invited user already belongs to the group."""


__all__ = [
    "AlreadyMember",
    "DataUnavailable",
    "GroupNotFound",
    "InvalidEmotionReading",
    "InviteeNotFound",
]
