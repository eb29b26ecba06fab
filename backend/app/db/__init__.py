"""Database models for the study mood tracker."""

from .models import (
    Base,
    GroupInvitation,
    GroupMember,
    SettingEntry,
    StudyGroup,
    StudyLog,
    User,
)

__all__ = [
    "Base",
    "GroupInvitation",
    "GroupMember",
    "SettingEntry",
    "StudyGroup",
    "StudyLog",
    "User",
]
