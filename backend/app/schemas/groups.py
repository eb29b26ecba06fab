from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str | None = Field(default=None, max_length=1000)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("group name is required")
        return stripped


class GroupInvite(BaseModel):
    email: EmailStr


class MemberUser(BaseModel):
    id: int
    name: str | None = None
    email: str | None = None

    model_config = ConfigDict(from_attributes=True)


class MemberProgress(BaseModel):
    total_sessions: int = 0
    total_minutes: int = 0


class GroupMemberModel(BaseModel):
    user: MemberUser
    joined_at: datetime
    progress: MemberProgress | None = None

    model_config = ConfigDict(from_attributes=True)


class GroupModel(BaseModel):
    id: int
    name: str
    description: str
    created_by: int
    created_at: datetime
    updated_at: datetime
    members: list[GroupMemberModel]

    model_config = ConfigDict(from_attributes=True)


class GroupListResponse(BaseModel):
    items: list[GroupModel]


class GroupLeaveResponse(BaseModel):
    ok: bool = True
    deleted: bool
    message: str
