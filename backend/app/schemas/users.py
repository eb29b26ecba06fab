from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class ProfileModel(BaseModel):
    id: int
    name: str | None
    email: str | None
    favorite_subjects: list[str]

    model_config = ConfigDict(from_attributes=True)

    @field_validator("favorite_subjects", mode="before")
    @classmethod
    def _decode_json(cls, value: object) -> object:
        if isinstance(value, str):
            return json.loads(value or "[]")
        return value


class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=120)
    email: EmailStr | None = None


class FavoritesUpdate(BaseModel):
    favorite_subjects: list[str] = Field(default_factory=list)


class FavoritesResponse(BaseModel):
    favorite_subjects: list[str]
