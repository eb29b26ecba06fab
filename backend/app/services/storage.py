from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from ..analytics.aggregator import to_utc_naive
from ..analytics.taxonomy import EmotionReading, StudyLogRecord
from ..core.errors import AlreadyMember, DataUnavailable, GroupNotFound, InviteeNotFound
from ..db.models import GroupInvitation, GroupMember, StudyGroup, StudyLog, User

logger = logging.getLogger(__name__)


def _load_json_list(raw: str | None) -> list:
    value = json.loads(raw or "[]")
    if not isinstance(value, list):
        raise ValueError(f"expected a JSON list, got {type(value).__name__}")
    return value


def to_record(row: StudyLog) -> StudyLogRecord:
    """Convert a stored study log into the analytics view.

    Readings that violate the taxonomy raise ``InvalidEmotionReading``.
    """

    emotions = tuple(EmotionReading.from_dict(item) for item in _load_json_list(row.emotions))
    return StudyLogRecord(
        id=row.id,
        user_id=row.user_id,
        subject=row.subject,
        emotions=emotions,
        study_time=row.study_time,
        duration_minutes=row.duration,
        notes=row.notes,
        tags=frozenset(_load_json_list(row.tags)),
        created_at=row.created_at,
    )


def normalize_subjects(subjects: Iterable[str]) -> list[str]:
    cleaned: list[str] = []
    seen: set[str] = set()
    for subject in subjects:
        value = str(subject).strip()
        if not value or value.lower() in seen:
            continue
        seen.add(value.lower())
        cleaned.append(value)
    return cleaned


class StorageService:
    """Persist users, study logs and study groups."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def healthcheck(self) -> None:
        async with self._session_factory() as session:
            await session.execute(text("SELECT 1"))

    # -- user management -------------------------------------------------
    async def ensure_user(self, external_id: str) -> User:
        async with self._session_factory() as session:
            user = await session.scalar(select(User).where(User.external_id == external_id))
            if user:
                return user
            user = User(external_id=external_id)
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    async def get_user_by_id(self, user_id: int) -> User | None:
        async with self._session_factory() as session:
            return await session.get(User, user_id)

    async def update_profile(
        self,
        user_id: int,
        *,
        name: str | None = None,
        email: str | None = None,
    ) -> User | None:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                return None
            if name is not None:
                user.name = name.strip() or None
            if email is not None:
                user.email = email.strip().lower() or None
            await session.commit()
            await session.refresh(user)
            return user

    async def get_favorite_subjects(self, user_id: int) -> list[str]:
        user = await self.get_user_by_id(user_id)
        if user is None:
            return []
        return _load_json_list(user.favorite_subjects)

    async def set_favorite_subjects(self, user_id: int, subjects: Iterable[str]) -> list[str]:
        cleaned = normalize_subjects(subjects)
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                return []
            user.favorite_subjects = json.dumps(cleaned, ensure_ascii=False)
            await session.commit()
        return cleaned

    async def toggle_favorite_subject(self, user_id: int, subject: str) -> list[str]:
        value = subject.strip()
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                return []
            favorites = _load_json_list(user.favorite_subjects)
            lowered = [item.lower() for item in favorites]
            if value.lower() in lowered:
                favorites.pop(lowered.index(value.lower()))
            else:
                favorites.append(value)
            user.favorite_subjects = json.dumps(favorites, ensure_ascii=False)
            await session.commit()
        return favorites

    # -- study logs ------------------------------------------------------
    async def add_study_log(
        self,
        *,
        user_id: int,
        subject: str,
        emotions: Sequence[EmotionReading],
        study_time: datetime | None = None,
        duration: int | None = None,
        notes: str | None = None,
        tags: Iterable[str] = (),
    ) -> StudyLog:
        async with self._session_factory() as session:
            entry = StudyLog(
                user_id=user_id,
                subject=subject,
                emotions=json.dumps([item.to_dict() for item in emotions]),
                study_time=to_utc_naive(study_time) if study_time else datetime.utcnow(),
                duration=duration,
                notes=notes or None,
                tags=json.dumps([tag for tag in tags if tag], ensure_ascii=False),
            )
            session.add(entry)
            await session.commit()
            await session.refresh(entry)
            return entry

    async def list_study_logs(self, *, user_id: int) -> Sequence[StudyLog]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(StudyLog)
                .where(StudyLog.user_id == user_id)
                .order_by(StudyLog.study_time.desc(), StudyLog.id.desc())
            )
            return list(result.scalars().all())

    async def delete_study_log(self, *, user_id: int, log_id: int) -> bool:
        async with self._session_factory() as session:
            entry = await session.scalar(
                select(StudyLog).where(StudyLog.id == log_id, StudyLog.user_id == user_id)
            )
            if entry is None:
                return False
            await session.delete(entry)
            await session.commit()
            return True

    async def fetch_logs(self, user_id: int) -> list[StudyLogRecord]:
        """Every study log of ``user_id`` as analytics records, newest first."""

        try:
            rows = await self.list_study_logs(user_id=user_id)
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("Study log fetch failed for user %s", user_id, exc_info=True)
            raise DataUnavailable("study log store unreachable") from exc
        return [to_record(row) for row in rows]

    # -- study groups ----------------------------------------------------
    @staticmethod
    def _group_query():
        return (
            select(StudyGroup)
            .options(selectinload(StudyGroup.members).selectinload(GroupMember.user))
            .execution_options(populate_existing=True)
        )

    async def _member_group(
        self, session: AsyncSession, group_id: int, user_id: int
    ) -> StudyGroup:
        group = await session.scalar(
            self._group_query()
            .join(GroupMember, GroupMember.group_id == StudyGroup.id)
            .where(StudyGroup.id == group_id, GroupMember.user_id == user_id)
        )
        if group is None:
            raise GroupNotFound(group_id)
        return group

    async def create_group(
        self, *, user_id: int, name: str, description: str | None = None
    ) -> StudyGroup:
        async with self._session_factory() as session:
            group = StudyGroup(
                name=name.strip(),
                description=(description or "").strip(),
                created_by=user_id,
            )
            group.members.append(GroupMember(user_id=user_id))
            session.add(group)
            await session.commit()
            return await self._member_group(session, group.id, user_id)

    async def list_groups(self, user_id: int) -> Sequence[StudyGroup]:
        async with self._session_factory() as session:
            result = await session.execute(
                self._group_query()
                .join(GroupMember, GroupMember.group_id == StudyGroup.id)
                .where(GroupMember.user_id == user_id)
                .order_by(StudyGroup.updated_at.desc(), StudyGroup.id.desc())
            )
            return list(result.scalars().unique().all())

    async def get_group(self, group_id: int, user_id: int) -> StudyGroup:
        async with self._session_factory() as session:
            return await self._member_group(session, group_id, user_id)

    async def member_progress(
        self, user_ids: Sequence[int], since: datetime
    ) -> dict[int, dict[str, int]]:
        """Sessions and minutes per member since ``since``; absent members get zeros."""

        progress = {user_id: {"total_sessions": 0, "total_minutes": 0} for user_id in user_ids}
        if not user_ids:
            return progress
        async with self._session_factory() as session:
            result = await session.execute(
                select(
                    StudyLog.user_id,
                    func.count(StudyLog.id),
                    func.coalesce(func.sum(func.coalesce(StudyLog.duration, 0)), 0),
                )
                .where(StudyLog.user_id.in_(list(user_ids)))
                .where(StudyLog.study_time >= since)
                .group_by(StudyLog.user_id)
            )
            for user_id, sessions, minutes in result.all():
                progress[user_id] = {
                    "total_sessions": int(sessions),
                    "total_minutes": int(minutes),
                }
        return progress

    async def invite_member(self, *, group_id: int, user_id: int, email: str) -> StudyGroup:
        invite_email = email.strip().lower()
        async with self._session_factory() as session:
            group = await self._member_group(session, group_id, user_id)
            invitee = await session.scalar(select(User).where(User.email == invite_email))
            if invitee is None:
                raise InviteeNotFound(invite_email)
            if any(member.user_id == invitee.id for member in group.members):
                raise AlreadyMember(invite_email)

            session.add(GroupMember(group_id=group.id, user_id=invitee.id))
            session.add(
                GroupInvitation(group_id=group.id, email=invite_email, invited_by=user_id)
            )
            group.updated_at = datetime.utcnow()
            await session.commit()
            return await self._member_group(session, group_id, user_id)

    async def leave_group(self, *, group_id: int, user_id: int) -> bool:
        """Remove ``user_id`` from the group; returns True when the group was deleted."""

        async with self._session_factory() as session:
            group = await self._member_group(session, group_id, user_id)
            remaining = [member for member in group.members if member.user_id != user_id]
            if not remaining:
                await session.delete(group)
                await session.commit()
                return True

            leaving = next(member for member in group.members if member.user_id == user_id)
            await session.delete(leaving)
            if group.created_by == user_id:
                group.created_by = remaining[0].user_id
            group.updated_at = datetime.utcnow()
            await session.commit()
            return False


__all__ = ["StorageService", "normalize_subjects", "to_record"]
