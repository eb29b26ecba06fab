from __future__ import annotations

import json

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from backend.app.db import GroupMember, SettingEntry, StudyGroup, StudyLog, User


@pytest.mark.anyio
async def test_study_log_crud(temp_session_factory):
    session_factory = temp_session_factory

    async with session_factory() as session:
        user = User(external_id="student-99")
        session.add(user)
        await session.flush()
        log = StudyLog(
            user_id=user.id,
            subject="Chemistry",
            emotions=json.dumps([{"emotion": "Calm", "score": 4}]),
            duration=25,
        )
        session.add(log)
        await session.commit()
        await session.refresh(log)

        assert log.id > 0
        assert log.study_time is not None
        assert log.tags == "[]"

    async with session_factory() as session:
        logs = (await session.execute(select(StudyLog))).scalars().all()
        assert any(item.subject == "Chemistry" for item in logs)


@pytest.mark.anyio
async def test_deleting_user_cascades_to_logs(temp_session_factory):
    session_factory = temp_session_factory

    async with session_factory() as session:
        user = User(external_id="cascade")
        session.add(user)
        await session.flush()
        session.add(StudyLog(user_id=user.id, subject="Math", emotions="[]"))
        await session.commit()
        await session.delete(user)
        await session.commit()

    async with session_factory() as session:
        assert (await session.execute(select(StudyLog))).scalars().all() == []


@pytest.mark.anyio
async def test_group_membership_is_unique(temp_session_factory):
    session_factory = temp_session_factory

    async with session_factory() as session:
        user = User(external_id="member")
        session.add(user)
        await session.flush()
        group = StudyGroup(name="Finals", created_by=user.id)
        session.add(group)
        await session.flush()
        session.add(GroupMember(group_id=group.id, user_id=user.id))
        await session.commit()

        session.add(GroupMember(group_id=group.id, user_id=user.id))
        with pytest.raises(IntegrityError):
            await session.commit()


@pytest.mark.anyio
async def test_setting_entry_unique_key(temp_session_factory):
    session_factory = temp_session_factory

    async with session_factory() as session:
        session.add(SettingEntry(key="theme", value="light"))
        await session.commit()

    async with session_factory() as session:
        query = select(SettingEntry).where(SettingEntry.key == "theme")
        result = await session.execute(query)
        setting = result.scalar_one()
        setting.value = "dark"
        await session.commit()

    async with session_factory() as session:
        query = select(SettingEntry).where(SettingEntry.key == "theme")
        setting = (await session.execute(query)).scalar_one()
        assert setting.value == "dark"
