from __future__ import annotations

import asyncio
from collections.abc import Generator
from datetime import datetime
from pathlib import Path
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from backend.app.analytics import EmotionReading, StudyLogRecord
from backend.app.core import config
from backend.db import create_engine, create_session_factory, init_db


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def test_client(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Generator[TestClient, None, None]:
    db_path = tmp_path / f"api_{uuid4().hex}.db"
    monkeypatch.setenv("VERSION", "0.1.0-test")
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "test.log"))
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.delenv("REPORTING_TIMEZONE", raising=False)
    config.get_settings.cache_clear()

    from backend.app.main import app

    with TestClient(app) as client:
        client.headers.update({"X-Studymood-User": "student-1"})
        yield client
    config.get_settings.cache_clear()


@pytest.fixture()
def temp_session_factory(tmp_path: Path):
    db_path = tmp_path / f"unit_{uuid4().hex}.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    engine = create_engine(database_url)
    session_factory = create_session_factory(engine)
    asyncio.run(init_db(engine, session_factory, "test", database_url))
    try:
        yield session_factory
    finally:
        asyncio.run(engine.dispose())


@pytest.fixture()
def make_log():
    ids = iter(range(1, 10_000))

    def _make(
        subject: str,
        study_time: datetime,
        *readings: tuple[str, int],
        duration: int | None = None,
    ) -> StudyLogRecord:
        return StudyLogRecord(
            id=next(ids),
            user_id=1,
            subject=subject,
            emotions=tuple(EmotionReading(name, score) for name, score in readings),
            study_time=study_time,
            duration_minutes=duration,
        )

    return _make
