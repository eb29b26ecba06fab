from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from backend.db import create_engine, create_session_factory, init_db

from .analytics import AnalyticsService
from .api.v1.routes import router as v1_router
from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .middleware import RequestLoggingMiddleware
from .services.ratelimit import RateLimiter
from .services.storage import StorageService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure application services during startup and ensure graceful shutdown."""

    configure_logging()
    settings: Settings = get_settings()

    engine = create_engine(settings.database_url)
    session_factory = create_session_factory(engine)
    await init_db(engine, session_factory, settings.version, settings.database_url)
    storage_service = StorageService(session_factory)
    analytics_service = AnalyticsService(storage_service, settings=settings)

    app.state.settings = settings
    app.state.storage_service = storage_service
    app.state.analytics_service = analytics_service
    app.state.db_engine = engine
    app.state.db_session_factory = session_factory
    app.state.rate_limiter = RateLimiter(settings.study_log_rate_limit)

    logger.info(
        "Study mood tracker started version=%s timezone=%s window_days=%s",
        settings.version,
        settings.reporting_timezone,
        settings.analytics_window_days,
    )

    try:
        yield
    finally:
        await app.state.db_engine.dispose()


app = FastAPI(title="Study Mood Tracker", version=get_settings().version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(v1_router)


@app.get("/healthz")
async def healthz(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    return {"status": "ok", "version": settings.version}


@app.get("/readyz")
async def readyz(request: Request) -> dict[str, Any]:
    storage: StorageService = request.app.state.storage_service

    db_ok = True
    db_detail = "ok"
    try:
        await storage.healthcheck()
    except Exception as exc:  # pragma: no cover - defensive logging
        logger.warning("Database readiness check failed: %s", exc)
        db_ok = False
        db_detail = str(exc)

    return {"ready": db_ok, "db": {"ok": db_ok, "detail": db_detail}}


@app.get("/metrics")
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
