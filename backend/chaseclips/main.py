"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import redis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from sqlalchemy import func, select

from chaseclips.config import get_settings
from chaseclips.models.base import engine, AsyncSessionLocal, Base
from chaseclips.models.clip import Clip
from chaseclips.models.collection_run import CollectionRun
from chaseclips.models.streamer import Streamer
from chaseclips.api.v1 import router as api_v1_router

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info("Starting %s...", settings.app_name)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables verified")
    yield
    logger.info("Shutting down...")
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Twitch clip archive for the ChaseRP community",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(api_v1_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "app": settings.app_name}


@app.get("/health/detailed")
async def detailed_health_check():
    checks = {}

    # Database and collector state
    try:
        async with AsyncSessionLocal() as session:
            streamer_count = (await session.execute(
                select(func.count(Streamer.id)).where(Streamer.is_active == True)  # noqa: E712
            )).scalar() or 0
            clip_count = (await session.execute(
                select(func.count(Clip.id)).where(Clip.is_valid == True)  # noqa: E712
            )).scalar() or 0
            last_run = (await session.execute(
                select(CollectionRun).order_by(CollectionRun.started_at.desc()).limit(1)
            )).scalar_one_or_none()
        checks["database"] = {"ok": True, "active_streamers": streamer_count, "valid_clips": clip_count}
        checks["collector"] = {
            # A failed last run is degraded; no run yet is not
            "ok": last_run is None or last_run.status != "failed",
            "last_run_status": last_run.status if last_run else None,
            "last_run_started_at": last_run.started_at.isoformat() if last_run else None,
        }
    except Exception as e:
        checks["database"] = {"ok": False, "message": str(e)}

    checks["twitch_credentials"] = {"ok": bool(settings.twitch_client_id and settings.twitch_client_secret)}

    # Redis
    try:
        r = redis.from_url(settings.redis_url, socket_timeout=5)
        r.ping()
        checks["redis"] = {"ok": True}
    except Exception as e:
        checks["redis"] = {"ok": False, "message": str(e)}

    # Celery workers
    try:
        from chaseclips.tasks.celery_app import celery_app
        inspect = celery_app.control.inspect(timeout=5)
        active_workers = inspect.active()
        checks["celery_workers"] = {
            "ok": bool(active_workers),
            "workers": list(active_workers.keys()) if active_workers else [],
        }
    except Exception as e:
        checks["celery_workers"] = {"ok": False, "message": str(e)}

    all_ok = all(check.get("ok", False) for check in checks.values())
    status = "healthy" if all_ok else "degraded"

    return {
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }
