"""API v1 router aggregation."""

from fastapi import APIRouter

from chaseclips.api.v1.clips import router as clips_router
from chaseclips.api.v1.streamers import router as streamers_router
from chaseclips.api.v1.runs import router as runs_router
from chaseclips.api.v1.collect import router as collect_router
from chaseclips.api.v1.trending import router as trending_router

router = APIRouter(prefix="/api/v1")

router.include_router(clips_router)
router.include_router(streamers_router)
router.include_router(runs_router)
router.include_router(collect_router)
router.include_router(trending_router)
