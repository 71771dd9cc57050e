"""Clip API endpoints."""

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from chaseclips.models.base import get_db
from chaseclips.models.clip import Clip
from chaseclips.schemas.clip import ClipFilters, ClipListResponse, ClipRead, Pagination

router = APIRouter(prefix="/clips", tags=["clips"])

MAX_LIMIT = 500

PERIOD_WINDOWS = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
}


def clip_conditions(period: str, streamer: str | None, search: str | None, now: datetime | None = None) -> list:
    """Build WHERE clauses for the clip listing. Unknown periods fall back to 7 days."""
    conditions = [Clip.is_valid == True]  # noqa: E712

    if period != "all":
        now = now or datetime.now(timezone.utc)
        window = PERIOD_WINDOWS.get(period, PERIOD_WINDOWS["7d"])
        conditions.append(Clip.clip_created_at >= now - window)

    if streamer:
        conditions.append(or_(
            Clip.broadcaster_id == streamer,
            Clip.broadcaster_name.ilike(f"%{streamer}%"),
        ))

    if search:
        conditions.append(Clip.title.ilike(f"%{search}%"))

    return conditions


@router.get("", response_model=ClipListResponse)
async def list_clips(
    db: AsyncSession = Depends(get_db),
    limit: int = Query(100, ge=1, description="Page size, capped at 500"),
    offset: int = Query(0, ge=0),
    sort: str = Query("views", description="'views' or 'recent'"),
    period: str = Query("7d", description="24h, 7d, 30d, 90d or all"),
    streamer: str | None = Query(None, description="Broadcaster ID or name"),
    search: str | None = Query(None, description="Search in title"),
):
    """List valid clips with filters."""
    limit = min(limit, MAX_LIMIT)
    conditions = clip_conditions(period, streamer, search)

    query = select(Clip).where(*conditions)
    if sort == "views":
        query = query.order_by(Clip.view_count.desc(), Clip.clip_created_at.desc())
    else:
        query = query.order_by(Clip.clip_created_at.desc())
    query = query.offset(offset).limit(limit)

    clips = (await db.execute(query)).scalars().all()
    total = (await db.execute(select(func.count(Clip.id)).where(*conditions))).scalar() or 0

    return ClipListResponse(
        data=[ClipRead.model_validate(clip) for clip in clips],
        pagination=Pagination(
            total=total,
            limit=limit,
            offset=offset,
            hasMore=offset + len(clips) < total,
        ),
        filters=ClipFilters(period=period, sort=sort, streamer=streamer, search=search),
    )
