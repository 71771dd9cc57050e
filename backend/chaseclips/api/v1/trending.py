"""Trending clips proxied from the HasRoot community feed."""

from fastapi import APIRouter, HTTPException, Query

from chaseclips.config import get_settings
from chaseclips.services.trending import TrendingFeedError, fetch_trending

router = APIRouter(prefix="/trending", tags=["trending"])


@router.get("")
async def get_trending(
    range: str = Query("7d", description="1d, 7d or 30d"),
    page: int = Query(0, ge=0),
    minViews: int = Query(100, ge=0, description="Minimum view count"),
    sort: str = Query("top", description="top or recent"),
):
    settings = get_settings()
    try:
        return await fetch_trending(
            settings.hasroot_url,
            range_=range,
            page=page,
            min_views=minViews,
            sort=sort,
            timeout=settings.hasroot_timeout,
        )
    except TrendingFeedError as e:
        raise HTTPException(status_code=502, detail=f"Failed to fetch from HasRoot: {e}")
