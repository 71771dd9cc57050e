"""Community trending feed (HasRoot) mapped to the clip shape."""

import logging
from datetime import datetime, timezone

import httpx

logger = logging.getLogger(__name__)

# HasRoot pages are fixed at 225 clips
HASROOT_PAGE_SIZE = 225


class TrendingFeedError(Exception):
    pass


def transform_hasroot_clip(clip: dict) -> dict:
    return {
        "clip_id": clip.get("slug") or clip.get("id"),
        "title": clip.get("title") or "",
        "url": clip.get("url") or "",
        "thumbnail_url": clip.get("thumbnail") or clip.get("thumbnailUrl") or "",
        "view_count": clip.get("views") or 0,
        "duration": clip.get("duration") or 0,
        "created_at": clip.get("created_at") or clip.get("createdAt") or datetime.now(timezone.utc).isoformat(),
        "broadcaster_name": clip.get("broadcaster_displayName") or clip.get("streamer") or "",
        "broadcaster_id": clip.get("broadcaster_id") or "",
        "profile_image_url": clip.get("broadcaster_profilePicture") or "",
        "hasroot_slug": clip.get("slug"),
        "source": "hasroot",
    }


async def fetch_trending(
    base_url: str,
    range_: str = "7d",
    page: int = 0,
    min_views: int = 100,
    sort: str = "top",
    timeout: float = 15.0,
    client: httpx.AsyncClient | None = None,
) -> dict:
    """Fetch one HasRoot page and keep clips with at least `min_views` views."""
    params = {"range": range_, "page": page, "json": "true", "sort": sort}
    try:
        if client is not None:
            response = await client.get(base_url, params=params, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout) as own_client:
                response = await own_client.get(base_url, params=params)
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Error fetching from HasRoot: {e}")
        raise TrendingFeedError(str(e)) from e

    clips = data.get("clips") or []
    kept = [transform_hasroot_clip(c) for c in clips if (c.get("views") or 0) >= min_views]
    has_more = len(clips) >= HASROOT_PAGE_SIZE

    return {
        "success": True,
        "data": kept,
        "pagination": {
            "total": len(kept),
            "page": page,
            "hasMore": has_more,
            "nextPage": page + 1 if has_more else None,
        },
        "filters": {"range": range_, "sort": sort, "minViews": min_views},
        "source": "hasroot",
    }
