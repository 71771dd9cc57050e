"""Re-checks stored clips and flags those whose embed URL no longer resolves."""

import logging
from datetime import datetime, timedelta, timezone

import httpx
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chaseclips.services.clip_mappers import CLIPS_MAPPER, ClipTableMapper
from chaseclips.services.rate_limiter import IntervalRateLimiter

logger = logging.getLogger(__name__)


def is_link_alive(client: httpx.Client, url: str, timeout: float = 10.0) -> bool:
    """HEAD the URL; only a 2xx counts as alive. Errors count as dead."""
    try:
        response = client.head(url, timeout=timeout, follow_redirects=True)
    except httpx.HTTPError as e:
        logger.warning(f"Error checking clip {url}: {e}")
        return False
    return response.is_success


class ClipLinkValidator:

    def __init__(
        self,
        db: Session,
        http_client: httpx.Client,
        mapper: ClipTableMapper = CLIPS_MAPPER,
        rate_limiter: IntervalRateLimiter | None = None,
        timeout: float = 10.0,
        max_age_hours: int = 24,
    ):
        self.db = db
        self.http_client = http_client
        self.mapper = mapper
        self.rate_limiter = rate_limiter or IntervalRateLimiter(0.1)
        self.timeout = timeout
        self.max_age_hours = max_age_hours

    def clips_needing_validation(self, limit: int) -> list:
        model = self.mapper.model
        cutoff = datetime.now(timezone.utc) - timedelta(hours=self.max_age_hours)
        query = (
            select(model)
            .where(
                model.is_valid == True,  # noqa: E712
                model.embed_url.isnot(None),
                or_(model.last_validated_at.is_(None), model.last_validated_at < cutoff),
            )
            .order_by(model.last_validated_at.asc().nullsfirst())
            .limit(limit)
        )
        return list(self.db.execute(query).scalars().all())

    def run(self, limit: int = 1000) -> dict[str, int]:
        clips = self.clips_needing_validation(limit)
        if not clips:
            logger.info("No clips need validation")
            return {"checked": 0, "validated": 0, "invalidated": 0}

        logger.info(f"Found {len(clips)} clips to validate")
        validated = 0
        invalidated = 0

        for clip in clips:
            self.rate_limiter.wait()
            alive = is_link_alive(self.http_client, clip.embed_url, self.timeout)
            clip.is_valid = alive
            clip.last_validated_at = datetime.now(timezone.utc)
            try:
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Error updating clip {clip.clip_id}: {e}")
                continue

            validated += 1
            if not alive:
                invalidated += 1
                logger.info(f"Clip {clip.clip_id} marked as invalid")

        logger.info(f"Validated {validated} clips ({invalidated} marked as invalid)")
        return {"checked": len(clips), "validated": validated, "invalidated": invalidated}
