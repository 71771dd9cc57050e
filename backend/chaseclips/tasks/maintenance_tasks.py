"""Maintenance tasks: clip link validation."""

import logging

import httpx

from chaseclips.config import get_settings
from chaseclips.tasks.celery_app import celery_app
from chaseclips.models.base import SyncSessionLocal
from chaseclips.services.clip_mappers import get_mapper
from chaseclips.services.link_validator import ClipLinkValidator
from chaseclips.services.rate_limiter import IntervalRateLimiter

logger = logging.getLogger(__name__)


@celery_app.task(name="chaseclips.tasks.maintenance_tasks.validate_clip_links")
def validate_clip_links(limit: int | None = None):
    """Flag stored clips whose embed URL no longer resolves."""
    settings = get_settings()
    db = SyncSessionLocal()
    try:
        with httpx.Client() as client:
            validator = ClipLinkValidator(
                db,
                client,
                mapper=get_mapper(settings.clip_schema),
                rate_limiter=IntervalRateLimiter(settings.link_validation_delay),
                timeout=settings.link_validation_timeout,
                max_age_hours=settings.link_validation_max_age_hours,
            )
            return validator.run(limit or settings.link_validation_limit)
    finally:
        db.close()
