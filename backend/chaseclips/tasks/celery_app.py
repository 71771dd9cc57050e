"""Celery application configuration and beat schedule."""

from celery import Celery
from celery.schedules import crontab

from chaseclips.config import get_settings

settings = get_settings()

celery_app = Celery(
    "chaseclips",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "chaseclips.tasks.collect_tasks",
        "chaseclips.tasks.maintenance_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    task_track_started=True,
    task_time_limit=900,
    task_soft_time_limit=840,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

celery_app.conf.beat_schedule = {
    "collect-clips": {
        "task": "chaseclips.tasks.collect_tasks.collect_clips",
        "schedule": crontab(minute="*/30"),
        "kwargs": {"trigger": "schedule"},
    },
    "validate-clip-links": {
        "task": "chaseclips.tasks.maintenance_tasks.validate_clip_links",
        "schedule": crontab(minute=15, hour="*/6"),
    },
}
