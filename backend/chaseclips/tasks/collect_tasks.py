"""Clip collection tasks: periodic collector and resumable bulk scan."""

import logging

from chaseclips.config import Settings, get_settings
from chaseclips.tasks.celery_app import celery_app
from chaseclips.models.base import SyncSessionLocal
from chaseclips.services.clip_mappers import get_mapper
from chaseclips.services.clip_store import ClipStore, ConflictMode
from chaseclips.services.run_ledger import RunLedger
from chaseclips.services.scan_controller import ClipScanController
from chaseclips.services.twitch_client import HelixClient

logger = logging.getLogger(__name__)


def clamp_bulk_params(
    offset: int,
    limit: int | None,
    days: int | None,
    max_pages: int | None,
    settings: Settings,
) -> tuple[int, int, int, int]:
    """Apply defaults and the per-request caps for a bulk scan."""
    offset = max(int(offset or 0), 0)
    limit = min(max(int(limit or settings.bulk_page_size), 1), settings.bulk_max_page_size)
    days = min(max(int(days or settings.bulk_lookback_days), 1), settings.bulk_max_lookback_days)
    max_pages = min(max(int(max_pages or settings.bulk_max_pages), 1), settings.bulk_max_pages_cap)
    return offset, limit, days, max_pages


def build_scan_controller(db, settings: Settings | None = None) -> ClipScanController:
    settings = settings or get_settings()
    # Raises ValueError on an unknown clip_schema, before any HTTP client exists
    store = ClipStore(db, mapper=get_mapper(settings.clip_schema), batch_size=settings.upsert_batch_size)
    return ClipScanController(
        db=db,
        client=HelixClient.from_settings(settings),
        store=store,
        ledger=RunLedger(SyncSessionLocal),
        game_id=settings.gta_game_id,
        server_id=settings.server_id,
        terms=settings.chaserp_terms,
        streamer_delay=settings.streamer_delay_seconds,
    )


@celery_app.task(name="chaseclips.tasks.collect_tasks.collect_clips")
def collect_clips(trigger: str = "api"):
    """Check the streamers that were checked longest ago."""
    settings = get_settings()
    db = SyncSessionLocal()
    controller = None
    try:
        controller = build_scan_controller(db, settings)
        result = controller.run_periodic(
            limit=settings.collect_streamer_limit,
            lookback_days=settings.collect_lookback_days,
            max_pages_per_streamer=settings.collect_max_pages,
            trigger=trigger,
            conflict_mode=ConflictMode(settings.collect_conflict_mode),
        )
        logger.info(
            f"Collected clips: {result.streamers_processed} streamers, "
            f"{result.clips_found} found, {result.clips_persisted} saved"
        )
        return {"success": True, **result.to_dict()}

    except Exception as e:
        logger.error(f"Collection error: {e}")
        return {"success": False, "error": str(e)}

    finally:
        if controller is not None:
            controller.client.close()
        db.close()


@celery_app.task(name="chaseclips.tasks.collect_tasks.bulk_scan")
def bulk_scan(
    offset: int = 0,
    limit: int | None = None,
    days: int | None = None,
    max_pages: int | None = None,
    trigger: str = "api",
    continue_scan: bool = False,
):
    """Scan one page of streamers; optionally queue the next page until complete."""
    settings = get_settings()
    offset, limit, days, max_pages = clamp_bulk_params(offset, limit, days, max_pages, settings)

    db = SyncSessionLocal()
    controller = None
    try:
        controller = build_scan_controller(db, settings)
        result = controller.run_batch(
            offset=offset,
            page_size=limit,
            lookback_days=days,
            max_pages_per_streamer=max_pages,
            trigger=trigger,
            conflict_mode=ConflictMode.UPDATE,
        )
    except Exception as e:
        logger.error(f"Bulk scan error at offset {offset}: {e}")
        return {"success": False, "error": str(e), "offset": offset}
    finally:
        if controller is not None:
            controller.client.close()
        db.close()

    total = result.total_streamers
    response = {
        "success": True,
        **result.to_dict(),
        "progress": {
            "total_streamers": total,
            "processed_so_far": result.next_offset,
            "remaining": max(0, total - result.next_offset),
            "percent_complete": round(result.next_offset / total * 100) if total else 100,
            "completed": result.completed,
        },
        "settings": {"days_back": days, "max_pages_per_streamer": max_pages},
    }

    if continue_scan and not result.completed:
        next_task = bulk_scan.delay(
            offset=result.next_offset,
            limit=limit,
            days=days,
            max_pages=max_pages,
            trigger="chain",
            continue_scan=True,
        )
        response["next_task_id"] = next_task.id
        logger.info(f"Queued bulk scan continuation at offset {result.next_offset}")

    return response
