"""Manual collector triggers."""

from fastapi import APIRouter, Query

from chaseclips.config import get_settings
from chaseclips.schemas.collection_run import TriggerResponse

router = APIRouter(tags=["collect"])


@router.post("/collect", response_model=TriggerResponse)
async def trigger_collect(source: str = Query("api", description="Trigger source recorded in the run log")):
    """Queue the periodic collector now."""
    from chaseclips.tasks.collect_tasks import collect_clips

    task = collect_clips.delay(trigger=source)
    return TriggerResponse(message="Clip collection queued", task_id=task.id, params={"trigger": source})


@router.post("/bulk-scan", response_model=TriggerResponse)
async def trigger_bulk_scan(
    offset: int = Query(0, ge=0, description="Starting streamer index"),
    limit: int | None = Query(None, ge=1, description="Streamers per batch (capped at 500)"),
    days: int | None = Query(None, ge=1, description="Days to look back (capped at 365)"),
    max_pages: int | None = Query(None, ge=1, description="Clip pages per streamer (capped at 10)"),
    continue_scan: bool = Query(False, description="Keep queueing batches until the scan completes"),
):
    """Queue one bulk-scan batch, optionally chained until completion."""
    from chaseclips.tasks.collect_tasks import bulk_scan, clamp_bulk_params

    offset, limit, days, max_pages = clamp_bulk_params(offset, limit, days, max_pages, get_settings())
    task = bulk_scan.delay(
        offset=offset,
        limit=limit,
        days=days,
        max_pages=max_pages,
        trigger="api",
        continue_scan=continue_scan,
    )
    return TriggerResponse(
        message=f"Bulk scan queued at offset {offset}",
        task_id=task.id,
        params={
            "offset": offset,
            "limit": limit,
            "days": days,
            "max_pages": max_pages,
            "continue_scan": continue_scan,
        },
    )
