"""Collection run API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chaseclips.models.base import get_db
from chaseclips.models.collection_run import CollectionRun
from chaseclips.schemas.collection_run import CollectionRunRead

router = APIRouter(prefix="/runs", tags=["runs"])


@router.get("", response_model=list[CollectionRunRead])
async def list_runs(
    db: AsyncSession = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    status: str | None = Query(None, description="Filter by status"),
    run_type: str | None = Query(None, description="collect or bulk_scan"),
):
    """List recent collection runs."""
    query = select(CollectionRun)

    if status:
        query = query.where(CollectionRun.status == status)
    if run_type:
        query = query.where(CollectionRun.run_type == run_type)

    query = query.order_by(CollectionRun.started_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{run_id}", response_model=CollectionRunRead)
async def get_run(
    run_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get a single collection run."""
    run = await db.get(CollectionRun, run_id)

    if not run:
        raise HTTPException(status_code=404, detail="Run not found")

    return run
