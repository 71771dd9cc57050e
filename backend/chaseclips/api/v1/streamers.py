"""Streamer API endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chaseclips.models.base import get_db
from chaseclips.models.streamer import Streamer
from chaseclips.schemas.streamer import StreamerIdList, StreamerRead

router = APIRouter(prefix="/streamers", tags=["streamers"])


@router.get("", response_model=StreamerIdList)
async def list_streamer_ids(db: AsyncSession = Depends(get_db)):
    """IDs of all active streamers (the payload the frontend embeds)."""
    query = select(Streamer.twitch_id).where(Streamer.is_active == True).order_by(Streamer.twitch_id)  # noqa: E712
    ids = list((await db.execute(query)).scalars().all())
    return StreamerIdList(data=ids, count=len(ids))


@router.get("/{twitch_id}", response_model=StreamerRead)
async def get_streamer(twitch_id: str, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Streamer).where(Streamer.twitch_id == twitch_id))
    streamer = result.scalar_one_or_none()
    if not streamer:
        raise HTTPException(status_code=404, detail="Streamer not found")
    return streamer
