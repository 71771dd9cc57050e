"""Pydantic schemas for Streamer model."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class StreamerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    twitch_id: str
    twitch_login: str | None = None
    twitch_name: str | None = None
    is_active: bool
    last_clip_check: datetime | None = None
    last_bulk_scan: datetime | None = None


class StreamerIdList(BaseModel):
    success: bool = True
    data: list[str]
    count: int
