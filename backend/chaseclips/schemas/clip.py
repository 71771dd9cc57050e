"""Pydantic schemas for Clip model."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ClipRead(BaseModel):
    """Clip as served to the frontend."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    platform: str
    clip_id: str
    title: str
    url: str | None = None
    embed_url: str | None = None
    thumbnail_url: str | None = None
    view_count: int = 0
    duration: float | None = None
    clip_created_at: datetime | None = None
    broadcaster_id: str | None = None
    broadcaster_name: str | None = None
    broadcaster_login: str | None = None
    profile_image_url: str | None = None
    creator_name: str | None = None
    video_id: str | None = None
    vod_title: str | None = None
    is_valid: bool = True


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    hasMore: bool


class ClipFilters(BaseModel):
    period: str
    sort: str
    streamer: str | None = None
    search: str | None = None


class ClipListResponse(BaseModel):
    success: bool = True
    data: list[ClipRead]
    pagination: Pagination
    filters: ClipFilters
