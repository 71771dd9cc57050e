"""Pydantic schemas package."""

from chaseclips.schemas.clip import (
    ClipFilters,
    ClipListResponse,
    ClipRead,
    Pagination,
)
from chaseclips.schemas.streamer import StreamerIdList, StreamerRead
from chaseclips.schemas.collection_run import CollectionRunRead, TriggerResponse

__all__ = [
    # Clip
    "ClipFilters",
    "ClipListResponse",
    "ClipRead",
    "Pagination",
    # Streamer
    "StreamerIdList",
    "StreamerRead",
    # CollectionRun
    "CollectionRunRead",
    "TriggerResponse",
]
