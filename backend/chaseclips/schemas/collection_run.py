"""Pydantic schemas for CollectionRun model and collector triggers."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class CollectionRunRead(BaseModel):
    """Full run output."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    trigger_source: str
    run_type: str
    batch_offset: int | None = None
    started_at: datetime
    completed_at: datetime | None = None
    status: str
    streamers_checked: int = 0
    clips_found: int = 0
    clips_new: int = 0
    clips_updated: int = 0
    error_message: str | None = None


class TriggerResponse(BaseModel):
    """Response from queueing a collector task."""

    message: str
    task_id: str
    params: dict[str, int | str | bool | None] = {}
