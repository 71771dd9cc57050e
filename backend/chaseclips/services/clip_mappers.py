"""Mapping from the canonical ClipRecord to a concrete clip table shape."""

from dataclasses import dataclass
from typing import Callable

from chaseclips.models.clip import Clip, LegacyTwitchClip
from chaseclips.services.clip_types import ClipRecord


def _clips_row(record: ClipRecord) -> dict:
    clip = record.clip
    return {
        "platform": record.platform,
        "clip_id": clip.id,
        "title": clip.title,
        "url": clip.url,
        "embed_url": clip.embed_url,
        "thumbnail_url": clip.thumbnail_url,
        "view_count": clip.view_count,
        "duration": clip.duration,
        "clip_created_at": clip.created_at,
        "broadcaster_id": clip.broadcaster_id,
        "broadcaster_name": clip.broadcaster_name,
        "broadcaster_login": record.broadcaster_login,
        "profile_image_url": record.profile_image_url,
        "creator_id": clip.creator_id,
        "creator_name": clip.creator_name,
        "game_id": clip.game_id,
        "video_id": clip.video_id,
        "vod_title": record.vod_title,
        "is_valid": record.is_valid,
        "is_chaserp": record.is_chaserp,
    }


def _legacy_row(record: ClipRecord) -> dict:
    clip = record.clip
    return {
        "clip_id": clip.id,
        "streamer_username": record.broadcaster_login,
        "clip_title": clip.title,
        "view_count": clip.view_count,
        "duration_seconds": clip.duration,
        "thumbnail_url": clip.thumbnail_url,
        "embed_url": clip.embed_url,
        "server_id": record.server_id,
        "twitch_created_at": clip.created_at,
        "is_valid": record.is_valid,
    }


@dataclass(frozen=True)
class ClipTableMapper:
    """Describes how ClipRecords land in one table."""

    name: str
    model: type
    conflict_columns: tuple[str, ...]
    update_columns: tuple[str, ...]
    to_row: Callable[[ClipRecord], dict]

    @property
    def table(self):
        return self.model.__table__

    def key_of(self, row: dict) -> tuple:
        return tuple(row[column] for column in self.conflict_columns)


CLIPS_MAPPER = ClipTableMapper(
    name="clips",
    model=Clip,
    conflict_columns=("platform", "clip_id"),
    update_columns=(
        "title", "view_count", "thumbnail_url", "embed_url", "url",
        "broadcaster_name", "broadcaster_login", "profile_image_url",
        "video_id", "vod_title", "is_valid", "is_chaserp",
    ),
    to_row=_clips_row,
)

LEGACY_TWITCH_CLIPS_MAPPER = ClipTableMapper(
    name="twitch_clips",
    model=LegacyTwitchClip,
    conflict_columns=("clip_id",),
    update_columns=("clip_title", "view_count", "thumbnail_url", "embed_url", "is_valid"),
    to_row=_legacy_row,
)

_MAPPERS = {mapper.name: mapper for mapper in (CLIPS_MAPPER, LEGACY_TWITCH_CLIPS_MAPPER)}


def get_mapper(schema: str) -> ClipTableMapper:
    """Look up the mapper for a configured clip schema name."""
    try:
        return _MAPPERS[schema]
    except KeyError:
        raise ValueError(f"Unknown clip schema: {schema!r} (expected one of {sorted(_MAPPERS)})") from None
