"""Clip value types shared by the fetcher, validator and store."""

from dataclasses import dataclass
from datetime import datetime


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp as returned by Helix ('2026-01-05T18:22:11Z')."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass
class RawClip:
    """A clip as listed by Helix, before validation."""

    id: str
    title: str
    broadcaster_id: str
    view_count: int = 0
    duration: float | None = None
    created_at: datetime | None = None
    video_id: str | None = None
    broadcaster_name: str | None = None
    creator_id: str | None = None
    creator_name: str | None = None
    game_id: str | None = None
    url: str | None = None
    embed_url: str | None = None
    thumbnail_url: str | None = None

    @classmethod
    def from_helix(cls, payload: dict) -> "RawClip":
        return cls(
            id=str(payload["id"]),
            title=payload.get("title") or "",
            broadcaster_id=str(payload.get("broadcaster_id") or ""),
            view_count=int(payload.get("view_count") or 0),
            duration=payload.get("duration"),
            created_at=parse_timestamp(payload.get("created_at")),
            # Helix sends "" when the VOD is gone
            video_id=payload.get("video_id") or None,
            broadcaster_name=payload.get("broadcaster_name"),
            creator_id=payload.get("creator_id"),
            creator_name=payload.get("creator_name"),
            game_id=payload.get("game_id"),
            url=payload.get("url"),
            embed_url=payload.get("embed_url"),
            thumbnail_url=payload.get("thumbnail_url"),
        )


@dataclass
class ClipRecord:
    """Canonical validated clip, mapped to a table shape at the storage boundary."""

    clip: RawClip
    platform: str = "twitch"
    vod_title: str | None = None
    profile_image_url: str | None = None
    is_valid: bool = True
    is_chaserp: bool = True
    server_id: str | None = None

    @property
    def clip_id(self) -> str:
        return self.clip.id

    @property
    def broadcaster_login(self) -> str | None:
        name = self.clip.broadcaster_name
        return name.lower() if name else None
