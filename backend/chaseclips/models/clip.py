"""Clip models: canonical `clips` table and the legacy `twitch_clips` shape."""

from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, Text, Index, UniqueConstraint

from chaseclips.models.base import Base, TimestampMixin, UUIDMixin


class Clip(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "clips"

    # Dedup key: (platform, clip_id)
    platform = Column(String(20), nullable=False, default="twitch")
    clip_id = Column(String(255), nullable=False)

    # Core
    title = Column(Text, nullable=False)
    url = Column(Text)
    embed_url = Column(Text)
    thumbnail_url = Column(Text)
    view_count = Column(Integer, default=0, nullable=False)
    duration = Column(Float)
    clip_created_at = Column(DateTime(timezone=True), index=True)

    # Broadcaster (denormalized)
    broadcaster_id = Column(String(32), index=True)
    broadcaster_name = Column(String(255))
    broadcaster_login = Column(String(255))
    profile_image_url = Column(Text)

    creator_id = Column(String(32))
    creator_name = Column(String(255))
    game_id = Column(String(32))

    # Source video
    video_id = Column(String(32))
    vod_title = Column(Text)

    # Validation
    is_valid = Column(Boolean, default=True, nullable=False)
    is_chaserp = Column(Boolean, default=True, nullable=False)
    last_validated_at = Column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint("platform", "clip_id", name="uq_clip_platform_clip_id"),
        Index("idx_clip_valid_views", "is_valid", "view_count"),
        Index("idx_clip_valid_created", "is_valid", "clip_created_at"),
    )


class LegacyTwitchClip(UUIDMixin, Base):
    """Older single-platform table kept for deployments that never migrated."""

    __tablename__ = "twitch_clips"

    clip_id = Column(String(255), unique=True, nullable=False)
    streamer_username = Column(String(255), index=True)
    clip_title = Column(Text)
    view_count = Column(Integer, default=0)
    duration_seconds = Column(Float)
    thumbnail_url = Column(Text)
    embed_url = Column(Text)
    server_id = Column(String(64))
    twitch_created_at = Column(DateTime(timezone=True))
    is_valid = Column(Boolean, default=True, nullable=False)
    last_validated_at = Column(DateTime(timezone=True))
