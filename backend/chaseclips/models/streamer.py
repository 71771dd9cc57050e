"""Streamer model: the population of broadcasters scanned for clips."""

from sqlalchemy import Column, String, Boolean, DateTime, Index

from chaseclips.models.base import Base, TimestampMixin, UUIDMixin


class Streamer(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "streamers"

    # Twitch identity
    twitch_id = Column(String(32), unique=True, nullable=False, index=True)
    twitch_login = Column(String(255))
    twitch_name = Column(String(255))

    is_active = Column(Boolean, default=True, nullable=False)

    # Scan state
    last_clip_check = Column(DateTime(timezone=True))
    last_bulk_scan = Column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_streamer_active_twitch_id", "is_active", "twitch_id"),
        Index("idx_streamer_active_last_check", "is_active", "last_clip_check"),
    )
