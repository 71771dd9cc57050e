"""Initial schema: streamers, clips, twitch_clips, collection_runs.

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Streamers
    op.create_table(
        "streamers",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("twitch_id", sa.String(32), unique=True, nullable=False, index=True),
        sa.Column("twitch_login", sa.String(255)),
        sa.Column("twitch_name", sa.String(255)),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("last_clip_check", sa.DateTime(timezone=True)),
        sa.Column("last_bulk_scan", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_streamer_active_twitch_id", "streamers", ["is_active", "twitch_id"])
    op.create_index("idx_streamer_active_last_check", "streamers", ["is_active", "last_clip_check"])

    # Clips (canonical shape)
    op.create_table(
        "clips",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("platform", sa.String(20), nullable=False, server_default="twitch"),
        sa.Column("clip_id", sa.String(255), nullable=False),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("url", sa.Text),
        sa.Column("embed_url", sa.Text),
        sa.Column("thumbnail_url", sa.Text),
        sa.Column("view_count", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("duration", sa.Float),
        sa.Column("clip_created_at", sa.DateTime(timezone=True), index=True),
        sa.Column("broadcaster_id", sa.String(32), index=True),
        sa.Column("broadcaster_name", sa.String(255)),
        sa.Column("broadcaster_login", sa.String(255)),
        sa.Column("profile_image_url", sa.Text),
        sa.Column("creator_id", sa.String(32)),
        sa.Column("creator_name", sa.String(255)),
        sa.Column("game_id", sa.String(32)),
        sa.Column("video_id", sa.String(32)),
        sa.Column("vod_title", sa.Text),
        sa.Column("is_valid", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("is_chaserp", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("last_validated_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("platform", "clip_id", name="uq_clip_platform_clip_id"),
    )
    op.create_index("idx_clip_valid_views", "clips", ["is_valid", "view_count"])
    op.create_index("idx_clip_valid_created", "clips", ["is_valid", "clip_created_at"])

    # Legacy single-platform clips
    op.create_table(
        "twitch_clips",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("clip_id", sa.String(255), unique=True, nullable=False),
        sa.Column("streamer_username", sa.String(255), index=True),
        sa.Column("clip_title", sa.Text),
        sa.Column("view_count", sa.Integer, server_default=sa.text("0")),
        sa.Column("duration_seconds", sa.Float),
        sa.Column("thumbnail_url", sa.Text),
        sa.Column("embed_url", sa.Text),
        sa.Column("server_id", sa.String(64)),
        sa.Column("twitch_created_at", sa.DateTime(timezone=True)),
        sa.Column("is_valid", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("last_validated_at", sa.DateTime(timezone=True)),
    )

    # Collection runs
    op.create_table(
        "collection_runs",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("trigger_source", sa.String(50), nullable=False, server_default="api"),
        sa.Column("run_type", sa.String(20), nullable=False, server_default="collect"),
        sa.Column("batch_offset", sa.Integer),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("status", sa.String(20), nullable=False, server_default="running", index=True),
        sa.Column("streamers_checked", sa.Integer, server_default=sa.text("0")),
        sa.Column("clips_found", sa.Integer, server_default=sa.text("0")),
        sa.Column("clips_new", sa.Integer, server_default=sa.text("0")),
        sa.Column("clips_updated", sa.Integer, server_default=sa.text("0")),
        sa.Column("error_message", sa.Text),
    )


def downgrade() -> None:
    op.drop_table("collection_runs")
    op.drop_table("twitch_clips")
    op.drop_table("clips")
    op.drop_table("streamers")
