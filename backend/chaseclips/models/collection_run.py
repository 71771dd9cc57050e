"""Collection run model: audit log per pipeline invocation."""

from sqlalchemy import Column, String, Integer, DateTime, Text

from chaseclips.models.base import Base, UUIDMixin


class CollectionRun(UUIDMixin, Base):
    __tablename__ = "collection_runs"

    trigger_source = Column(String(50), nullable=False, default="api")  # api, schedule, manual, chain
    run_type = Column(String(20), nullable=False, default="collect")  # collect, bulk_scan
    batch_offset = Column(Integer)

    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True))
    status = Column(String(20), nullable=False, default="running", index=True)  # running, completed, failed
    streamers_checked = Column(Integer, default=0)
    clips_found = Column(Integer, default=0)
    clips_new = Column(Integer, default=0)
    clips_updated = Column(Integer, default=0)
    error_message = Column(Text)
