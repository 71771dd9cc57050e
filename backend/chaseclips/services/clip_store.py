"""Clip persistence: per-run dedup and batched conflict-tolerant upserts."""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chaseclips.services.clip_mappers import CLIPS_MAPPER, ClipTableMapper
from chaseclips.services.clip_types import ClipRecord, RawClip

logger = logging.getLogger(__name__)

BATCH_SIZE = 100


class ConflictMode(str, Enum):
    UPDATE = "update"  # refresh mutable fields (view counts etc.)
    IGNORE = "ignore"  # keep the stored row untouched


@dataclass
class PersistResult:
    inserted: int = 0  # rows written (new + refreshed)
    new: int = 0
    updated: int = 0
    failed_batches: int = 0


def dedupe_clips(clips: Iterable[RawClip], seen: set[str] | None = None) -> list[RawClip]:
    """Keep the first occurrence of each clip id.

    Pass the same `seen` set across calls to dedupe over a whole run.
    """
    seen = set() if seen is None else seen
    unique = []
    for clip in clips:
        if clip.id in seen:
            continue
        seen.add(clip.id)
        unique.append(clip)
    return unique


def dialect_insert(db: Session, table):
    """Dialect-specific INSERT supporting ON CONFLICT."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise ValueError(f"Upsert not supported on dialect: {dialect}")
    return insert(table)


class ClipStore:
    """Writes ClipRecords through a table mapper in fixed-size batches."""

    def __init__(self, db: Session, mapper: ClipTableMapper = CLIPS_MAPPER, batch_size: int = BATCH_SIZE):
        self.db = db
        self.mapper = mapper
        self.batch_size = batch_size

    def persist(self, records: Iterable[ClipRecord], mode: ConflictMode = ConflictMode.UPDATE) -> PersistResult:
        """Upsert records; a failed batch is logged and skipped."""
        mode = ConflictMode(mode)
        rows = self._unique_rows(records)
        result = PersistResult()

        for i in range(0, len(rows), self.batch_size):
            batch = rows[i:i + self.batch_size]
            batch_no = i // self.batch_size + 1
            try:
                existing = self._existing_keys(batch)
                written = self._write_batch(batch, mode)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                result.failed_batches += 1
                logger.error(f"Error upserting clip batch {batch_no} ({len(batch)} rows): {e}")
                continue

            result.inserted += written
            result.new += len(batch) - len(existing)
            if mode is ConflictMode.UPDATE:
                result.updated += len(existing)

        if rows:
            logger.info(
                f"Persisted {result.inserted}/{len(rows)} clips to {self.mapper.name} "
                f"({result.new} new, {result.updated} updated, {result.failed_batches} failed batches)"
            )
        return result

    def _unique_rows(self, records: Iterable[ClipRecord]) -> list[dict]:
        # One statement may not touch the same conflict key twice
        rows = []
        seen = set()
        for record in records:
            row = self.mapper.to_row(record)
            key = self.mapper.key_of(row)
            if key in seen:
                continue
            seen.add(key)
            row["id"] = uuid.uuid4()
            rows.append(row)
        return rows

    def _existing_keys(self, batch: list[dict]) -> set[tuple]:
        table = self.mapper.table
        columns = [table.c[name] for name in self.mapper.conflict_columns]
        query = select(*columns).where(table.c.clip_id.in_([row["clip_id"] for row in batch]))
        stored = {tuple(found) for found in self.db.execute(query)}
        return stored & {self.mapper.key_of(row) for row in batch}

    def _write_batch(self, batch: list[dict], mode: ConflictMode) -> int:
        table = self.mapper.table
        stmt = dialect_insert(self.db, table).values(batch)
        if mode is ConflictMode.UPDATE:
            updates = {column: stmt.excluded[column] for column in self.mapper.update_columns}
            if "updated_at" in table.c:
                updates["updated_at"] = func.now()
            stmt = stmt.on_conflict_do_update(index_elements=list(self.mapper.conflict_columns), set_=updates)
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=list(self.mapper.conflict_columns))
        return len(self.db.execute(stmt.returning(table.c.id)).all())
