"""Bulk import of the streamer population from a streamer_ids.json export."""

import json
import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chaseclips.models.streamer import Streamer
from chaseclips.services.clip_store import dialect_insert

logger = logging.getLogger(__name__)

IMPORT_BATCH_SIZE = 500


@dataclass
class ImportResult:
    total_in_file: int = 0
    records_prepared: int = 0
    imported: int = 0
    batch_errors: int = 0


def load_streamer_file(path: str | Path) -> list[dict]:
    """Read a JSON list of {"id", "login", "name"} entries."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of streamers")
    return data


def prepare_records(entries: Iterable[dict]) -> list[dict]:
    """Entries without an id are skipped; the display name falls back to the login."""
    records = []
    for entry in entries:
        if not entry.get("id"):
            continue
        login = entry.get("login") or None
        records.append({
            "id": uuid.uuid4(),
            "twitch_id": str(entry["id"]),
            "twitch_login": login,
            "twitch_name": entry.get("name") or login,
            "is_active": True,
        })
    return records


def resolve_missing_ids(entries: list[dict], client) -> list[dict]:
    """Fill in the id of entries that only carry a login, via Helix user lookup."""
    missing = [e["login"] for e in entries if not e.get("id") and e.get("login")]
    if not missing:
        return entries

    ids_by_login = client.get_user_ids_by_login(missing)
    logger.info(f"Resolved {len(ids_by_login)} of {len(missing)} logins to Twitch IDs")

    resolved = []
    for entry in entries:
        if not entry.get("id") and entry.get("login"):
            user_id = ids_by_login.get(entry["login"].lower())
            if user_id:
                entry = {**entry, "id": user_id}
            else:
                logger.warning(f"Could not find user ID for {entry['login']}")
        resolved.append(entry)
    return resolved


def import_streamers(
    db: Session,
    entries: list[dict],
    batch_size: int = IMPORT_BATCH_SIZE,
    batch_delay: float = 0.1,
    sleep: Callable[[float], None] = time.sleep,
) -> ImportResult:
    """Insert streamers, leaving already-known twitch_ids untouched."""
    records = prepare_records(entries)
    result = ImportResult(total_in_file=len(entries), records_prepared=len(records))
    logger.info(f"Prepared {len(records)} of {len(entries)} streamers for import")

    for i in range(0, len(records), batch_size):
        batch = records[i:i + batch_size]
        batch_no = i // batch_size + 1
        stmt = dialect_insert(db, Streamer.__table__).values(batch).on_conflict_do_nothing(
            index_elements=["twitch_id"],
        )
        try:
            db.execute(stmt)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            result.batch_errors += 1
            logger.error(f"Streamer batch {batch_no} error: {e}")
            continue

        result.imported += len(batch)
        logger.info(f"Imported batch {batch_no}: {len(batch)} records")
        if batch_delay and i + batch_size < len(records):
            sleep(batch_delay)

    return result
