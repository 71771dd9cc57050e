"""Best-effort run history for the collection pipeline."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chaseclips.models.collection_run import CollectionRun

logger = logging.getLogger(__name__)


@dataclass
class RunCounts:
    streamers_checked: int = 0
    clips_found: int = 0
    clips_new: int = 0
    clips_updated: int = 0


class RunLedger:
    """Records each pipeline invocation.

    Uses its own sessions so a ledger failure never poisons the pipeline's
    transaction; every write error is logged and swallowed.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def start_run(self, trigger: str, run_type: str = "collect", offset: int | None = None) -> uuid.UUID | None:
        run_id = uuid.uuid4()
        db = self.session_factory()
        try:
            db.add(CollectionRun(
                id=run_id,
                trigger_source=trigger,
                run_type=run_type,
                batch_offset=offset,
                started_at=datetime.now(timezone.utc),
                status="running",
            ))
            db.commit()
            return run_id
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Could not record run start ({run_type}/{trigger}): {e}")
            return None
        finally:
            db.close()

    def finish_run(
        self,
        run_id: uuid.UUID | None,
        status: str,
        counts: RunCounts | None = None,
        error: str | None = None,
    ) -> bool:
        if run_id is None:
            return False
        counts = counts or RunCounts()
        db = self.session_factory()
        try:
            run = db.get(CollectionRun, run_id)
            if not run:
                logger.warning(f"Run {run_id} not found in ledger")
                return False
            run.status = status
            run.completed_at = datetime.now(timezone.utc)
            run.streamers_checked = counts.streamers_checked
            run.clips_found = counts.clips_found
            run.clips_new = counts.clips_new
            run.clips_updated = counts.clips_updated
            if error:
                run.error_message = error[:2000]
            db.commit()
            return True
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Could not finalize run {run_id}: {e}")
            return False
        finally:
            db.close()
