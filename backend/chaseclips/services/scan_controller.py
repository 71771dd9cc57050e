"""Clip scan controller: drives fetch, validate and persist over the streamer population.

Two entry points share one pipeline:

    run_batch()     offset-paged bulk scan ordered by twitch_id; resumable by
                    calling again with the returned next_offset until completed.
    run_periodic()  lightweight collector that picks the streamers checked
                    longest ago; favors freshness over resumability.
"""

import logging
import time
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from chaseclips.models.streamer import Streamer
from chaseclips.services.clip_store import ClipStore, ConflictMode, dedupe_clips
from chaseclips.services.clip_types import ClipRecord, RawClip
from chaseclips.services.content_validator import CHASERP_TERMS, is_relevant
from chaseclips.services.run_ledger import RunCounts, RunLedger
from chaseclips.services.twitch_auth import TwitchAuthError
from chaseclips.services.twitch_client import HelixClient

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 50


class ScanState(str, Enum):
    IDLE = "idle"
    FETCHING_PAGE = "fetching_page"
    PROCESSING_ENTITIES = "processing_entities"
    FETCHING_METADATA = "fetching_metadata"
    VALIDATING = "validating"
    PERSISTING = "persisting"
    LOGGING = "logging"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BatchResult:
    offset: int
    page_size: int
    streamers_in_batch: int = 0
    streamers_processed: int = 0
    streamers_with_clips: int = 0
    clips_found: int = 0
    clips_accepted: int = 0
    clips_persisted: int = 0
    clips_new: int = 0
    clips_updated: int = 0
    failed_batches: int = 0
    next_offset: int = 0
    total_streamers: int = 0
    completed: bool = False
    run_id: uuid.UUID | None = None
    duration_ms: int = 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["run_id"] = str(self.run_id) if self.run_id else None
        return data


class ClipScanController:

    def __init__(
        self,
        db: Session,
        client: HelixClient,
        store: ClipStore,
        ledger: RunLedger | None = None,
        game_id: str | None = None,
        server_id: str | None = None,
        terms: Iterable[str] = CHASERP_TERMS,
        streamer_delay: float = 0.05,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.db = db
        self.client = client
        self.store = store
        self.ledger = ledger
        self.game_id = game_id
        self.server_id = server_id
        self.terms = tuple(terms)
        self.streamer_delay = streamer_delay
        self.sleep = sleep
        self.now = now
        self.state = ScanState.IDLE

    def _enter(self, state: ScanState) -> None:
        logger.debug(f"Scan state {self.state.value} -> {state.value}")
        self.state = state

    def count_active_streamers(self) -> int:
        query = select(func.count(Streamer.id)).where(Streamer.is_active == True)  # noqa: E712
        return self.db.execute(query).scalar() or 0

    def run_batch(
        self,
        offset: int,
        page_size: int,
        lookback_days: int,
        max_pages_per_streamer: int,
        trigger: str = "api",
        conflict_mode: ConflictMode = ConflictMode.UPDATE,
    ) -> BatchResult:
        """Process one page of active streamers ordered by twitch_id."""
        if offset < 0 or page_size < 1:
            raise ValueError(f"Invalid bulk scan page: offset={offset}, page_size={page_size}")
        started = time.monotonic()
        result = BatchResult(offset=offset, page_size=page_size)

        self._enter(ScanState.FETCHING_PAGE)
        result.total_streamers = self.count_active_streamers()
        query = (
            select(Streamer)
            .where(Streamer.is_active == True)  # noqa: E712
            .order_by(Streamer.twitch_id.asc())
            .offset(offset)
            .limit(page_size)
        )
        streamers = list(self.db.execute(query).scalars().all())

        if not streamers:
            logger.info(f"Bulk scan: no streamers at offset {offset}, scan complete")
            result.next_offset = offset
            result.completed = True
            self._enter(ScanState.DONE)
            return result

        logger.info(
            f"Bulk scan: processing streamers {offset} to {offset + len(streamers)} of {result.total_streamers}"
        )
        self._process(
            streamers,
            result,
            lookback_days=lookback_days,
            max_pages=max_pages_per_streamer,
            trigger=trigger,
            run_type="bulk_scan",
            conflict_mode=conflict_mode,
            bulk=True,
        )

        result.next_offset = offset + len(streamers)
        result.completed = result.next_offset >= result.total_streamers
        result.duration_ms = int((time.monotonic() - started) * 1000)
        return result

    def run_periodic(
        self,
        limit: int,
        lookback_days: int,
        max_pages_per_streamer: int,
        trigger: str = "schedule",
        conflict_mode: ConflictMode = ConflictMode.UPDATE,
    ) -> BatchResult:
        """Process the `limit` active streamers checked longest ago (never-checked first)."""
        if limit < 1:
            raise ValueError(f"Invalid collector limit: {limit}")
        started = time.monotonic()
        result = BatchResult(offset=0, page_size=limit, completed=True)

        self._enter(ScanState.FETCHING_PAGE)
        result.total_streamers = self.count_active_streamers()
        query = (
            select(Streamer)
            .where(Streamer.is_active == True)  # noqa: E712
            .order_by(Streamer.last_clip_check.asc().nullsfirst(), Streamer.twitch_id.asc())
            .limit(limit)
        )
        streamers = list(self.db.execute(query).scalars().all())

        if not streamers:
            logger.info("No streamers to check - run the streamer import first")
            self._enter(ScanState.DONE)
            return result

        logger.info(f"Processing {len(streamers)} streamers...")
        self._process(
            streamers,
            result,
            lookback_days=lookback_days,
            max_pages=max_pages_per_streamer,
            trigger=trigger,
            run_type="collect",
            conflict_mode=conflict_mode,
            bulk=False,
        )
        result.next_offset = len(streamers)
        result.duration_ms = int((time.monotonic() - started) * 1000)
        return result

    def _process(
        self,
        streamers: list[Streamer],
        result: BatchResult,
        lookback_days: int,
        max_pages: int,
        trigger: str,
        run_type: str,
        conflict_mode: ConflictMode,
        bulk: bool,
    ) -> None:
        result.streamers_in_batch = len(streamers)
        result.run_id = self.ledger.start_run(trigger, run_type, offset=result.offset if bulk else None) if self.ledger else None

        try:
            # The credential exchange is the one fatal external call
            self.client.token_cache.get_token()

            self._enter(ScanState.PROCESSING_ENTITIES)
            clips = self._collect(streamers, result, lookback_days, max_pages, bulk)
            result.clips_found = len(clips)
            logger.info(f"Found {len(clips)} clips from {result.streamers_processed} streamers")

            self._enter(ScanState.FETCHING_METADATA)
            vod_titles = self.client.get_video_titles(clip.video_id for clip in clips)
            profiles = self.client.get_profile_images(clip.broadcaster_id for clip in clips)

            self._enter(ScanState.VALIDATING)
            records = self.validate(clips, vod_titles, profiles)
            result.clips_accepted = len(records)

            self._enter(ScanState.PERSISTING)
            persisted = self.store.persist(records, conflict_mode)
            result.clips_persisted = persisted.inserted
            result.clips_new = persisted.new
            result.clips_updated = persisted.updated
            result.failed_batches = persisted.failed_batches
        except Exception as e:
            self._enter(ScanState.FAILED)
            logger.error(f"Clip scan failed ({run_type}): {e}")
            if self.ledger:
                self.ledger.finish_run(result.run_id, "failed", self._counts(result), error=str(e))
            raise

        self._enter(ScanState.LOGGING)
        if self.ledger:
            self.ledger.finish_run(result.run_id, "completed", self._counts(result))
        self._enter(ScanState.DONE)

    def _collect(
        self,
        streamers: list[Streamer],
        result: BatchResult,
        lookback_days: int,
        max_pages: int,
        bulk: bool,
    ) -> list[RawClip]:
        now = self.now()
        started_at = now - timedelta(days=lookback_days)
        seen: set[str] = set()
        clips: list[RawClip] = []

        for index, streamer in enumerate(streamers):
            try:
                fetched = self.client.fetch_clips(
                    streamer.twitch_id,
                    started_at,
                    max_pages,
                    ended_at=now,
                    game_id=self.game_id,
                )
            except TwitchAuthError:
                raise
            except Exception as e:
                logger.warning(f"Error processing {streamer.twitch_login or streamer.twitch_id}: {e}")
                fetched = None

            if fetched is not None:
                result.streamers_processed += 1
                if fetched:
                    result.streamers_with_clips += 1
                clips.extend(dedupe_clips(fetched, seen))

            # Checked even when nothing was found or the fetch failed
            checked_at = self.now()
            streamer.last_clip_check = checked_at
            if bulk:
                streamer.last_bulk_scan = checked_at
            self.db.commit()

            if (index + 1) % PROGRESS_EVERY == 0:
                logger.info(f"Progress: {index + 1}/{len(streamers)} streamers, {len(clips)} clips found")

            if self.streamer_delay and index + 1 < len(streamers):
                self.sleep(self.streamer_delay)

        return clips

    def validate(
        self,
        clips: Iterable[RawClip],
        vod_titles: dict[str, str],
        profiles: dict[str, str],
    ) -> list[ClipRecord]:
        """Keep clips whose clip or VOD title mentions the server."""
        records = []
        for clip in clips:
            vod_title = vod_titles.get(clip.video_id) if clip.video_id else None
            if not is_relevant(clip.title, vod_title, self.terms):
                continue
            records.append(ClipRecord(
                clip=clip,
                vod_title=vod_title,
                profile_image_url=profiles.get(clip.broadcaster_id),
                server_id=self.server_id,
            ))
        return records

    @staticmethod
    def _counts(result: BatchResult) -> RunCounts:
        return RunCounts(
            streamers_checked=result.streamers_processed,
            clips_found=result.clips_found,
            clips_new=result.clips_new,
            clips_updated=result.clips_updated,
        )
