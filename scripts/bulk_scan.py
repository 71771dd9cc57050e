"""Run the bulk clip scan from the command line until every streamer is covered.

Each batch is one ClipScanController.run_batch() call; the next batch starts
at the returned offset, so an interrupted scan is resumed with --offset.

Usage:
    docker compose exec backend python -m scripts.bulk_scan
    docker compose exec backend python -m scripts.bulk_scan --offset 1200 --limit 200 --days 90
"""

import argparse
import logging

from chaseclips.config import get_settings
from chaseclips.models.base import SyncSessionLocal
from chaseclips.tasks.collect_tasks import build_scan_controller, clamp_bulk_params

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Scan all active streamers for ChaseRP clips")
    parser.add_argument("--offset", type=int, default=0, help="Starting streamer index")
    parser.add_argument("--limit", type=int, help="Streamers per batch (max 500)")
    parser.add_argument("--days", type=int, help="Days to look back (max 365)")
    parser.add_argument("--max-pages", type=int, help="Clip pages per streamer (max 10)")
    parser.add_argument("--once", action="store_true", help="Process a single batch and stop")
    args = parser.parse_args()

    settings = get_settings()
    offset, limit, days, max_pages = clamp_bulk_params(args.offset, args.limit, args.days, args.max_pages, settings)

    db = SyncSessionLocal()
    controller = build_scan_controller(db, settings)
    try:
        while True:
            result = controller.run_batch(offset, limit, days, max_pages, trigger="manual")
            print(f"offset={offset}: {result.streamers_processed} streamers, {result.clips_found} clips found, "
                  f"{result.clips_accepted} valid, {result.clips_persisted} saved "
                  f"({result.next_offset}/{result.total_streamers})")
            if result.completed or args.once:
                break
            offset = result.next_offset
    except Exception as e:
        print(f"\nERROR: bulk scan stopped at offset {offset}: {e}")
        print(f"Resume with --offset {offset}")
        raise
    finally:
        controller.client.close()
        db.close()


if __name__ == "__main__":
    main()
