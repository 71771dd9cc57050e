"""Import the streamer population from streamer_ids.json.

Existing twitch_ids are left untouched, so the import can be re-run after
the file grows.

Usage:
    docker compose exec backend python -m scripts.import_streamers streamer_ids.json
    # Resolve entries that only have a login through the Helix users endpoint:
    docker compose exec backend python -m scripts.import_streamers streamer_ids.json --resolve-logins
"""

import argparse
import logging

from chaseclips.config import get_settings
from chaseclips.models.base import SyncSessionLocal
from chaseclips.services.streamer_import import import_streamers, load_streamer_file, resolve_missing_ids
from chaseclips.services.twitch_client import HelixClient

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Import streamers into the streamers table")
    parser.add_argument("path", help="JSON file with [{id, login, name}, ...]")
    parser.add_argument("--resolve-logins", action="store_true", help="Look up IDs for entries without one")
    parser.add_argument("--batch-size", type=int, default=500)
    args = parser.parse_args()

    entries = load_streamer_file(args.path)
    print(f"Loaded {len(entries)} streamers from {args.path}")

    if args.resolve_logins:
        client = HelixClient.from_settings(get_settings())
        try:
            entries = resolve_missing_ids(entries, client)
        finally:
            client.close()

    db = SyncSessionLocal()
    try:
        result = import_streamers(db, entries, batch_size=args.batch_size)
    finally:
        db.close()

    print(f"Prepared {result.records_prepared} records, imported {result.imported}, "
          f"{result.batch_errors} batch errors")
    return result


if __name__ == "__main__":
    main()
