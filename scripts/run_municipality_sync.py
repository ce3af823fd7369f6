#!/usr/bin/env python3
"""Run a municipality sync by hand.

Fetches the configured (or given) municipality feed and imports new
announcements as posts, exactly like the scheduled endpoint does.

Usage:
    # Preview parsed announcements without touching the database
    python scripts/run_municipality_sync.py --dry-run

    # Import from a specific feed
    python scripts/run_municipality_sync.py --feed-url https://example.org/rss.xml

Environment:
    CONFIG_PATH: Path to config file (falls back to environment variables)
    MUNICIPALITY_FEED_URL, MUNICIPALITY_USER_ID, MUNICIPALITY_LOCATION,
    SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY: see locom/shell/config_loader.py
"""

import argparse
import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from locom.core.config import validate_config
from locom.importer import MunicipalityImporter
from locom.shell.config_loader import load_config, load_config_from_env
from locom.shell.supabase_client import SupabaseClient, SupabaseConfig

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Import municipality announcements as posts",
    )
    parser.add_argument(
        "--feed-url",
        help="Feed to import (defaults to the configured feed)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only fetch and parse the feed, do not write posts",
    )
    args = parser.parse_args()

    config_path = os.environ.get("CONFIG_PATH")
    config = load_config(config_path) if config_path else load_config_from_env()

    for issue in validate_config(config).errors:
        logger.warning("%s: %s (%s)", issue.field, issue.message, issue.severity)

    feed_url = args.feed_url or config.sync.feed_url
    if not feed_url:
        logger.error("No feed URL: pass --feed-url or set MUNICIPALITY_FEED_URL")
        return 1

    if args.dry_run:
        importer = MunicipalityImporter(config.sync, store=None)
        posts = importer.parse_feed(feed_url)
        for post in posts:
            date = post.published_date.isoformat() if post.published_date else "-"
            print(f"[{date}] {post.title}")
            print(f"    {post.content[:120]}")
            if post.link:
                print(f"    {post.link}")
        print(f"\n{len(posts)} announcements parsed (dry run, nothing written)")
        return 0

    if not config.sync.supabase_url or not config.sync.supabase_service_key:
        logger.error("Supabase URL and service role key are required")
        return 1
    if not config.sync.owner_id:
        logger.error("MUNICIPALITY_USER_ID is required")
        return 1

    store = SupabaseClient(SupabaseConfig(
        url=config.sync.supabase_url,
        key=config.sync.supabase_service_key,
    ))
    result = MunicipalityImporter(config.sync, store).ingest(feed_url)

    for outcome in result.outcomes:
        suffix = f" ({outcome.error})" if outcome.error else ""
        print(f"{outcome.status:>8}  {outcome.post.title}{suffix}")

    print(f"\n{result.summary}")
    return 0 if result.failed == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
