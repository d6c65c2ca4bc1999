#!/usr/bin/env python3
# scripts/sync_productive.py

import argparse
import logging
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from productive_sync.config import PAGE_SIZE  # noqa: E402
from productive_sync.tasks.pipeline import run_sync  # noqa: E402
from productive_sync.tasks.sync_plans import SYNC_PLANS  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fetch Productive.io resources and upsert them into the Supabase mirror",
    )
    parser.add_argument(
        "--plan",
        choices=sorted(SYNC_PLANS),
        default="core",
        help="Which resources to sync (default core)",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=PAGE_SIZE,
        help=f"page[size] sent to Productive (default {PAGE_SIZE})",
    )
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger = logging.getLogger("productive_sync")
    logger.info(f"Starting Productive sync (plan={args.plan})...")
    return run_sync(args.plan, args.page_size, logger=logger)


if __name__ == "__main__":
    sys.exit(main())
