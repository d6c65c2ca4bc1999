#!/usr/bin/env python3
# scripts/sync_custom_field_values.py

import argparse
import logging
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from productive_sync.config import CUSTOM_FIELD_ENTITY_TYPES  # noqa: E402
from productive_sync.tasks.pipeline import run_custom_field_values  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Sync and resolve custom field values for projects and deals",
    )
    parser.add_argument(
        "--entity-type",
        choices=[*CUSTOM_FIELD_ENTITY_TYPES, "all"],
        default="all",
        help="Limit the pass to projects or deals (default all)",
    )
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    logging.basicConfig(level=logging.INFO)
    entity_types = CUSTOM_FIELD_ENTITY_TYPES if args.entity_type == "all" else (args.entity_type,)
    return run_custom_field_values(entity_types, logger=logging.getLogger("custom_field_values"))


if __name__ == "__main__":
    sys.exit(main())
