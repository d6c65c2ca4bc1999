#!/usr/bin/env python3
"""
Database setup and validation script
"""

import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from productive_sync.config import CUSTOM_FIELD_VALUES_TABLE, SYNC_LOG_TABLE, table_name
from productive_sync.core.resources import RESOURCES
from productive_sync.database.postgres_store import PostgresCustomFieldStore
from productive_sync.database.supabase_client import SupabaseClient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    """Validate that every mirror table is reachable"""
    logger.info("Setting up database connection...")

    try:
        supabase = SupabaseClient()

        tables_to_check = [SYNC_LOG_TABLE, CUSTOM_FIELD_VALUES_TABLE] + [table_name(name) for name in RESOURCES]
        missing = []

        for table in tables_to_check:
            try:
                supabase.client.table(table).select('id').limit(1).execute()
                logger.info(f"✅ Table '{table}' exists and accessible")
            except Exception as e:
                logger.error(f"❌ Table '{table}' not accessible: {e}")
                missing.append(table)

        if missing:
            logger.error("Please create the missing tables in the Supabase dashboard")
            sys.exit(1)

        # The custom field value pass talks to Postgres directly
        with PostgresCustomFieldStore() as store:
            with store.conn.cursor() as cur:
                cur.execute("SELECT 1")
        logger.info("✅ Direct Postgres connection successful")

        logger.info("✅ Database setup validation completed successfully")

    except Exception as e:
        logger.error(f"❌ Database setup failed: {e}")
        logger.error("Please check your Supabase credentials and SUPABASE_DB_URL")
        sys.exit(1)


if __name__ == "__main__":
    main()
