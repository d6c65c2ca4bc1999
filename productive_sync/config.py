"""
Configuration module for productive-sync.
Contains API settings, mirror table naming and sync scheduling.
"""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Productive.io API Configuration
PRODUCTIVE_API_URL = os.getenv("PRODUCTIVE_API_URL", "https://api.productive.io/api/v2")
PRODUCTIVE_API_TOKEN = os.getenv("PRODUCTIVE_API_TOKEN")
PRODUCTIVE_ORGANIZATION_ID = os.getenv("PRODUCTIVE_ORGANIZATION_ID")
JSONAPI_CONTENT_TYPE = "application/vnd.api+json"

# Pagination / HTTP
PAGE_SIZE = 100  # Productive caps page[size] at 200
REQUEST_TIMEOUT = 60  # Seconds per request
MAX_RETRIES = 3  # Transport-level retries on 429/5xx
RETRY_BACKOFF = 5  # Backoff factor handed to urllib3 Retry

# Supabase / Postgres
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY")
SUPABASE_DB_URL = os.getenv("SUPABASE_DB_URL")

# Sync behaviour
SYNC_BATCH_SIZE = int(os.getenv("SYNC_BATCH_SIZE", "500"))
SYNC_INTERVAL_MINUTES = int(os.getenv("SYNC_INTERVAL_MINUTES", "360"))
SYNC_SCHEDULE_ENABLED = os.getenv("SYNC_SCHEDULE_ENABLED", "").lower() in {"1", "true", "yes"}

# Mirror tables
TABLE_PREFIX = "productive_"
SYNC_LOG_TABLE = "sync_log"
CUSTOM_FIELD_VALUES_TABLE = f"{TABLE_PREFIX}custom_field_values"
CUSTOM_FIELD_ENTITY_TYPES = ("project", "deal")


def table_name(resource: str) -> str:
    """Mirror table for a resource name (``deals`` -> ``productive_deals``)."""
    return f"{TABLE_PREFIX}{resource}"
