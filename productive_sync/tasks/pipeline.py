"""Reusable sync entry points shared by the CLI scripts, the API and the scheduler."""

from __future__ import annotations

import logging
import threading
import time
from typing import Iterable, Optional

from ..config import CUSTOM_FIELD_ENTITY_TYPES, PAGE_SIZE
from ..core.fetcher import ResourceFetcher
from ..core.productive_client import ProductiveClient
from ..database.postgres_store import PostgresCustomFieldStore
from ..database.store_service import DataStoreService
from ..database.supabase_client import SupabaseClient
from ..services.custom_field_resolver import CustomFieldValueResolver
from .orchestrator import SyncOrchestrator, SyncRunResult
from .sync_plans import get_plan

logger = logging.getLogger(__name__)

_sync_lock = threading.Lock()


class SyncAlreadyRunning(RuntimeError):
    """Another plan run holds the sync lock."""


def is_sync_running() -> bool:
    return _sync_lock.locked()


def execute_sync(
    plan_name: str,
    page_size: int = PAGE_SIZE,
    *,
    client: Optional[ProductiveClient] = None,
    supabase: Optional[SupabaseClient] = None,
    logger: Optional[logging.Logger] = None,
) -> SyncRunResult:
    """
    Run one sync plan end to end and record it in ``sync_log``.

    Raises:
        SyncAlreadyRunning: If another run is in progress
        KeyError: For an unknown plan name
    """
    log = logger or logging.getLogger(f"{__name__}.sync")
    plan = get_plan(plan_name)

    if not _sync_lock.acquire(blocking=False):
        raise SyncAlreadyRunning("A Productive sync is already running")

    try:
        supabase = supabase or SupabaseClient()
        orchestrator = SyncOrchestrator(
            ResourceFetcher(client or ProductiveClient(), page_size, logger=log),
            DataStoreService(supabase, logger=log),
            page_size=page_size,
            logger=log,
        )

        log_id = supabase.log_sync_operation("productive", plan.name)
        result = orchestrator.run(plan)
        if result.success:
            supabase.update_sync_log(log_id, "completed", stats=result.summary())
        else:
            supabase.update_sync_log(log_id, "failed", stats=result.summary(), error=str(result.error))
        return result
    finally:
        _sync_lock.release()


def log_summary(result: SyncRunResult, log: logging.Logger) -> None:
    log.info("==== Sync Summary ====")
    for name, count in result.counts().items():
        stats = result.store_stats.get(name)
        stored = f", stored: {stats.stored}, failed: {stats.failed}" if stats else ""
        log.info(f"{name} synced: {count}{stored}")
    for name in result.skipped:
        log.info(f"{name} skipped")
    log.info(f"Execution time: {result.elapsed_seconds} seconds")


def run_sync(plan_name: str, page_size: int = PAGE_SIZE, *, logger: Optional[logging.Logger] = None, **kwargs) -> int:
    """CLI wrapper around ``execute_sync``; returns the process exit code."""
    log = logger or logging.getLogger(f"{__name__}.sync")
    try:
        result = execute_sync(plan_name, page_size, logger=log, **kwargs)
    except Exception as e:
        log.error(f"Productive sync failed: {e}")
        return 1

    log_summary(result, log)
    if not result.success:
        log.error(f"Productive sync failed: {result.error}")
        return 1

    log.info("Productive sync completed successfully!")
    return 0


def run_custom_field_values(
    entity_types: Iterable[str] = CUSTOM_FIELD_ENTITY_TYPES,
    *,
    store: Optional[PostgresCustomFieldStore] = None,
    logger: Optional[logging.Logger] = None,
) -> int:
    """
    Resolve custom field values for projects and/or deals.

    Per-entity failures are counted and logged; only a systemic failure
    (e.g. the database is unreachable) makes this return 1.
    """
    log = logger or logging.getLogger(f"{__name__}.custom_field_values")
    started = time.perf_counter()
    owns_store = store is None
    log.info("Starting custom field values sync...")

    try:
        store = store or PostgresCustomFieldStore()
        resolver = CustomFieldValueResolver(store, logger=log)
        for entity_type in entity_types:
            log.info(f"Processing {entity_type}s...")
            entities = store.load_entities(entity_type)
            log.info(f"Found {len(entities)} {entity_type}s with custom fields")
            resolver.resolve_many(entities, entity_type)
    except Exception as e:
        log.exception(f"Custom field values sync failed: {e}")
        return 1
    finally:
        if owns_store and store is not None:
            store.close()

    log.info("==== Custom Field Values Sync Summary ====")
    log.info(f"Execution time: {round(time.perf_counter() - started, 2)} seconds")
    log.info("Custom field values sync completed successfully!")
    return 0
