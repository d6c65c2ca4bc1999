"""
Sync endpoints: mirror status, manual trigger and relationship coverage
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Query

from ...config import table_name
from ...core.resources import RESOURCES
from ...database.store_service import DataStoreService
from ...database.supabase_client import SupabaseClient
from ...tasks.pipeline import SyncAlreadyRunning, execute_sync, is_sync_running
from ...tasks.sync_plans import SYNC_PLANS

router = APIRouter(prefix="/sync", tags=["sync"])
logger = logging.getLogger(__name__)


@router.get("/status")
def sync_status() -> Dict[str, Any]:
    """Row counts per mirror table plus the last completed run"""
    try:
        supabase = SupabaseClient()
        counts = {f"{name}_count": supabase.count_rows(table_name(name)) for name in RESOURCES}
        last_sync = supabase.get_last_sync()
    except Exception as e:
        logger.error(f"Error getting sync status: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to get sync status: {e}")

    return {
        "last_sync": last_sync.get("completed_at") if last_sync else None,
        "is_syncing": is_sync_running(),
        "stats": counts,
        "timestamp": datetime.now().isoformat(),
    }


@router.post("")
async def trigger_sync(plan: str = Query("full")) -> Dict[str, Any]:
    """Run a sync plan and report its summary"""
    if plan not in SYNC_PLANS:
        raise HTTPException(status_code=400, detail=f"Unknown sync plan: {plan}")
    if is_sync_running():
        raise HTTPException(status_code=409, detail="Sync is already in progress")

    loop = asyncio.get_running_loop()
    log = logging.getLogger("api.sync")
    try:
        result = await loop.run_in_executor(None, lambda: execute_sync(plan, logger=log))
    except SyncAlreadyRunning:
        raise HTTPException(status_code=409, detail="Sync is already in progress")
    except Exception as e:
        logger.error(f"Sync failed: {e}")
        raise HTTPException(status_code=500, detail=f"Sync failed: {e}")

    if not result.success:
        raise HTTPException(status_code=500, detail=result.summary())

    return {"success": True, "message": "Sync completed successfully", **result.summary()}


@router.get("/relationships")
def relationship_stats() -> Dict[str, Any]:
    """Foreign key coverage for the core mirror tables"""
    try:
        store = DataStoreService(SupabaseClient())
        return store.validate_integrity(SYNC_PLANS["core"].resources)
    except Exception as e:
        logger.error(f"Error getting relationship stats: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to get relationship stats: {e}")
