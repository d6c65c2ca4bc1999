"""
Health check endpoints for system status
"""

from fastapi import APIRouter
from typing import Dict, Any
import logging
from datetime import datetime

from ...config import SYNC_LOG_TABLE
from ...database.supabase_client import SupabaseClient
from ...core.productive_client import ProductiveClient

router = APIRouter(prefix="/health", tags=["health"])
logger = logging.getLogger(__name__)

@router.get("/")
async def health_check() -> Dict[str, Any]:
    """Comprehensive health check"""
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "services": {}
    }

    # Check Supabase connection
    try:
        supabase = SupabaseClient()
        supabase.client.table(SYNC_LOG_TABLE).select('id').limit(1).execute()
        health_status["services"]["supabase"] = {"status": "healthy"}
    except Exception as e:
        health_status["services"]["supabase"] = {
            "status": "unhealthy",
            "error": str(e)
        }
        health_status["status"] = "degraded"

    # Check Productive API connection
    try:
        productive = ProductiveClient()
        authenticated = productive.test_connection()
        health_status["services"]["productive_api"] = {
            "status": "healthy" if authenticated else "unhealthy",
            "authenticated": authenticated
        }
        if not authenticated:
            health_status["status"] = "degraded"
    except Exception as e:
        health_status["services"]["productive_api"] = {
            "status": "unhealthy",
            "error": str(e)
        }
        health_status["status"] = "degraded"

    return health_status

@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    """Liveness check endpoint"""
    return {
        "status": "alive",
        "timestamp": datetime.now().isoformat()
    }
