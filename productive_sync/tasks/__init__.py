"""Reusable task helpers for productive-sync runs."""

from .orchestrator import SyncOrchestrator, SyncRunResult  # noqa: F401
from .pipeline import (  # noqa: F401
    SyncAlreadyRunning,
    execute_sync,
    is_sync_running,
    run_custom_field_values,
    run_sync,
)
from .sync_plans import SYNC_PLANS, SyncPlan, SyncStep, get_plan  # noqa: F401

__all__ = [
    "SyncOrchestrator",
    "SyncRunResult",
    "SyncAlreadyRunning",
    "execute_sync",
    "is_sync_running",
    "run_sync",
    "run_custom_field_values",
    "SYNC_PLANS",
    "SyncPlan",
    "SyncStep",
    "get_plan",
]
