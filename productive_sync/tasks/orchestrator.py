"""Sequential fetch -> store -> validate runs over a sync plan."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.errors import OrchestratorAbort, ProductiveSyncError, StorageError
from ..core.fetcher import FetchResult, ResourceFetcher
from ..core.resources import get_resource
from ..database.store_service import DataStoreService, StoreStats
from .sync_plans import SyncPlan

logger = logging.getLogger(__name__)


@dataclass
class SyncRunResult:
    """Everything a plan run produced, threaded explicitly through the run."""

    plan: str
    data: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    fetch_results: Dict[str, FetchResult] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    store_stats: Dict[str, StoreStats] = field(default_factory=dict)
    integrity: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    error: Optional[ProductiveSyncError] = None
    elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None

    def counts(self) -> Dict[str, int]:
        return {name: len(resources) for name, resources in self.data.items()}

    def summary(self) -> Dict[str, Any]:
        return {
            "plan": self.plan,
            "success": self.success,
            "counts": self.counts(),
            "skipped": list(self.skipped),
            "stored": {name: stats.stored for name, stats in self.store_stats.items()},
            "failed": {name: stats.failed for name, stats in self.store_stats.items() if stats.failed},
            "elapsed_seconds": self.elapsed_seconds,
            "error": str(self.error) if self.error else None,
        }


class SyncOrchestrator:
    """Runs the fetch steps of a plan one after another, then stores and validates."""

    def __init__(
        self,
        fetcher: ResourceFetcher,
        store_service: Optional[DataStoreService] = None,
        *,
        page_size: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.fetcher = fetcher
        self.store_service = store_service
        self.page_size = page_size
        self.logger = logger or logging.getLogger(f"{__name__}.run")

    def fetch_plan(self, plan: SyncPlan, result: SyncRunResult) -> SyncRunResult:
        """Fetch every step into ``result``; raises OrchestratorAbort on a failed required step."""
        for step in plan.steps:
            fetched = self.fetcher.fetch(get_resource(step.resource), self.page_size)
            result.fetch_results[step.resource] = fetched

            if not fetched.success:
                if step.optional:
                    self.logger.warning(
                        f"Failed to fetch {step.resource}, continuing without it: {fetched.error}"
                    )
                    result.skipped.append(step.resource)
                    continue
                raise OrchestratorAbort(step.resource, fetched.error)

            result.data[step.resource] = fetched.data
        return result

    def run(self, plan: SyncPlan) -> SyncRunResult:
        """
        Execute ``plan``.

        Returns:
            SyncRunResult; ``error`` is set when a required fetch or the storage step failed
        """
        result = SyncRunResult(plan=plan.name)
        started = time.perf_counter()
        self.logger.info(f"Starting Productive sync (plan={plan.name}, steps={len(plan.steps)})")

        try:
            self.fetch_plan(plan, result)

            if self.store_service is not None:
                self.logger.info("Storing data in database...")
                result.store_stats = self.store_service.store(result.data)
                self.logger.info("Validating data integrity...")
                result.integrity = self.store_service.validate_integrity(result.data.keys())
        except OrchestratorAbort as e:
            self.logger.error(str(e))
            result.error = e
        except StorageError as e:
            self.logger.error(f"Failed to store data: {e}")
            result.error = e
        finally:
            result.elapsed_seconds = round(time.perf_counter() - started, 2)

        return result
