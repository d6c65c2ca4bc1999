import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI

from .routes.data import router as data_router
from .routes.health import router as health_router
from .routes.sync import router as sync_router
from ..config import SYNC_INTERVAL_MINUTES, SYNC_SCHEDULE_ENABLED
from ..tasks.pipeline import SyncAlreadyRunning, execute_sync

app = FastAPI(title="productive-sync")
app.include_router(health_router)
app.include_router(sync_router)
app.include_router(data_router)

_scheduler = AsyncIOScheduler()


async def _scheduled_full_sync() -> None:
    log = logging.getLogger("scheduler.productive_sync")
    loop = asyncio.get_running_loop()
    try:
        result = await loop.run_in_executor(None, lambda: execute_sync("full", logger=log))
        if result.success:
            log.info("Scheduled sync finished (elapsed=%.2fs)", result.elapsed_seconds)
        else:
            log.error("Scheduled sync failed: %s", result.error)
    except SyncAlreadyRunning:
        log.warning("Skipping scheduled sync; another sync is still running")
    except Exception:  # noqa: BLE001
        log.exception("Scheduled sync job failed")


@app.on_event("startup")
async def _startup() -> None:
    logging.getLogger("apscheduler").setLevel(logging.INFO)

    if SYNC_SCHEDULE_ENABLED and not _scheduler.running:
        _scheduler.add_job(
            _scheduled_full_sync,
            "interval",
            minutes=SYNC_INTERVAL_MINUTES,
            id="productive_full_sync",
            misfire_grace_time=300,
            max_instances=1,
        )
        _scheduler.start()


@app.on_event("shutdown")
async def _shutdown() -> None:
    if _scheduler.running:
        _scheduler.shutdown(wait=False)
