"""PULSE — Scheduler Jobs.

APScheduler interval job that re-syncs every snapshot domain.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.config import settings
from app.connectors.sheets.sync import sync_all
from app.core.logging import get_logger
from app.store import store

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


async def snapshot_sync_job():
    """Fetch every sheet tab and install the new snapshot."""
    logger.info("Scheduled snapshot sync starting...")
    report = await sync_all(store, force=True)
    failed = [name for name, status in report.domains.items() if not status.ok]
    if failed:
        logger.warning(f"Scheduled sync kept previous rows for: {', '.join(failed)}")
    logger.info(f"Scheduled sync complete. Snapshot v{report.dataset_version}")


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        snapshot_sync_job,
        "interval",
        minutes=settings.sync_interval_minutes,
        id="snapshot_sync",
        replace_existing=True,
        misfire_grace_time=600,
        coalesce=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started. Snapshot sync every {settings.sync_interval_minutes} min"
    )


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
