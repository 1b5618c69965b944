"""APScheduler integration for the daily sync pass."""

import logging
from datetime import datetime
from typing import List
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from croniter import croniter

from leadtime_sync.config import settings
from leadtime_sync.database import SessionLocal
from leadtime_sync.services.sync_service import SyncService

log = logging.getLogger(__name__)

JOB_ID = "daily_sync_job"

# Global scheduler instance
scheduler = AsyncIOScheduler()

# Guard against a tick starting while the previous scheduled pass still runs
_sync_running = False


def is_sync_running() -> bool:
    return _sync_running


async def scheduled_sync_job():
    """Run one sync pass over all active sources."""
    global _sync_running

    if _sync_running:
        log.warning("Scheduled sync skipped: previous run still active")
        return

    _sync_running = True
    db = SessionLocal()
    try:
        log.info("Starting scheduled sync job")
        summary = await SyncService(db).sync_all(
            trigger_type='scheduled',
            respect_frequency=settings.honor_sync_frequency
        )
        log.info(f"Scheduled sync completed: {summary}")
        if summary["failed_sources"]:
            log.warning(f"Scheduled sync: {summary['failed_sources']} source(s) failed, see sync run history")
    except Exception as e:
        log.error(f"Scheduled sync failed: {e}", exc_info=True)
    finally:
        _sync_running = False
        db.close()


def schedule_sync_job(cron: str, timezone: str):
    """Register (or replace) the sync job for a cron expression."""
    try:
        trigger = CronTrigger.from_crontab(cron, timezone=ZoneInfo(timezone))
    except ValueError as e:
        log.error(f"Failed to schedule job with cron '{cron}': {e}")
        raise
    scheduler.add_job(
        scheduled_sync_job,
        trigger=trigger,
        id=JOB_ID,
        replace_existing=True
    )
    log.info(f"Scheduled sync job: cron='{cron}' timezone='{timezone}'")


def compute_next_runs(cron: str, timezone: str, count: int = 3) -> List[str]:
    """Compute next N run times from cron expression."""
    try:
        now = datetime.now(ZoneInfo(timezone))
        iter_obj = croniter(cron, now)
        return [iter_obj.get_next(datetime).isoformat() for _ in range(count)]
    except (ValueError, KeyError) as e:
        log.warning(f"Failed to compute next runs: {e}")
        return []


def start_scheduler():
    """Start the APScheduler with the configured daily schedule."""
    schedule_sync_job(settings.sync_cron, settings.sync_timezone)
    if not scheduler.running:
        scheduler.start()
        log.info("APScheduler started successfully")


def shutdown_scheduler():
    """Shutdown the APScheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=True)
        log.info("APScheduler shut down successfully")
