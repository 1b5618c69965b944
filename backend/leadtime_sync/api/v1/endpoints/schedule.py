"""Schedule endpoint reporting the daily sync configuration."""

from fastapi import APIRouter

from leadtime_sync.config import settings
from leadtime_sync.scheduler import compute_next_runs, is_sync_running
from leadtime_sync.schemas.schedule import ScheduleResponse

router = APIRouter()


@router.get("/", response_model=ScheduleResponse)
async def get_schedule():
    """Get current schedule configuration and its next run times."""
    enabled = settings.scheduler_enabled
    return ScheduleResponse(
        cron=settings.sync_cron,
        timezone=settings.sync_timezone,
        enabled=enabled,
        running=is_sync_running(),
        honor_sync_frequency=settings.honor_sync_frequency,
        next_runs=compute_next_runs(settings.sync_cron, settings.sync_timezone) if enabled else []
    )
