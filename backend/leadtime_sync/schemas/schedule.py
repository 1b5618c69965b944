"""Schedule schemas for API responses."""

from pydantic import BaseModel, Field


class ScheduleResponse(BaseModel):
    """Daily sync schedule with computed next runs."""

    cron: str = Field(..., description="Cron expression")
    timezone: str = Field(default='UTC', description="Timezone for schedule")
    enabled: bool = Field(default=True, description="Whether the scheduler runs in this process")
    running: bool = Field(default=False, description="Whether a scheduled pass is in progress")
    honor_sync_frequency: bool = Field(default=False, description="Skip sources synced within their sync_frequency")
    next_runs: list[str] = Field(default_factory=list, description="Next 3 run times (ISO format)")
