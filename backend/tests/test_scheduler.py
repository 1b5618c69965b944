from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from leadtime_sync import scheduler


def test_compute_next_runs():
    runs = scheduler.compute_next_runs("0 0 * * *", "UTC")
    assert len(runs) == 3
    assert all(run.endswith("T00:00:00+00:00") for run in runs)


def test_compute_next_runs_invalid_cron():
    assert scheduler.compute_next_runs("not a cron", "UTC") == []


def test_schedule_sync_job_registers_daily_job():
    scheduler.schedule_sync_job("0 0 * * *", "UTC")
    try:
        job = scheduler.scheduler.get_job(scheduler.JOB_ID)
        assert job is not None
        assert job.func is scheduler.scheduled_sync_job
    finally:
        scheduler.scheduler.remove_job(scheduler.JOB_ID)


def test_schedule_sync_job_rejects_bad_cron():
    with pytest.raises(ValueError):
        scheduler.schedule_sync_job("61 25 * * *", "UTC")


@pytest.mark.asyncio
class TestScheduledSyncJob:
    async def test_runs_sync_all(self):
        summary = {"sources": 1, "failed_sources": 0, "skipped_sources": 0}
        with patch.object(scheduler, "SessionLocal", MagicMock()), \
             patch.object(scheduler, "SyncService") as mock_service:
            mock_service.return_value.sync_all = AsyncMock(return_value=summary)
            await scheduler.scheduled_sync_job()

        mock_service.return_value.sync_all.assert_awaited_once_with(
            trigger_type="scheduled", respect_frequency=False
        )
        assert scheduler.is_sync_running() is False

    async def test_skips_when_previous_run_active(self):
        with patch.object(scheduler, "_sync_running", True), \
             patch.object(scheduler, "SyncService") as mock_service:
            await scheduler.scheduled_sync_job()
        mock_service.assert_not_called()
