from typing import Optional
from datetime import datetime
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from leadtime_sync.database import get_db
from leadtime_sync.models.sync_run import SyncRun
from leadtime_sync.schemas.sync import PaginatedSyncRuns, SyncRunResponse

log = logging.getLogger(__name__)
router = APIRouter()


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@router.get("/runs", response_model=PaginatedSyncRuns)
async def get_sync_runs(
    skip: int = 0,
    limit: int = 20,
    status: Optional[str] = None,
    source_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Retrieve history of sync runs, newest first."""
    q = db.query(SyncRun)
    if status and status != "all":
        q = q.filter(SyncRun.status == status)
    if source_id is not None:
        q = q.filter(SyncRun.source_id == source_id)
    total = q.count()
    sync_runs = q.order_by(SyncRun.start_time.desc(), SyncRun.id.desc()).offset(skip).limit(limit).all()
    return PaginatedSyncRuns(
        total=total,
        data=[
            SyncRunResponse(
                id=sr.id,
                source_id=sr.source_id,
                source_name=sr.source_name,
                trigger_type=sr.trigger_type,
                started_at=_iso(sr.start_time),
                ended_at=_iso(sr.end_time),
                status=sr.status,
                records_fetched=sr.records_fetched,
                events_created=sr.events_created,
                events_updated=sr.events_updated,
                events_unchanged=sr.events_unchanged,
                records_failed=sr.records_failed,
                mappings_failed=sr.mappings_failed,
                error_message=sr.error_message
            )
            for sr in sync_runs
        ]
    )
