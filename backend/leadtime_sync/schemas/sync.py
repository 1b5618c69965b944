from typing import Optional, List
from pydantic import BaseModel


class SyncResponse(BaseModel):
    status: str  # 'success', 'failed'
    message: str
    num_sources: int = 0
    num_failed_sources: int = 0
    num_created: int = 0
    num_updated: int = 0
    num_unchanged: int = 0
    num_failed_records: int = 0
    num_failed_mappings: int = 0
    error_detail: Optional[str] = None  # Detailed error message when status is 'failed'


class SyncRunResponse(BaseModel):
    id: int
    source_id: Optional[int] = None
    source_name: Optional[str] = None
    trigger_type: str
    started_at: Optional[str] = None
    ended_at: Optional[str] = None
    status: str
    records_fetched: Optional[int] = None
    events_created: Optional[int] = None
    events_updated: Optional[int] = None
    events_unchanged: Optional[int] = None
    records_failed: Optional[int] = None
    mappings_failed: Optional[int] = None
    error_message: Optional[str] = None


class PaginatedSyncRuns(BaseModel):
    data: List[SyncRunResponse]
    total: int
