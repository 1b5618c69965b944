"""Sync run model for tracking synchronization executions."""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.sql import func
from leadtime_sync.database import Base


class SyncRun(Base):
    """One sync pass over a single external source."""

    __tablename__ = "sync_runs"

    id = Column(Integer, primary_key=True, index=True)
    source_id = Column(Integer, ForeignKey("external_sources.id", ondelete="SET NULL"), nullable=True, index=True)
    source_name = Column(String(100), nullable=True)

    # Execution details
    trigger_type = Column(String(50), nullable=False, default='manual')  # 'scheduled', 'manual'
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(50), nullable=False)  # 'running', 'completed', 'partial', 'failed'

    # Statistics
    records_fetched = Column(Integer, default=0, nullable=False)
    events_created = Column(Integer, default=0, nullable=False)
    events_updated = Column(Integer, default=0, nullable=False)
    events_unchanged = Column(Integer, default=0, nullable=False)
    records_failed = Column(Integer, default=0, nullable=False)
    mappings_failed = Column(Integer, default=0, nullable=False)

    # Error information
    error_message = Column(Text, nullable=True)

    # Timestamp
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<SyncRun(id={self.id}, source={self.source_id}, status='{self.status}', created={self.events_created})>"
