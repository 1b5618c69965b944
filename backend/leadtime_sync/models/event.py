"""Event model: unified representation of project activity."""

from sqlalchemy import Column, Integer, String, DateTime, Text, Float, ForeignKey, Index, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from leadtime_sync.database import Base


class Event(Base):
    """Timestamped project event, entered manually or created by a sync pass."""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False)  # 'duration' or 'one-time'
    status = Column(String(20), nullable=False, default='notyet')  # 'done', 'ongoing', 'notyet'
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)

    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    participants = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)  # user ids
    estimated_hours = Column(Float, nullable=True)
    actual_hours = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    reference_links = relationship(
        "EventReferenceLink",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventReferenceLink.position",
    )

    __table_args__ = (
        Index('idx_events_project_id', 'project_id'),
        Index('idx_events_status', 'status'),
        Index('idx_events_start_date', 'start_date'),
    )

    def __repr__(self):
        return f"<Event(id={self.id}, title='{self.title}', status='{self.status}')>"


class EventReferenceLink(Base):
    """Link from an event to the external record it describes."""

    __tablename__ = "event_reference_links"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    type = Column(String(20), nullable=False)  # 'jira', 'github', 'confluence', 'other'
    url = Column(String(2048), nullable=False)
    title = Column(String(500), nullable=True)

    event = relationship("Event", back_populates="reference_links")

    __table_args__ = (
        Index('idx_event_reference_links_url', 'url'),
        Index('idx_event_reference_links_event_id', 'event_id'),
    )

    def __repr__(self):
        return f"<EventReferenceLink(id={self.id}, type='{self.type}', url='{self.url}')>"
