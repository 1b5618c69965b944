"""Project model and its ordered event-id list."""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Table, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from leadtime_sync.database import Base


# A project's event list. The unique pair makes appends "push if absent".
project_events = Table(
    "project_events",
    Base.metadata,
    Column("id", Integer, primary_key=True),
    Column("project_id", Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("event_id", Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
    UniqueConstraint("project_id", "event_id", name="uq_project_events_project_event"),
)


class Project(Base):
    """Internal project that external sources are mapped onto."""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    events = relationship(
        "Event",
        secondary=project_events,
        order_by=project_events.c.id,
        viewonly=True,
    )

    def __repr__(self):
        return f"<Project(id={self.id}, name='{self.name}')>"
