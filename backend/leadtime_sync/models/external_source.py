"""External source configuration and its project mappings."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from leadtime_sync.database import Base


class ExternalSourceConfig(Base):
    """Connection to one external system (Jira, GitHub or Confluence)."""

    __tablename__ = "external_sources"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    type = Column(String(50), nullable=False, index=True)  # 'jira', 'github' or 'confluence'
    base_url = Column(String(255), nullable=False)

    # Credentials
    username = Column(String(255), nullable=True)
    token = Column(Text, nullable=False)  # Encrypted
    api_key = Column(Text, nullable=True)  # Encrypted

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    last_sync_at = Column(DateTime(timezone=True), nullable=True)
    sync_frequency = Column(Integer, default=24, nullable=False)  # hours
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    project_mappings = relationship(
        "ProjectMapping",
        back_populates="source",
        cascade="all, delete-orphan",
        order_by="ProjectMapping.position",
    )

    def __repr__(self):
        return f"<ExternalSourceConfig(id={self.id}, name='{self.name}', type='{self.type}')>"


class ProjectMapping(Base):
    """Maps one external project key / repo / space onto an internal project."""

    __tablename__ = "project_mappings"

    id = Column(Integer, primary_key=True, index=True)
    source_id = Column(Integer, ForeignKey("external_sources.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    external_id = Column(String(255), nullable=False)  # Jira key, 'owner/repo' or Confluence space key
    internal_project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)

    source = relationship("ExternalSourceConfig", back_populates="project_mappings")

    __table_args__ = (
        UniqueConstraint('source_id', 'external_id', 'internal_project_id', name='uq_source_external_project'),
    )

    def __repr__(self):
        return f"<ProjectMapping(id={self.id}, external_id='{self.external_id}', project={self.internal_project_id})>"
