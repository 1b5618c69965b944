"""Database models."""

from leadtime_sync.models.project import Project, project_events
from leadtime_sync.models.event import Event, EventReferenceLink
from leadtime_sync.models.external_source import ExternalSourceConfig, ProjectMapping
from leadtime_sync.models.sync_run import SyncRun

__all__ = [
    "Project",
    "project_events",
    "Event",
    "EventReferenceLink",
    "ExternalSourceConfig",
    "ProjectMapping",
    "SyncRun",
]
