"""
Storage collaborators used by the sync subsystem.

The sync core only needs a narrow slice of persistence: find/insert/update
events by reference URL, append event ids to a project's event list and read
or stamp external source configs. None of these ever delete.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from leadtime_sync.connectors.base import as_utc
from leadtime_sync.models.event import Event, EventReferenceLink
from leadtime_sync.models.external_source import ExternalSourceConfig
from leadtime_sync.models.project import project_events

log = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _same_value(current: Any, new: Any) -> bool:
    if isinstance(current, datetime) or isinstance(new, datetime):
        return as_utc(current) == as_utc(new)
    return current == new


class EventStore:
    """Event persistence keyed by reference link URL."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_reference_url(self, url: str) -> Optional[Event]:
        return (
            self.db.query(Event)
            .join(EventReferenceLink, EventReferenceLink.event_id == Event.id)
            .filter(EventReferenceLink.url == url)
            .order_by(Event.id)
            .first()
        )

    def insert(self, fields: Dict[str, Any]) -> int:
        links = fields.get("reference_links", [])
        event = Event(**{k: v for k, v in fields.items() if k != "reference_links"})
        event.participants = event.participants or []
        event.reference_links = [
            EventReferenceLink(position=i, type=link["type"], url=link["url"], title=link.get("title"))
            for i, link in enumerate(links)
        ]
        self.db.add(event)
        self.db.flush()  # Flush to get ID without commit
        log.debug(f"Inserted event {event.id} '{event.title}'")
        return event.id

    def update_by_id(self, event_id: int, fields: Dict[str, Any]) -> bool:
        """
        Overwrite the given fields of an event. Values equal to the stored ones are
        left alone, so an identical overwrite emits no UPDATE.
        Returns True if anything changed.
        """
        event = self.db.get(Event, event_id)
        if event is None:
            raise LookupError(f"Event {event_id} not found")

        changed = False
        for key, value in fields.items():
            if key == "reference_links":
                continue
            if not _same_value(getattr(event, key), value):
                setattr(event, key, value)
                changed = True

        if "reference_links" in fields:
            current = [(l.type, l.url, l.title) for l in event.reference_links]
            wanted = [(l["type"], l["url"], l.get("title")) for l in fields["reference_links"]]
            if current != wanted:
                event.reference_links = [
                    EventReferenceLink(position=i, type=t, url=u, title=title)
                    for i, (t, u, title) in enumerate(wanted)
                ]
                changed = True

        if changed:
            self.db.flush()
            log.debug(f"Updated event {event_id}")
        return changed


class ProjectStore:
    """Project lookups and the project -> event id list."""

    def __init__(self, db: Session):
        self.db = db

    def event_ids(self, project_id: int) -> List[int]:
        rows = self.db.execute(
            select(project_events.c.event_id)
            .where(project_events.c.project_id == project_id)
            .order_by(project_events.c.id)
        )
        return [row.event_id for row in rows]

    def append_event_id(self, project_id: int, event_id: int) -> bool:
        """Push the event id onto the project's list if absent. Returns True if it was appended."""
        values = {"project_id": project_id, "event_id": event_id}
        dialect_insert = _UPSERT_INSERTS.get(self.db.get_bind().dialect.name)
        if dialect_insert is not None:
            stmt = dialect_insert(project_events).values(**values).on_conflict_do_nothing(
                index_elements=["project_id", "event_id"]
            )
            appended = self.db.execute(stmt).rowcount == 1
        else:
            present = self.db.execute(
                select(project_events.c.id).where(
                    project_events.c.project_id == project_id,
                    project_events.c.event_id == event_id,
                )
            ).first()
            appended = present is None
            if appended:
                self.db.execute(insert(project_events).values(**values))
        if appended:
            log.debug(f"Appended event {event_id} to project {project_id}")
        return appended


class ConfigStore:
    """External source configs as seen by the orchestrator."""

    def __init__(self, db: Session):
        self.db = db

    def find_active(self) -> List[ExternalSourceConfig]:
        return (
            self.db.query(ExternalSourceConfig)
            .filter(ExternalSourceConfig.is_active == True)  # noqa: E712
            .order_by(ExternalSourceConfig.id)
            .all()
        )

    def get(self, source_id: int) -> Optional[ExternalSourceConfig]:
        return self.db.get(ExternalSourceConfig, source_id)

    def mark_synced(self, config: ExternalSourceConfig, when: datetime) -> None:
        config.last_sync_at = when
        self.db.commit()
