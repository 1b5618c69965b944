from typing import Dict, Optional
from enum import Enum

from leadtime_sync.connectors.base import CandidateEvent, RecordKind, as_utc
from leadtime_sync.models.event import Event
from leadtime_sync.services.stores import EventStore, ProjectStore
import logging

log = logging.getLogger(__name__)


class ReconcileOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"  # overwritten with identical values
    SKIPPED = "skipped"  # existing event kept as is


class UpdatePolicy(str, Enum):
    REPLACE = "replace"  # last fetched wins
    IMMUTABLE = "immutable"  # never rewritten once recorded
    NEWER_ONLY = "newer_only"  # rewritten only for a strictly later start date


UPDATE_POLICIES: Dict[RecordKind, UpdatePolicy] = {
    RecordKind.JIRA_ISSUE: UpdatePolicy.REPLACE,
    RecordKind.GITHUB_ISSUE: UpdatePolicy.REPLACE,
    RecordKind.GITHUB_COMMIT: UpdatePolicy.IMMUTABLE,
    RecordKind.CONFLUENCE_PAGE: UpdatePolicy.NEWER_ONLY,
}


class ReconciliationService:
    """
    Decides whether a candidate event is new, changed or stale against the event store.

    The reconciliation key is the URL of the candidate's single reference link. A
    candidate with no stored event is inserted and appended to its project; an
    existing event is handled according to the update policy of the record kind.
    """

    def __init__(self, event_store: EventStore, project_store: ProjectStore):
        self.event_store = event_store
        self.project_store = project_store

    def reconcile(self, candidate: CandidateEvent, key: Optional[str] = None) -> ReconcileOutcome:
        key = key or candidate.reconciliation_key
        existing = self.event_store.find_by_reference_url(key)

        if existing is None:
            event_id = self.event_store.insert(candidate.event_fields())
            self.project_store.append_event_id(candidate.project_id, event_id)
            log.debug(f"Created event {event_id} for {key}")
            return ReconcileOutcome.CREATED

        policy = UPDATE_POLICIES[candidate.kind]
        if policy is UpdatePolicy.IMMUTABLE:
            log.trace(f"Event {existing.id} for {key} is immutable, skipping")
            return ReconcileOutcome.SKIPPED

        if policy is UpdatePolicy.NEWER_ONLY and not self._is_newer(candidate, existing):
            log.trace(f"Event {existing.id} for {key} is up to date, skipping")
            return ReconcileOutcome.SKIPPED

        return self._replace(existing, candidate, key)

    @staticmethod
    def _is_newer(candidate: CandidateEvent, existing: Event) -> bool:
        return as_utc(candidate.start_date) > as_utc(existing.start_date)

    def _replace(self, existing: Event, candidate: CandidateEvent, key: str) -> ReconcileOutcome:
        previous_project_id = existing.project_id
        changed = self.event_store.update_by_id(existing.id, candidate.event_fields())
        if candidate.project_id != previous_project_id:
            self.project_store.append_event_id(candidate.project_id, existing.id)
        if changed:
            log.debug(f"Updated event {existing.id} for {key}")
            return ReconcileOutcome.UPDATED
        return ReconcileOutcome.UNCHANGED
