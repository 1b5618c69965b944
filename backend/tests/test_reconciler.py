from datetime import datetime, timezone

import pytest

from leadtime_sync.connectors.base import CandidateEvent, RecordKind
from leadtime_sync.models.event import Event
from leadtime_sync.models.project import Project
from leadtime_sync.schemas.event import EventStatus, EventType, ReferenceLink, ReferenceLinkType
from leadtime_sync.services.reconciler import ReconcileOutcome, ReconciliationService
from leadtime_sync.services.stores import EventStore, ProjectStore


def _candidate(kind=RecordKind.JIRA_ISSUE, url="https://x/issue/PROJ/1", project_id=1, **overrides) -> CandidateEvent:
    fields = dict(
        kind=kind,
        title="Fix bug",
        type=EventType.DURATION,
        status=EventStatus.ONGOING,
        start_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        reference_links=[ReferenceLink(type=ReferenceLinkType.JIRA, url=url, title="PROJ-1")],
        project_id=project_id,
    )
    fields.update(overrides)
    return CandidateEvent(**fields)


@pytest.fixture
def stores(db):
    return EventStore(db), ProjectStore(db)


@pytest.fixture
def reconciler(stores):
    return ReconciliationService(*stores)


def _reconcile(db, reconciler, candidate):
    outcome = reconciler.reconcile(candidate)
    db.commit()
    return outcome


def test_insert_appends_to_project(db, reconciler, stores, project):
    outcome = _reconcile(db, reconciler, _candidate(project_id=project.id))
    assert outcome == ReconcileOutcome.CREATED

    event_store, project_store = stores
    event = event_store.find_by_reference_url("https://x/issue/PROJ/1")
    assert event.title == "Fix bug"
    assert event.type == "duration"
    assert event.participants == []
    assert project_store.event_ids(project.id) == [event.id]


def test_reconcile_is_idempotent(db, reconciler, stores, project):
    candidate = _candidate(project_id=project.id)
    assert _reconcile(db, reconciler, candidate) == ReconcileOutcome.CREATED
    assert _reconcile(db, reconciler, candidate) == ReconcileOutcome.UNCHANGED

    assert db.query(Event).count() == 1
    event_store, project_store = stores
    event = event_store.find_by_reference_url(candidate.reconciliation_key)
    assert project_store.event_ids(project.id) == [event.id]


def test_replace_overwrites_fields(db, reconciler, stores, project):
    _reconcile(db, reconciler, _candidate(project_id=project.id))
    done = _candidate(
        project_id=project.id,
        title="Fix bug (renamed)",
        status=EventStatus.DONE,
        end_date=datetime(2024, 1, 3, tzinfo=timezone.utc),
    )
    assert _reconcile(db, reconciler, done) == ReconcileOutcome.UPDATED

    event = stores[0].find_by_reference_url(done.reconciliation_key)
    assert event.title == "Fix bug (renamed)"
    assert event.status == "done"
    assert event.end_date is not None
    assert db.query(Event).count() == 1


def test_replace_keeps_participants(db, reconciler, stores, project):
    _reconcile(db, reconciler, _candidate(project_id=project.id))
    event = stores[0].find_by_reference_url("https://x/issue/PROJ/1")
    event.participants = [4, 5]
    event.actual_hours = 3.5
    db.commit()

    _reconcile(db, reconciler, _candidate(project_id=project.id, title="New title"))
    db.refresh(event)
    assert event.participants == [4, 5]
    assert event.actual_hours == 3.5


def test_project_change_appends_to_new_project(db, reconciler, stores, project):
    other = Project(name="Other")
    db.add(other)
    db.commit()

    _reconcile(db, reconciler, _candidate(project_id=project.id))
    assert _reconcile(db, reconciler, _candidate(project_id=other.id)) == ReconcileOutcome.UPDATED

    event = stores[0].find_by_reference_url("https://x/issue/PROJ/1")
    project_store = stores[1]
    assert event.project_id == other.id
    assert project_store.event_ids(other.id) == [event.id]
    assert project_store.event_ids(project.id) == [event.id]


def test_commit_is_immutable(db, reconciler, stores, project):
    url = "https://github.com/acme/app/commit/abc"
    original = _candidate(kind=RecordKind.GITHUB_COMMIT, url=url, project_id=project.id, title="Commit: Init",
                          type=EventType.ONE_TIME, status=EventStatus.DONE)
    assert _reconcile(db, reconciler, original) == ReconcileOutcome.CREATED

    rewritten = original.model_copy(update={"title": "Commit: Rewritten"})
    assert _reconcile(db, reconciler, rewritten) == ReconcileOutcome.SKIPPED
    assert stores[0].find_by_reference_url(url).title == "Commit: Init"


@pytest.mark.parametrize("day,expected", [
    (1, ReconcileOutcome.SKIPPED),
    (2, ReconcileOutcome.SKIPPED),
    (3, ReconcileOutcome.UPDATED),
])
def test_confluence_page_only_moves_forward(db, reconciler, stores, project, day, expected):
    url = "https://wiki/spaces/OPS/pages/1"

    def page(day_of_month, title):
        return _candidate(kind=RecordKind.CONFLUENCE_PAGE, url=url, project_id=project.id, title=title,
                          type=EventType.ONE_TIME, status=EventStatus.DONE,
                          start_date=datetime(2024, 1, day_of_month, tzinfo=timezone.utc))

    _reconcile(db, reconciler, page(2, "Page: v2"))
    assert _reconcile(db, reconciler, page(day, f"Page: day {day}")) == expected

    event = stores[0].find_by_reference_url(url)
    if expected == ReconcileOutcome.UPDATED:
        assert event.title == f"Page: day {day}"
        assert event.start_date.day == day
    else:
        assert event.title == "Page: v2"


def test_append_event_id_is_push_if_absent(db, stores, project):
    _, project_store = stores
    assert project_store.append_event_id(project.id, 10) is True
    assert project_store.append_event_id(project.id, 10) is False
    assert project_store.append_event_id(project.id, 11) is True
    db.commit()
    assert project_store.event_ids(project.id) == [10, 11]
