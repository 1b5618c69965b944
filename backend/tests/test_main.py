import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient

from leadtime_sync.connectors.jira_connector import JiraConnector
from leadtime_sync.exceptions import ConfigurationError, SyncInProgressError
from leadtime_sync.models.external_source import ExternalSourceConfig
from leadtime_sync.models.sync_run import SyncRun
from leadtime_sync.services.sync_service import SyncService, _new_stats, utcnow
from leadtime_sync.utils.encrypt import decrypt_data


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


def test_root(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Lead Time External Source Sync API"


def _source_payload(project_id: int, **overrides) -> dict:
    payload = {
        "name": "Company Jira",
        "type": "jira",
        "base_url": "https://jira.example.com/",
        "username": "bot",
        "token": "super-secret",
        "project_mappings": [{"external_id": "PROJ", "internal_project_id": project_id}],
    }
    payload.update(overrides)
    return payload


def test_create_source_hides_credentials(client: TestClient, db, project):
    response = client.post("/api/v1/external-sources/", json=_source_payload(project.id, api_key="k"))
    assert response.status_code == 201
    data = response.json()
    assert data["base_url"] == "https://jira.example.com"
    assert data["username"] == "bot"
    assert data["last_sync_at"] is None
    assert data["project_mappings"][0]["external_id"] == "PROJ"
    assert "token" not in data
    assert "api_key" not in data

    listing = client.get("/api/v1/external-sources/").json()
    assert len(listing) == 1
    assert "token" not in listing[0]

    stored = db.get(ExternalSourceConfig, data["id"])
    assert stored.token != "super-secret"
    assert decrypt_data(stored.token) == "super-secret"


def test_create_source_rejects_unknown_project(client: TestClient, project):
    response = client.post("/api/v1/external-sources/", json=_source_payload(project.id + 100))
    assert response.status_code == 400
    assert "Unknown internal project" in response.json()["detail"]


def test_update_source_replaces_mappings(client: TestClient, project):
    created = client.post("/api/v1/external-sources/", json=_source_payload(project.id)).json()
    response = client.put(
        f"/api/v1/external-sources/{created['id']}",
        json={
            "is_active": False,
            "project_mappings": [
                {"external_id": "PROJ", "internal_project_id": project.id},
                {"external_id": "OPS", "internal_project_id": project.id},
            ],
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["is_active"] is False
    assert [m["external_id"] for m in data["project_mappings"]] == ["PROJ", "OPS"]


def test_missing_source_returns_404(client: TestClient):
    assert client.get("/api/v1/external-sources/999").status_code == 404
    assert client.post("/api/v1/external-sources/999/sync").status_code == 404


def test_delete_source(client: TestClient, make_source):
    source = make_source()
    assert client.delete(f"/api/v1/external-sources/{source.id}").status_code == 204
    assert client.get(f"/api/v1/external-sources/{source.id}").status_code == 404


def test_trigger_sync_reports_counts(client: TestClient, make_source):
    source = make_source()
    stats = {**_new_stats(), "records_fetched": 3, "created": 2, "unchanged": 1}
    with patch.object(SyncService, "sync_one", new_callable=AsyncMock) as mock_sync:
        mock_sync.return_value = stats
        response = client.post(f"/api/v1/external-sources/{source.id}/sync")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "success"
    assert data["num_created"] == 2
    assert data["num_unchanged"] == 1
    mock_sync.assert_awaited_once()


def test_trigger_sync_fatal_failure(client: TestClient, make_source):
    source = make_source()
    with patch.object(SyncService, "sync_one", new_callable=AsyncMock) as mock_sync:
        mock_sync.side_effect = ConfigurationError("Unknown external source type: bogus")
        response = client.post(f"/api/v1/external-sources/{source.id}/sync")

    data = response.json()
    assert data["status"] == "failed"
    assert data["num_failed_sources"] == 1
    assert "bogus" in data["error_detail"]


def test_trigger_sync_conflict_when_running(client: TestClient, make_source):
    source = make_source()
    with patch.object(SyncService, "sync_one", new_callable=AsyncMock) as mock_sync:
        mock_sync.side_effect = SyncInProgressError(source.id)
        response = client.post(f"/api/v1/external-sources/{source.id}/sync")
    assert response.status_code == 409


def test_sync_all_without_sources(client: TestClient):
    response = client.post("/api/v1/external-sources/sync-all")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "success"
    assert data["num_sources"] == 0


def test_connection_test(client: TestClient, make_source):
    source = make_source()
    with patch.object(JiraConnector, "validate_connection", new_callable=AsyncMock) as mock_validate:
        mock_validate.return_value = True
        response = client.post(f"/api/v1/external-sources/{source.id}/test")
    assert response.json()["valid"] is True


def test_connection_test_missing_credential(client: TestClient, make_source):
    source = make_source(username=None)
    response = client.post(f"/api/v1/external-sources/{source.id}/test")
    data = response.json()
    assert data["valid"] is False
    assert "username" in data["message"]


def test_sync_runs_listing(client: TestClient, db, make_source):
    source = make_source()
    db.add(SyncRun(source_id=source.id, source_name=source.name, trigger_type="manual", start_time=utcnow(), status="completed"))
    db.add(SyncRun(source_id=source.id, source_name=source.name, trigger_type="scheduled", start_time=utcnow(), status="failed"))
    db.commit()

    data = client.get("/api/v1/sync/runs").json()
    assert data["total"] == 2

    failed = client.get("/api/v1/sync/runs", params={"status": "failed"}).json()
    assert failed["total"] == 1
    assert failed["data"][0]["trigger_type"] == "scheduled"


def test_schedule_info(client: TestClient):
    data = client.get("/api/v1/schedule/").json()
    assert data["cron"] == "0 0 * * *"
    assert data["timezone"] == "UTC"
    assert data["enabled"] is False
    assert data["next_runs"] == []
