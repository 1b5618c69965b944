import os

from cryptography.fernet import Fernet

# Settings are read at import time; point them at an in-memory database first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENCRYPTION_KEY"] = Fernet.generate_key().decode()
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["HONOR_SYNC_FREQUENCY"] = "false"

from typing import Callable, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from leadtime_sync.database import Base, SessionLocal, engine, get_db
from leadtime_sync.main import app
from leadtime_sync.models.external_source import ExternalSourceConfig, ProjectMapping
from leadtime_sync.models.project import Project
from leadtime_sync.utils.encrypt import encrypt_data


@pytest.fixture
def db() -> Session:
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    # Override dependency so requests share the test session
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def project(db: Session) -> Project:
    project = Project(name="Platform")
    db.add(project)
    db.commit()
    return project


@pytest.fixture
def make_source(db: Session) -> Callable[..., ExternalSourceConfig]:
    def _make_source(
        source_type: str = "jira",
        external_ids: Optional[List[str]] = None,
        project_id: Optional[int] = None,
        name: Optional[str] = None,
        base_url: str = "https://x",
        username: Optional[str] = "bot",
        token: Optional[str] = "secret-token",
        is_active: bool = True,
        sync_frequency: int = 24,
    ) -> ExternalSourceConfig:
        if project_id is None:
            project = Project(name=f"Project for {name or source_type}")
            db.add(project)
            db.flush()
            project_id = project.id
        source = ExternalSourceConfig(
            name=name or f"{source_type} source",
            type=source_type,
            base_url=base_url,
            username=username,
            token=encrypt_data(token) if token else "",
            is_active=is_active,
            sync_frequency=sync_frequency,
            project_mappings=[
                ProjectMapping(position=i, external_id=external_id, internal_project_id=project_id)
                for i, external_id in enumerate(external_ids or ["PROJ"])
            ],
        )
        db.add(source)
        db.commit()
        return source

    return _make_source


def mock_client(handler) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by `handler(request) -> httpx.Response`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def jira_issue(key: str, summary: str = "Fix bug", status: str = "In Progress", base: str = "https://x") -> dict:
    number = key.split("-")[-1]
    return {
        "key": key,
        "self": f"{base}/issue/{key.split('-')[0]}/{number}",
        "fields": {
            "summary": summary,
            "status": {"name": status},
            "created": "2024-01-01T00:00:00Z",
        },
    }
