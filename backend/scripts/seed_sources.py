#!/usr/bin/env python
"""
Seed script for creating a demo project and demo Jira / GitHub / Confluence sources.
Run with: cd backend; python scripts/seed_sources.py
Requires DATABASE_URL and ENCRYPTION_KEY in .env.
"""

import os
import sys

# Add package to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from leadtime_sync.database import SessionLocal
from leadtime_sync.models.external_source import ExternalSourceConfig, ProjectMapping
from leadtime_sync.models.project import Project
from leadtime_sync.utils.encrypt import encrypt_data

DEMO_SOURCES = [
    {
        "name": "Demo Jira",
        "type": "jira",
        "base_url": "https://jira.example.com",
        "username": "sync-bot@example.com",
        "token": "demo-jira-token",
        "external_id": "DEMO",
    },
    {
        "name": "Demo GitHub",
        "type": "github",
        "base_url": "https://api.github.com",
        "username": None,
        "token": "demo-github-token",
        "external_id": "example/demo",
    },
    {
        "name": "Demo Confluence",
        "type": "confluence",
        "base_url": "https://example.atlassian.net",
        "username": "sync-bot@example.com",
        "token": "demo-confluence-token",
        "external_id": "DEMO",
    },
]


def seed_sources():
    db = SessionLocal()
    try:
        if db.query(ExternalSourceConfig).count():
            print("External sources already exist. Skipping seed.")
            return

        project = db.query(Project).filter(Project.name == "Demo Project").first()
        if not project:
            project = Project(name="Demo Project", description="Target of the demo external sources")
            db.add(project)
            db.flush()
            print(f"Created demo project: {project.name} (ID: {project.id})")

        for demo in DEMO_SOURCES:
            source = ExternalSourceConfig(
                name=demo["name"],
                type=demo["type"],
                base_url=demo["base_url"],
                username=demo["username"],
                token=encrypt_data(demo["token"]),
                is_active=False,  # activate once real credentials are set
                sync_frequency=24,
                project_mappings=[ProjectMapping(position=0, external_id=demo["external_id"], internal_project_id=project.id)],
            )
            db.add(source)
            print(f"Created demo {demo['type']} source: {source.name}")

        db.commit()
        print("\nDemo sources seeded successfully (inactive)!")
        print("Next steps:")
        print("1. Update base_url and tokens via PUT /api/v1/external-sources/{id}")
        print("2. Test connections with POST /api/v1/external-sources/{id}/test")
        print("3. Activate the sources and run POST /api/v1/external-sources/sync-all")

    except Exception as e:
        db.rollback()
        print(f"Error seeding sources: {e}")
    finally:
        db.close()


if __name__ == '__main__':
    seed_sources()
