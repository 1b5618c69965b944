from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from leadtime_sync.database import get_db
from leadtime_sync.constants.sync_errors import explain_error
from leadtime_sync.exceptions import ConfigurationError, SyncInProgressError
from leadtime_sync.models.external_source import ExternalSourceConfig, ProjectMapping
from leadtime_sync.models.project import Project
from leadtime_sync.schemas.external_source import (
    ExternalSourceCreate,
    ExternalSourceUpdate,
    ExternalSourceInDB,
    ProjectMappingBase,
    ConnectionTestResult,
)
from leadtime_sync.schemas.sync import SyncResponse
from leadtime_sync.services.stores import ConfigStore
from leadtime_sync.services.sync_service import SyncService
from leadtime_sync.utils.encrypt import encrypt_data, encrypt_optional

log = logging.getLogger(__name__)
router = APIRouter()


def _get_source_or_404(db: Session, source_id: int) -> ExternalSourceConfig:
    db_source = ConfigStore(db).get(source_id)
    if db_source is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="External source configuration not found")
    return db_source


def _build_mappings(db: Session, mappings: List[ProjectMappingBase]) -> List[ProjectMapping]:
    """Validate that every mapping targets an existing project."""
    project_ids = {m.internal_project_id for m in mappings}
    found = {pid for (pid,) in db.query(Project.id).filter(Project.id.in_(project_ids))} if project_ids else set()
    missing = sorted(project_ids - found)
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown internal project id(s): {', '.join(str(m) for m in missing)}"
        )
    return [
        ProjectMapping(position=i, external_id=m.external_id, internal_project_id=m.internal_project_id)
        for i, m in enumerate(mappings)
    ]


@router.post("/", response_model=ExternalSourceInDB, status_code=status.HTTP_201_CREATED)
async def create_external_source(source: ExternalSourceCreate, db: Session = Depends(get_db)):
    """Create a new external source configuration."""
    db_source = ExternalSourceConfig(
        name=source.name,
        type=source.type.value,
        base_url=str(source.base_url).rstrip("/"),
        username=source.username,
        token=encrypt_data(source.token),
        api_key=encrypt_optional(source.api_key),
        is_active=source.is_active,
        sync_frequency=source.sync_frequency,
        project_mappings=_build_mappings(db, source.project_mappings),
    )
    db.add(db_source)
    db.commit()
    db.refresh(db_source)
    log.info(f"Created external source '{db_source.name}' ({db_source.type}, id: {db_source.id})")
    return db_source


@router.get("/", response_model=List[ExternalSourceInDB])
async def read_external_sources(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    """Retrieve external source configurations (credentials projected out)."""
    return db.query(ExternalSourceConfig).order_by(ExternalSourceConfig.id).offset(skip).limit(limit).all()


@router.post("/sync-all", response_model=SyncResponse)
async def trigger_all_sync(db: Session = Depends(get_db)):
    """Run a sync pass over every active external source."""
    summary = await SyncService(db).sync_all(trigger_type='manual')
    failed = summary["failed_sources"]
    return SyncResponse(
        status="failed" if failed else "success",
        message=f"Synced {summary['sources'] - failed} of {summary['sources']} source(s)",
        num_sources=summary["sources"],
        num_failed_sources=failed,
        num_created=summary["created"],
        num_updated=summary["updated"],
        num_unchanged=summary["unchanged"] + summary["skipped"],
        num_failed_records=summary["records_failed"],
        num_failed_mappings=summary["mappings_failed"],
        error_detail=f"{failed} source(s) failed, see sync run history" if failed else None
    )


@router.get("/{source_id}", response_model=ExternalSourceInDB)
async def read_external_source(source_id: int, db: Session = Depends(get_db)):
    """Retrieve a single external source configuration by ID."""
    return _get_source_or_404(db, source_id)


@router.put("/{source_id}", response_model=ExternalSourceInDB)
async def update_external_source(source_id: int, source: ExternalSourceUpdate, db: Session = Depends(get_db)):
    """Update an existing external source configuration."""
    db_source = _get_source_or_404(db, source_id)

    update_data = source.model_dump(exclude_unset=True, exclude={"project_mappings"})
    if update_data.get("token"):
        update_data["token"] = encrypt_data(update_data["token"])
    else:
        update_data.pop("token", None)
    if "api_key" in update_data:
        update_data["api_key"] = encrypt_optional(update_data["api_key"])
    if update_data.get("base_url"):
        update_data["base_url"] = str(update_data["base_url"]).rstrip("/")
    if update_data.get("type"):
        update_data["type"] = update_data["type"].value

    for key, value in update_data.items():
        setattr(db_source, key, value)
    if source.project_mappings is not None:
        new_mappings = _build_mappings(db, source.project_mappings)
        # Old rows must be gone before re-inserting the same (external_id, project) pairs
        db_source.project_mappings = []
        db.flush()
        db_source.project_mappings = new_mappings

    db.commit()
    db.refresh(db_source)
    return db_source


@router.delete("/{source_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_external_source(source_id: int, db: Session = Depends(get_db)):
    """Delete an external source configuration. Synced events are kept."""
    db_source = _get_source_or_404(db, source_id)
    db.delete(db_source)
    db.commit()
    return


@router.post("/{source_id}/test", response_model=ConnectionTestResult)
async def test_external_source_connection(source_id: int, db: Session = Depends(get_db)):
    """Probe the external API with the stored credentials."""
    db_source = _get_source_or_404(db, source_id)
    connector = None
    try:
        connector = SyncService(db).build_connector(db_source)
        connector.validate_credentials()
        if await connector.validate_connection():
            return ConnectionTestResult(valid=True, message="Connection successful!")
        return ConnectionTestResult(valid=False, message="Connection failed. Check credentials or URL.")
    except ConfigurationError as e:
        return ConnectionTestResult(valid=False, message=f"Validation error: {e}")
    finally:
        if connector is not None:
            await connector.aclose()


@router.post("/{source_id}/sync", response_model=SyncResponse)
async def trigger_sync(source_id: int, db: Session = Depends(get_db)):
    """Run a sync pass over a single external source."""
    db_source = _get_source_or_404(db, source_id)
    try:
        stats = await SyncService(db).sync_one(db_source, trigger_type='manual')
    except SyncInProgressError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        return SyncResponse(
            status="failed",
            message="Sync failed",
            num_sources=1,
            num_failed_sources=1,
            error_detail=explain_error(e)
        )

    return SyncResponse(
        status="success",
        message=f"Successfully synced {stats['created']} new and {stats['updated']} updated event(s)",
        num_sources=1,
        num_created=stats["created"],
        num_updated=stats["updated"],
        num_unchanged=stats["unchanged"] + stats["skipped"],
        num_failed_records=stats["records_failed"],
        num_failed_mappings=stats["mappings_failed"]
    )
