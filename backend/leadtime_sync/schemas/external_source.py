from enum import Enum
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, HttpUrl


class SourceType(str, Enum):
    JIRA = "jira"
    GITHUB = "github"
    CONFLUENCE = "confluence"


class ProjectMappingBase(BaseModel):
    external_id: str = Field(..., min_length=1)  # Jira key, 'owner/repo' or Confluence space key
    internal_project_id: int


class ProjectMappingInDB(ProjectMappingBase):
    id: int

    class Config:
        from_attributes = True


class ExternalSourceBase(BaseModel):
    name: str
    type: SourceType
    base_url: HttpUrl
    username: Optional[str] = None
    is_active: bool = True
    sync_frequency: int = Field(24, gt=0, description="Advisory sync frequency in hours")


class ExternalSourceCreate(ExternalSourceBase):
    token: str  # Encrypted before storage
    api_key: Optional[str] = None  # Encrypted before storage
    project_mappings: List[ProjectMappingBase] = []


class ExternalSourceUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[SourceType] = None
    base_url: Optional[HttpUrl] = None
    username: Optional[str] = None
    token: Optional[str] = None
    api_key: Optional[str] = None
    is_active: Optional[bool] = None
    sync_frequency: Optional[int] = Field(None, gt=0)
    project_mappings: Optional[List[ProjectMappingBase]] = None


class ExternalSourceInDB(ExternalSourceBase):
    """Read model. Token and API key are never part of it."""
    id: int
    base_url: str
    last_sync_at: Optional[datetime] = None
    project_mappings: List[ProjectMappingInDB] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ConnectionTestResult(BaseModel):
    valid: bool
    message: str
