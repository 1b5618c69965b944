from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class EventType(str, Enum):
    DURATION = "duration"
    ONE_TIME = "one-time"


class EventStatus(str, Enum):
    DONE = "done"
    ONGOING = "ongoing"
    NOT_YET = "notyet"


class ReferenceLinkType(str, Enum):
    JIRA = "jira"
    GITHUB = "github"
    CONFLUENCE = "confluence"
    OTHER = "other"


class ReferenceLink(BaseModel):
    type: ReferenceLinkType
    url: str = Field(..., min_length=1)
    title: Optional[str] = None

    class Config:
        from_attributes = True

