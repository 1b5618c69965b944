import httpx
import logging
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Awaitable, Callable, Dict, Any, List, Optional, Tuple
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from leadtime_sync.exceptions import ConfigurationError
from leadtime_sync.schemas.event import EventType, EventStatus, ReferenceLink

log = logging.getLogger(__name__)

# fromisoformat before 3.11 only takes 3 or 6 fractional digits
_FRACTION = re.compile(r"\.(\d+)")


class RecordKind(str, Enum):
    """Kind of external record a candidate was built from; selects the update policy."""
    JIRA_ISSUE = "jira_issue"
    GITHUB_ISSUE = "github_issue"
    GITHUB_COMMIT = "github_commit"
    CONFLUENCE_PAGE = "confluence_page"


class CandidateEvent(BaseModel):
    """Normalized, not-yet-persisted event built from one external record."""
    kind: RecordKind = Field(..., description="Kind of external record")
    title: str = Field(..., description="Event title")
    description: Optional[str] = Field(None, description="Free-text description")
    type: EventType = Field(..., description="'duration' or 'one-time'")
    status: EventStatus = Field(..., description="'done', 'ongoing' or 'notyet'")
    start_date: datetime = Field(..., description="Start of the activity (UTC)")
    end_date: Optional[datetime] = Field(None, description="End of the activity (UTC)")
    reference_links: List[ReferenceLink] = Field(..., description="Exactly one link to the external record")
    project_id: int = Field(..., description="Internal project owning the event")

    @field_validator("reference_links")
    @classmethod
    def exactly_one_link(cls, v: List[ReferenceLink]) -> List[ReferenceLink]:
        if len(v) != 1:
            raise ValueError(f"Synced events carry exactly one reference link, got {len(v)}")
        return v

    @property
    def reconciliation_key(self) -> str:
        return self.reference_links[0].url

    def event_fields(self) -> Dict[str, Any]:
        """Columns written to the event store on insert or full replace."""
        return {
            "title": self.title,
            "description": self.description,
            "type": self.type.value,
            "status": self.status.value,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "project_id": self.project_id,
            "reference_links": [link.model_dump(mode="json") for link in self.reference_links],
        }


# (candidate, reconciliation key) pairs in API order
Candidates = List[Tuple[CandidateEvent, str]]


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp from an external API into an aware UTC datetime.

    Accepts 'Z', '+00:00' and Jira's '+0000' offsets.
    """
    text = value.strip().replace("Z", "+00:00")
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    # Jira: 2024-01-01T00:00:00.000+0000
    if len(text) > 5 and text[-5] in "+-" and text[-4:].isdigit():
        text = f"{text[:-2]}:{text[-2:]}"
    return as_utc(datetime.fromisoformat(text))


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Aware UTC datetime; naive values (as read back from SQLite) are taken to be UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class BaseConnector(ABC):
    """Abstract Base Class for all source adapters."""

    source_type: str = ""
    required_credentials: Tuple[str, ...] = ("token",)

    def __init__(self, config: Dict[str, Any], client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.name = self.config.get("name") or self.source_type
        self.base_url = str(self.config["base_url"]).rstrip("/")
        self.username = self.config.get("username")
        self.token = self.config.get("token")
        self.api_key = self.config.get("api_key")
        self.timeout = self.config.get("timeout", 30)
        self.malformed_records = 0
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=self.timeout)

    def validate_credentials(self) -> None:
        """Raises ConfigurationError when a credential this source needs is missing."""
        missing = [field for field in self.required_credentials if not self.config.get(field)]
        if missing:
            raise ConfigurationError(
                f"{self.source_type} source '{self.name}' is missing required credential(s): {', '.join(missing)}"
            )

    def _auth_kwargs(self) -> Dict[str, Any]:
        """Per-request authentication (basic auth or headers)."""
        return {}

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        """Helper to make authenticated requests to the external API."""
        try:
            log.trace(f"{self.source_type} API {method} {url}")
            response = await self.client.request(method, url, timeout=self.timeout, **self._auth_kwargs(), **kwargs)
            log.trace(f"{self.source_type} API response for {url}: {response.status_code}")
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            log.error(f"HTTP error for {e.request.url}: {e.response.status_code}")
            raise
        except httpx.RequestError as e:
            log.error(f"Request error for {e.request.url}: {e}")
            raise

    def _normalize_all(self, records: List[Dict[str, Any]], normalize, external_id: str) -> List[Tuple[CandidateEvent, str]]:
        """Normalize records in API order, skipping (and counting) malformed ones."""
        candidates = []
        for record in records:
            try:
                candidate = normalize(record)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                self.malformed_records += 1
                log.warning(f"Skipping malformed {self.source_type} record from '{self.name}' mapping {external_id}: {e!r}")
                continue
            candidates.append((candidate, candidate.reconciliation_key))
        return candidates

    def record_streams(self, external_id: str, project_id: int) -> List[Callable[[], Awaitable[Candidates]]]:
        """
        Fetch steps for one project mapping, reconciled in order. Records from a step
        are stored before the next step is requested.
        """
        return [lambda: self.fetch_and_normalize(external_id, project_id)]

    @abstractmethod
    async def fetch_and_normalize(self, external_id: str, project_id: int) -> List[Tuple[CandidateEvent, str]]:
        """Fetches records for one project mapping and normalizes them into (candidate, reconciliation key) pairs."""
        pass

    @abstractmethod
    async def validate_connection(self) -> bool:
        """Validates the connection to the external system."""
        pass

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
