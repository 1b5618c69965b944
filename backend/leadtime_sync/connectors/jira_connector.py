import httpx
import logging
from typing import Dict, Any, List, Tuple

from leadtime_sync.connectors.base import BaseConnector, CandidateEvent
from leadtime_sync.exceptions import MalformedPayloadError
from leadtime_sync.services.normalizer import NormalizerService

log = logging.getLogger(__name__)


class JiraConnector(BaseConnector):
    """
    Source adapter for Jira (REST API v2).
    Pulls the issues of a Jira project key and normalizes them into duration events.
    """

    source_type = "jira"
    required_credentials = ("username", "token")

    def __init__(self, config: Dict[str, Any], client: httpx.AsyncClient = None):
        super().__init__(config, client)
        self.normalizer = NormalizerService()
        log.info(f"Jira connector initialized with base URL: {self.base_url}")

    def _auth_kwargs(self) -> Dict[str, Any]:
        return {"auth": (self.username or "", self.token or "")}

    async def fetch_issues(self, project_key: str) -> List[Dict[str, Any]]:
        """Fetches the issues of one Jira project."""
        data = await self._request("GET", f"{self.base_url}/rest/api/2/search?jql=project={project_key}")
        if not isinstance(data, dict) or not isinstance(data.get("issues"), list):
            raise MalformedPayloadError(f"Jira search for project {project_key} returned no 'issues' list")
        log.debug(f"Jira project {project_key}: {len(data['issues'])} issues")
        return data["issues"]

    async def fetch_and_normalize(self, external_id: str, project_id: int) -> List[Tuple[CandidateEvent, str]]:
        issues = await self.fetch_issues(external_id)
        return self._normalize_all(
            issues,
            lambda issue: self.normalizer.normalize_jira_issue(issue, project_id),
            external_id,
        )

    async def validate_connection(self) -> bool:
        """Validates the credentials by fetching the authenticated user."""
        try:
            await self._request("GET", f"{self.base_url}/rest/api/2/myself")
            return True
        except httpx.HTTPError:
            return False
