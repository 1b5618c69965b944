import httpx
import logging
from typing import Dict, Any, List, Tuple

from leadtime_sync.connectors.base import BaseConnector, CandidateEvent
from leadtime_sync.exceptions import MalformedPayloadError
from leadtime_sync.services.normalizer import NormalizerService

log = logging.getLogger(__name__)


class ConfluenceConnector(BaseConnector):
    """
    Source adapter for Confluence (REST content API).
    Pulls the content of a space and normalizes each page into a one-time event.
    """

    source_type = "confluence"
    required_credentials = ("username", "token")

    def __init__(self, config: Dict[str, Any], client: httpx.AsyncClient = None):
        super().__init__(config, client)
        self.normalizer = NormalizerService()
        log.info(f"Confluence connector initialized with base URL: {self.base_url}")

    def _auth_kwargs(self) -> Dict[str, Any]:
        return {"auth": (self.username or "", self.token or "")}

    async def fetch_content(self, space_key: str) -> Dict[str, Any]:
        """Fetches the content listing of one space."""
        data = await self._request("GET", f"{self.base_url}/wiki/rest/api/content?spaceKey={space_key}")
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            raise MalformedPayloadError(f"Confluence content for space {space_key} returned no 'results' list")
        return data

    async def fetch_and_normalize(self, external_id: str, project_id: int) -> List[Tuple[CandidateEvent, str]]:
        data = await self.fetch_content(external_id)
        default_base = (data.get("_links") or {}).get("base") or f"{self.base_url}/wiki"
        log.debug(f"Confluence space {external_id}: {len(data['results'])} pages")
        return self._normalize_all(
            data["results"],
            lambda page: self.normalizer.normalize_confluence_page(page, project_id, default_base),
            external_id,
        )

    async def validate_connection(self) -> bool:
        """Validates the credentials by listing a single space."""
        try:
            await self._request("GET", f"{self.base_url}/wiki/rest/api/space", params={"limit": 1})
            return True
        except httpx.HTTPError:
            return False
