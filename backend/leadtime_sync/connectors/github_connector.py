import httpx
import logging
from typing import Awaitable, Callable, Dict, Any, List, Tuple

from leadtime_sync.connectors.base import BaseConnector, Candidates
from leadtime_sync.exceptions import ConfigurationError, MalformedPayloadError
from leadtime_sync.services.normalizer import NormalizerService

log = logging.getLogger(__name__)


class GitHubConnector(BaseConnector):
    """
    Source adapter for GitHub (REST API).
    Each mapping ("owner/repo") yields two record streams: issues and commits.
    """

    source_type = "github"
    required_credentials = ("token",)

    def __init__(self, config: Dict[str, Any], client: httpx.AsyncClient = None):
        super().__init__(config, client)
        self.normalizer = NormalizerService()
        log.info(f"GitHub connector initialized with base URL: {self.base_url}")

    def _auth_kwargs(self) -> Dict[str, Any]:
        return {"headers": {"Authorization": f"token {self.token}"}}

    @staticmethod
    def split_repo(external_id: str) -> Tuple[str, str]:
        parts = external_id.split("/")
        if len(parts) != 2 or not all(parts):
            raise ConfigurationError(f"GitHub mapping '{external_id}' is not of the form owner/repo")
        return parts[0], parts[1]

    async def _fetch_list(self, path: str) -> List[Dict[str, Any]]:
        data = await self._request("GET", f"{self.base_url}{path}")
        if not isinstance(data, list):
            raise MalformedPayloadError(f"GitHub {path} did not return a list")
        return data

    async def fetch_issues(self, owner: str, repo: str) -> List[Dict[str, Any]]:
        return await self._fetch_list(f"/repos/{owner}/{repo}/issues")

    async def fetch_commits(self, owner: str, repo: str) -> List[Dict[str, Any]]:
        return await self._fetch_list(f"/repos/{owner}/{repo}/commits")

    async def fetch_issue_candidates(self, owner: str, repo: str, project_id: int) -> Candidates:
        issues = await self.fetch_issues(owner, repo)
        log.debug(f"GitHub repo {owner}/{repo}: {len(issues)} issues")
        return self._normalize_all(
            issues,
            lambda issue: self.normalizer.normalize_github_issue(issue, project_id),
            f"{owner}/{repo}",
        )

    async def fetch_commit_candidates(self, owner: str, repo: str, project_id: int) -> Candidates:
        # Empty repositories answer 409 here
        commits = await self.fetch_commits(owner, repo)
        log.debug(f"GitHub repo {owner}/{repo}: {len(commits)} commits")
        return self._normalize_all(
            commits,
            lambda commit: self.normalizer.normalize_github_commit(commit, project_id),
            f"{owner}/{repo}",
        )

    def record_streams(self, external_id: str, project_id: int) -> List[Callable[[], Awaitable[Candidates]]]:
        """Issues first, then commits; issues are kept when the commits request fails."""
        owner, repo = self.split_repo(external_id)
        return [
            lambda: self.fetch_issue_candidates(owner, repo, project_id),
            lambda: self.fetch_commit_candidates(owner, repo, project_id),
        ]

    async def fetch_and_normalize(self, external_id: str, project_id: int) -> Candidates:
        candidates = []
        for fetch in self.record_streams(external_id, project_id):
            candidates.extend(await fetch())
        return candidates

    async def validate_connection(self) -> bool:
        """Validates the token by fetching the authenticated user."""
        try:
            await self._request("GET", f"{self.base_url}/user")
            return True
        except httpx.HTTPError:
            return False
