import base64

import httpx
import pytest

from leadtime_sync.connectors.confluence_connector import ConfluenceConnector
from leadtime_sync.connectors.github_connector import GitHubConnector
from leadtime_sync.connectors.jira_connector import JiraConnector
from leadtime_sync.connectors.registry import get_connector_class
from leadtime_sync.exceptions import ConfigurationError, MalformedPayloadError

from conftest import jira_issue, mock_client


def _basic(username: str, token: str) -> str:
    return "Basic " + base64.b64encode(f"{username}:{token}".encode()).decode()


def _config(**overrides):
    config = {"name": "test", "base_url": "https://x/", "username": "bot", "token": "t0k"}
    config.update(overrides)
    return config


def test_registry_resolves_types():
    assert get_connector_class("jira") is JiraConnector
    assert get_connector_class("github") is GitHubConnector
    assert get_connector_class("confluence") is ConfluenceConnector
    with pytest.raises(ConfigurationError):
        get_connector_class("bogus")


def test_missing_credentials():
    with pytest.raises(ConfigurationError, match="username"):
        JiraConnector(_config(username=None), client=mock_client(lambda r: httpx.Response(200))).validate_credentials()
    GitHubConnector(_config(username=None), client=mock_client(lambda r: httpx.Response(200))).validate_credentials()


@pytest.mark.asyncio
class TestJiraConnector:
    async def test_fetch_request_shape(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"issues": [jira_issue("PROJ-1"), jira_issue("PROJ-2")]})

        connector = JiraConnector(_config(), client=mock_client(handler))
        candidates = await connector.fetch_and_normalize("PROJ", project_id=1)

        assert len(requests) == 1
        request = requests[0]
        assert request.method == "GET"
        assert request.url.path == "/rest/api/2/search"
        assert request.url.params["jql"] == "project=PROJ"
        assert request.headers["Authorization"] == _basic("bot", "t0k")
        assert [key for _, key in candidates] == ["https://x/issue/PROJ/1", "https://x/issue/PROJ/2"]

    async def test_malformed_record_skipped(self):
        broken = {"key": "PROJ-9", "self": "https://x/issue/PROJ/9", "fields": {"summary": "no status"}}

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"issues": [jira_issue("PROJ-1"), broken, jira_issue("PROJ-2")]})

        connector = JiraConnector(_config(), client=mock_client(handler))
        candidates = await connector.fetch_and_normalize("PROJ", project_id=1)
        assert len(candidates) == 2
        assert connector.malformed_records == 1

    async def test_missing_issues_list(self):
        connector = JiraConnector(_config(), client=mock_client(lambda r: httpx.Response(200, json={"errors": []})))
        with pytest.raises(MalformedPayloadError):
            await connector.fetch_and_normalize("PROJ", project_id=1)

    async def test_http_error_propagates(self):
        connector = JiraConnector(_config(), client=mock_client(lambda r: httpx.Response(503)))
        with pytest.raises(httpx.HTTPStatusError):
            await connector.fetch_and_normalize("PROJ", project_id=1)

    async def test_validate_connection(self):
        ok = JiraConnector(_config(), client=mock_client(lambda r: httpx.Response(200, json={"name": "bot"})))
        assert await ok.validate_connection() is True
        denied = JiraConnector(_config(), client=mock_client(lambda r: httpx.Response(401)))
        assert await denied.validate_connection() is False


@pytest.mark.asyncio
class TestGitHubConnector:
    async def test_issues_then_commits(self):
        paths = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            assert request.headers["Authorization"] == "token t0k"
            if request.url.path.endswith("/issues"):
                return httpx.Response(200, json=[{
                    "number": 1, "title": "Bug", "state": "open",
                    "created_at": "2024-01-01T00:00:00Z",
                    "html_url": "https://github.com/acme/app/issues/1",
                }])
            return httpx.Response(200, json=[{
                "sha": "0123456789", "html_url": "https://github.com/acme/app/commit/0123456789",
                "commit": {"message": "Init", "author": {"date": "2024-01-02T00:00:00Z"}},
            }])

        connector = GitHubConnector(_config(base_url="https://api.github.com"), client=mock_client(handler))
        candidates = await connector.fetch_and_normalize("acme/app", project_id=1)

        assert paths == ["/repos/acme/app/issues", "/repos/acme/app/commits"]
        assert [c.title for c, _ in candidates] == ["Bug", "Commit: Init"]

    async def test_invalid_repo_id(self):
        connector = GitHubConnector(_config(), client=mock_client(lambda r: httpx.Response(200, json=[])))
        with pytest.raises(ConfigurationError):
            await connector.fetch_and_normalize("just-a-name", project_id=1)

    async def test_non_list_payload(self):
        connector = GitHubConnector(_config(), client=mock_client(lambda r: httpx.Response(200, json={"message": "x"})))
        with pytest.raises(MalformedPayloadError):
            await connector.fetch_and_normalize("acme/app", project_id=1)


@pytest.mark.asyncio
class TestConfluenceConnector:
    async def test_fetch_request_shape_and_base_fallback(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"results": [{
                "title": "Runbook",
                "version": {"when": "2024-01-01T00:00:00.000Z"},
                "_links": {"webui": "/spaces/OPS/pages/1"},
            }]})

        connector = ConfluenceConnector(_config(), client=mock_client(handler))
        candidates = await connector.fetch_and_normalize("OPS", project_id=1)

        request = requests[0]
        assert request.url.path == "/wiki/rest/api/content"
        assert request.url.params["spaceKey"] == "OPS"
        assert request.headers["Authorization"] == _basic("bot", "t0k")
        assert candidates[0][1] == "https://x/wiki/spaces/OPS/pages/1"

    async def test_response_base_link(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={
                "_links": {"base": "https://corp.atlassian.net/wiki"},
                "results": [{
                    "title": "Runbook",
                    "version": {"when": "2024-01-01T00:00:00.000Z"},
                    "_links": {"webui": "/spaces/OPS/pages/1"},
                }],
            })

        connector = ConfluenceConnector(_config(), client=mock_client(handler))
        candidates = await connector.fetch_and_normalize("OPS", project_id=1)
        assert candidates[0][1] == "https://corp.atlassian.net/wiki/spaces/OPS/pages/1"
