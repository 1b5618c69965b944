from typing import Dict, Any, Optional

from leadtime_sync.connectors.base import CandidateEvent, RecordKind, parse_timestamp
from leadtime_sync.schemas.event import EventType, EventStatus, ReferenceLink, ReferenceLinkType

CONFLUENCE_DESCRIPTION = "Confluence page created/updated"

# Checked in order, first match wins
JIRA_STATUS_RULES = (
    (("done", "closed", "resolved"), EventStatus.DONE),
    (("progress", "active"), EventStatus.ONGOING),
)


def map_jira_status(status_name: str) -> EventStatus:
    """Map a Jira status name onto an event status by case-insensitive substring match."""
    lowered = (status_name or "").lower()
    for needles, status in JIRA_STATUS_RULES:
        if any(needle in lowered for needle in needles):
            return status
    return EventStatus.NOT_YET


def _optional_timestamp(value: Optional[str]):
    return parse_timestamp(value) if value else None


class NormalizerService:
    """
    Service responsible for normalizing raw records from the supported sources
    into the unified `CandidateEvent` shape.
    """

    def normalize_jira_issue(self, issue: Dict[str, Any], project_id: int) -> CandidateEvent:
        """
        Normalizes a Jira REST v2 search issue:
        {"key": "PROJ-1", "self": "...", "fields": {"summary", "description", "status": {"name"}, "created", "resolutiondate"}}
        """
        fields = issue["fields"]
        return CandidateEvent(
            kind=RecordKind.JIRA_ISSUE,
            title=fields["summary"],
            description=fields.get("description"),
            type=EventType.DURATION,
            status=map_jira_status(fields["status"]["name"]),
            start_date=parse_timestamp(fields["created"]),
            end_date=_optional_timestamp(fields.get("resolutiondate")),
            reference_links=[ReferenceLink(type=ReferenceLinkType.JIRA, url=issue["self"], title=issue["key"])],
            project_id=project_id,
        )

    def normalize_github_issue(self, issue: Dict[str, Any], project_id: int) -> CandidateEvent:
        return CandidateEvent(
            kind=RecordKind.GITHUB_ISSUE,
            title=issue["title"],
            description=issue.get("body"),
            type=EventType.DURATION,
            status=EventStatus.DONE if issue.get("state") == "closed" else EventStatus.ONGOING,
            start_date=parse_timestamp(issue["created_at"]),
            end_date=_optional_timestamp(issue.get("closed_at")),
            reference_links=[ReferenceLink(type=ReferenceLinkType.GITHUB, url=issue["html_url"], title=f"#{issue['number']}")],
            project_id=project_id,
        )

    def normalize_github_commit(self, commit: Dict[str, Any], project_id: int) -> CandidateEvent:
        message = commit["commit"]["message"]
        first_line = message.split("\n")[0]
        return CandidateEvent(
            kind=RecordKind.GITHUB_COMMIT,
            title=f"Commit: {first_line}",
            description=message,
            type=EventType.ONE_TIME,
            status=EventStatus.DONE,
            start_date=parse_timestamp(commit["commit"]["author"]["date"]),
            reference_links=[ReferenceLink(type=ReferenceLinkType.GITHUB, url=commit["html_url"], title=commit["sha"][:7])],
            project_id=project_id,
        )

    def normalize_confluence_page(self, page: Dict[str, Any], project_id: int, default_base: str) -> CandidateEvent:
        """
        Normalizes a Confluence content result. The page URL is `_links.base` + `_links.webui`;
        `default_base` stands in when the page itself carries no base link.
        """
        links = page["_links"]
        base = links.get("base") or default_base
        return CandidateEvent(
            kind=RecordKind.CONFLUENCE_PAGE,
            title=f"Page: {page['title']}",
            description=CONFLUENCE_DESCRIPTION,
            type=EventType.ONE_TIME,
            status=EventStatus.DONE,
            start_date=parse_timestamp(page["version"]["when"]),
            reference_links=[ReferenceLink(type=ReferenceLinkType.CONFLUENCE, url=f"{base}{links['webui']}", title=page["title"])],
            project_id=project_id,
        )
