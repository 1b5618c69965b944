from typing import Dict, Type

from leadtime_sync.connectors.base import BaseConnector
from leadtime_sync.connectors.jira_connector import JiraConnector
from leadtime_sync.connectors.github_connector import GitHubConnector
from leadtime_sync.connectors.confluence_connector import ConfluenceConnector
from leadtime_sync.exceptions import ConfigurationError

CONNECTOR_TYPES: Dict[str, Type[BaseConnector]] = {
    "jira": JiraConnector,
    "github": GitHubConnector,
    "confluence": ConfluenceConnector,
}


def get_connector_class(source_type: str) -> Type[BaseConnector]:
    connector_class = CONNECTOR_TYPES.get(source_type)
    if not connector_class:
        raise ConfigurationError(f"Unknown external source type: {source_type}")
    return connector_class
