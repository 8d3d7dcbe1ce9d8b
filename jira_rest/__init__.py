"""jira-rest - An async client for the Jira REST API."""

__version__ = "1.0.0"

from jira_rest.client import (
    ConfigError,
    HttpError,
    JiraClient,
    JiraError,
    TransportError,
)
from jira_rest.config import JiraConfig, load_config

__all__ = [
    "JiraClient",
    "JiraConfig",
    "load_config",
    "JiraError",
    "ConfigError",
    "HttpError",
    "TransportError",
    "__version__",
]
