"""Jira API Client module."""

from jira_rest.client.dispatch import (
    Download,
    JiraResponse,
    RequestDispatcher,
    RequestOptions,
)
from jira_rest.client.endpoints import Endpoint
from jira_rest.client.jira_client import JiraClient
from jira_rest.client.urls import ApiFamily, UrlBuilder, serialize_query
from jira_rest.errors import (
    ConfigError,
    HttpError,
    JiraAuthenticationError,
    JiraError,
    JiraNotFoundError,
    JiraPermissionError,
    JiraRateLimitError,
    JiraValidationError,
    ResponseDecodeError,
    TransportError,
)

__all__ = [
    "JiraClient",
    "Endpoint",
    "ApiFamily",
    "UrlBuilder",
    "serialize_query",
    "RequestDispatcher",
    "RequestOptions",
    "JiraResponse",
    "Download",
    "JiraError",
    "ConfigError",
    "TransportError",
    "HttpError",
    "JiraAuthenticationError",
    "JiraNotFoundError",
    "JiraPermissionError",
    "JiraValidationError",
    "JiraRateLimitError",
    "ResponseDecodeError",
]
