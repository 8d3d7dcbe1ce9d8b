"""Utility modules for the Jira REST client."""

from jira_rest.utils.auth import build_auth, get_auth_headers
from jira_rest.utils.logging import configure_logging, get_logger

__all__ = ["build_auth", "configure_logging", "get_auth_headers", "get_logger"]
