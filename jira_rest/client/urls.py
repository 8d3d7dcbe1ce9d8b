"""URL construction for the Jira REST API families.

Every URL has the shape::

    protocol://host[:port]/[base/]<intermediate path>/<pathname>[?query]

The intermediate path defaults per API family and is replaced outright when a
call supplies its own.
"""

from enum import Enum
from typing import Any, Mapping, Optional
from urllib.parse import quote

from jira_rest.config import JiraConfig


class ApiFamily(str, Enum):
    """Jira API families, each with its own default intermediate path."""

    API = "api"
    WEBHOOK = "webhook"
    GREENHOPPER = "greenhopper"
    DEV_STATUS = "dev-status"
    AGILE = "agile"


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def serialize_query(query: Optional[Mapping[str, Any]]) -> str:
    """Serialize query parameters Jira's way.

    Pairs keep insertion order. List values collapse into a single
    comma-joined entry, and None values or empty lists are left out.

    Args:
        query: Query parameters

    Returns:
        Query string without the leading ``?``
    """
    if not query:
        return ""

    pairs = []
    for key, value in query.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            if not value:
                continue
            value = ",".join(_stringify(item) for item in value)
        else:
            value = _stringify(value)
        pairs.append(f"{quote(str(key), safe='')}={quote(value, safe=',')}")
    return "&".join(pairs)


class UrlBuilder:
    """Builds fully qualified URLs from a client configuration."""

    def __init__(self, config: JiraConfig):
        self.config = config
        port = f":{config.port}" if config.port is not None else ""
        self.origin = f"{config.protocol}://{config.host}{port}"

    def default_intermediate_path(self, family: ApiFamily) -> str:
        """Return the intermediate path used when a call supplies none."""
        config = self.config
        if family is ApiFamily.API:
            return config.intermediate_path or f"rest/api/{config.api_version}"
        if family is ApiFamily.WEBHOOK:
            return f"rest/webhooks/{config.webhook_version}"
        if family is ApiFamily.GREENHOPPER:
            return f"rest/greenhopper/{config.greenhopper_version}"
        if family is ApiFamily.DEV_STATUS:
            return "rest/dev-status/latest/issue/detail"
        if family is ApiFamily.AGILE:
            return "rest/agile/1.0"
        raise ValueError(f"Unknown API family: {family!r}")

    def make_url(
        self,
        family: ApiFamily = ApiFamily.API,
        pathname: str = "",
        query: Optional[Mapping[str, Any]] = None,
        intermediate_path: Optional[str] = None,
        encode: bool = True,
    ) -> str:
        """Build a URL for one call.

        Args:
            family: API family supplying the default intermediate path
            pathname: Endpoint path after the intermediate path
            query: Query parameters
            intermediate_path: Replaces the family default when given
            encode: Percent-encode the pathname; disable for paths that are
                already encoded

        Returns:
            Fully qualified URL
        """
        intermediate = (
            intermediate_path
            if intermediate_path is not None
            else self.default_intermediate_path(family)
        )
        pathname = pathname.lstrip("/")
        if encode:
            pathname = quote(pathname, safe="/")

        segments = [self.config.base, intermediate.strip("/"), pathname]
        url = f"{self.origin}/" + "/".join(segment for segment in segments if segment)

        query_string = serialize_query(query)
        if query_string:
            url = f"{url}?{query_string}"
        return url

    def make_uri(
        self,
        pathname: str = "",
        query: Optional[Mapping[str, Any]] = None,
        intermediate_path: Optional[str] = None,
        encode: bool = True,
    ) -> str:
        """Classic REST API URL (``rest/api/{version}``)."""
        return self.make_url(ApiFamily.API, pathname, query, intermediate_path, encode)

    def make_webhook_uri(
        self,
        pathname: str = "",
        intermediate_path: Optional[str] = None,
    ) -> str:
        """Webhook API URL (``rest/webhooks/{version}``)."""
        return self.make_url(ApiFamily.WEBHOOK, pathname, None, intermediate_path)

    def make_sprint_query_uri(
        self,
        pathname: str = "",
        query: Optional[Mapping[str, Any]] = None,
        intermediate_path: Optional[str] = None,
    ) -> str:
        """Greenhopper API URL (``rest/greenhopper/{version}``)."""
        return self.make_url(ApiFamily.GREENHOPPER, pathname, query, intermediate_path)

    def make_dev_status_uri(
        self,
        pathname: str = "",
        query: Optional[Mapping[str, Any]] = None,
        intermediate_path: Optional[str] = None,
    ) -> str:
        """Dev-status API URL (``rest/dev-status/latest/issue/detail``)."""
        return self.make_url(ApiFamily.DEV_STATUS, pathname, query, intermediate_path)

    def make_agile_uri(
        self,
        pathname: str = "",
        query: Optional[Mapping[str, Any]] = None,
        intermediate_path: Optional[str] = None,
    ) -> str:
        """Agile API URL (``rest/agile/1.0``)."""
        return self.make_url(ApiFamily.AGILE, pathname, query, intermediate_path)
