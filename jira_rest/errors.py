"""Exceptions raised by the Jira REST client.

Nothing here is retried: every failure reaches the caller as one of these.
"""

from typing import Any, Optional


class JiraError(Exception):
    """Base exception for the Jira REST client."""


class ConfigError(JiraError, ValueError):
    """Missing or contradictory configuration, raised before any request."""


class TransportError(JiraError):
    """Network level failure (DNS, refused connection, timeout).

    The underlying ``httpx`` exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class HttpError(JiraError):
    """Jira answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Any] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class JiraValidationError(HttpError):
    """Validation error (400)."""

    pass


class JiraAuthenticationError(HttpError):
    """Authentication failed (401)."""

    pass


class JiraPermissionError(HttpError):
    """Permission denied (403)."""

    pass


class JiraNotFoundError(HttpError):
    """Resource not found (404)."""

    pass


class JiraRateLimitError(HttpError):
    """Rate limit exceeded (429)."""

    pass


class ResponseDecodeError(HttpError):
    """A 2xx response whose body does not match its declared content type.

    ``response_data`` holds the raw response text.
    """


STATUS_ERRORS: dict[int, type[HttpError]] = {
    400: JiraValidationError,
    401: JiraAuthenticationError,
    403: JiraPermissionError,
    404: JiraNotFoundError,
    429: JiraRateLimitError,
}


def extract_error_message(error_data: Any) -> str:
    """Extract error message from a Jira error response."""
    if not error_data:
        return "Unknown error"
    if not isinstance(error_data, dict):
        return str(error_data)

    if error_data.get("errorMessages"):
        return ", ".join(error_data["errorMessages"])
    elif error_data.get("errors"):
        errors = error_data["errors"]
        return ", ".join(f"{k}: {v}" for k, v in errors.items())
    elif "message" in error_data:
        return error_data["message"]
    else:
        return str(error_data)
