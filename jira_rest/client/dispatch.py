"""Request dispatch: attach credentials, send one request, decode the result."""

from dataclasses import dataclass, field
from typing import Any, Mapping, NamedTuple, Optional

import httpx

from jira_rest.errors import (
    STATUS_ERRORS,
    HttpError,
    ResponseDecodeError,
    TransportError,
    extract_error_message,
)
from jira_rest.utils.auth import Credential, build_auth, get_auth_headers
from jira_rest.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RequestOptions:
    """One outbound request.

    ``body`` is sent as JSON when not None. ``files`` switches the request to
    multipart and takes precedence over ``body``.
    """

    url: str
    method: str = "GET"
    body: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Optional[Mapping[str, Any]] = None
    files: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class JiraResponse:
    """Full response envelope."""

    status_code: int
    headers: httpx.Headers
    body: Any


class Download(NamedTuple):
    """Binary payload paired with its declared MIME type."""

    mime_type: Optional[str]
    content: bytes


def _safe_json(response: httpx.Response) -> Any:
    """Safely extract JSON from response, falling back to text."""
    try:
        return response.json()
    except ValueError:
        return response.text or None


def decode_body(response: httpx.Response) -> Any:
    """Decode a successful response body.

    JSON content types are parsed, an empty body becomes ``{}`` and anything
    else is returned as text.

    Raises:
        ResponseDecodeError: If a JSON content type carries invalid JSON
    """
    if not response.content:
        return {}
    content_type = response.headers.get("content-type", "")
    if "json" not in content_type:
        return response.text
    try:
        return response.json()
    except ValueError as e:
        url = response.request.url
        logger.warning(f"Undecodable {content_type} body from {url}")
        raise ResponseDecodeError(
            f"Invalid JSON in {response.status_code} response from {url}: {e}",
            status_code=response.status_code,
            response_data=response.text,
        ) from e


class RequestDispatcher:
    """Sends ``RequestOptions`` through an injected ``httpx.AsyncClient``.

    The credential is turned into an auth object once; every request carries
    exactly that one scheme. Failures are raised, never retried.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        credential: Credential,
        timeout: Optional[httpx.Timeout] = None,
    ):
        self.http = http
        self.credential = credential
        self.auth = build_auth(credential)
        self.timeout = timeout
        self.headers = get_auth_headers()

    async def send(self, options: RequestOptions) -> httpx.Response:
        """Send one request and return the raw response.

        Raises:
            TransportError: On network failure, timeout or a protocol error
            HttpError: On a non-2xx status
        """
        headers = {**self.headers, **options.headers}
        kwargs: dict[str, Any] = {"headers": headers, "params": options.params}

        if options.files:
            kwargs["files"] = options.files
        elif options.body is not None:
            kwargs["json"] = options.body

        # An explicit None also overrides auth configured on an injected client
        kwargs["auth"] = self.auth
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout

        logger.debug(f"{options.method} {options.url}")

        try:
            response = await self.http.request(options.method, options.url, **kwargs)
        except httpx.RequestError as e:
            logger.warning(f"{options.method} {options.url} failed: {e!r}")
            raise TransportError(
                f"Request to {options.url} failed: {e}", url=options.url
            ) from e

        if not response.is_success:
            raise self._http_error(options, response)
        return response

    async def do_request(self, options: RequestOptions, binary: bool = False) -> Any:
        """Send a request and return only the decoded body.

        Args:
            options: Request to send
            binary: Return a ``Download`` with the raw bytes instead of
                decoding the body

        Returns:
            Decoded body, or a ``Download`` for binary requests
        """
        response = await self.send(options)
        if binary:
            return Download(response.headers.get("content-type"), response.content)
        return decode_body(response)

    async def do_plain_request(self, options: RequestOptions) -> JiraResponse:
        """Send a request and return status, headers and decoded body."""
        response = await self.send(options)
        return JiraResponse(
            status_code=response.status_code,
            headers=response.headers,
            body=decode_body(response),
        )

    @staticmethod
    def _http_error(options: RequestOptions, response: httpx.Response) -> HttpError:
        status = response.status_code
        data = _safe_json(response)
        message = extract_error_message(data)
        logger.warning(f"{options.method} {options.url} returned {status}: {message}")

        error_cls = STATUS_ERRORS.get(status, HttpError)
        if status == 404:
            message = f"Resource not found: {options.url} ({message})"
        elif status >= 500:
            message = f"Server error {status}: {message}"
        else:
            message = f"HTTP {status}: {message}"
        return error_cls(message, status_code=status, response_data=data)
