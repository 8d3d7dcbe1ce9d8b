"""Authentication utilities for Jira API requests.

A client authenticates with at most one credential scheme. The scheme is
resolved from the configuration once and turned into an ``httpx.Auth`` object
that is reused for every request.
"""

from typing import Generator, Literal, Optional, Union

import httpx
from oauthlib.oauth1 import SIGNATURE_RSA, SIGNATURE_TYPE_AUTH_HEADER, Client
from pydantic import BaseModel, ConfigDict

SignatureMethod = Literal["RSA-SHA1", "HMAC-SHA1", "PLAINTEXT"]


class _Credential(BaseModel):
    model_config = ConfigDict(frozen=True)


class NoCredential(_Credential):
    """Send requests unauthenticated."""

    kind: Literal["none"] = "none"


class BasicCredential(_Credential):
    """Username and password (an API token for Atlassian Cloud)."""

    kind: Literal["basic"] = "basic"
    username: str
    password: str


class OAuth1Credential(_Credential):
    """OAuth 1.0a secret bundle.

    For ``RSA-SHA1`` the consumer secret is the PEM encoded private key that
    matches the public key registered in the Jira application link.
    """

    kind: Literal["oauth1"] = "oauth1"
    consumer_key: str
    consumer_secret: str
    access_token: str
    access_token_secret: str
    signature_method: SignatureMethod = "RSA-SHA1"


class BearerCredential(_Credential):
    """OAuth bearer token or Personal Access Token (Jira Server/Data Center)."""

    kind: Literal["bearer"] = "bearer"
    token: str


Credential = Union[NoCredential, BasicCredential, OAuth1Credential, BearerCredential]


class BearerAuth(httpx.Auth):
    """Attach ``Authorization: Bearer <token>`` to each request."""

    def __init__(self, token: str):
        self._header = f"Bearer {token}"

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = self._header
        yield request


class OAuth1Auth(httpx.Auth):
    """Sign each request with an OAuth1 ``Authorization`` header.

    JSON bodies are not part of the OAuth1 signature base string, so only the
    method and the full URL (query string included) are signed.
    """

    def __init__(self, credential: OAuth1Credential):
        rsa = credential.signature_method == SIGNATURE_RSA
        self._client = Client(
            credential.consumer_key,
            client_secret=None if rsa else credential.consumer_secret,
            resource_owner_key=credential.access_token,
            resource_owner_secret=credential.access_token_secret,
            signature_method=credential.signature_method,
            signature_type=SIGNATURE_TYPE_AUTH_HEADER,
            rsa_key=credential.consumer_secret if rsa else None,
        )

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        _, headers, _ = self._client.sign(str(request.url), http_method=request.method)
        request.headers["Authorization"] = headers["Authorization"]
        yield request


def build_auth(credential: Credential) -> Optional[httpx.Auth]:
    """Build the httpx auth object for a credential.

    Args:
        credential: Resolved credential

    Returns:
        An ``httpx.Auth`` instance, or None for unauthenticated access
    """
    if isinstance(credential, BasicCredential):
        return httpx.BasicAuth(credential.username, credential.password)
    if isinstance(credential, OAuth1Credential):
        return OAuth1Auth(credential)
    if isinstance(credential, BearerCredential):
        return BearerAuth(credential.token)
    return None


def get_auth_headers() -> dict[str, str]:
    """Default headers sent with every Jira API request."""
    return {"Accept": "application/json"}
