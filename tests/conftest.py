"""Pytest fixtures for the Jira REST client tests."""

import os
from typing import Any, Callable, Optional

import httpx
import pytest

from jira_rest.client import JiraClient
from jira_rest.config import JiraConfig, get_config, load_config


class StubJira:
    """``httpx.MockTransport`` handler that records requests.

    Each request gets a fresh response built from the configured reply, or the
    configured exception is raised.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.error: Optional[Exception] = None
        self._reply: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json={})
        )

    def respond(self, status_code: int = 200, **kwargs: Any) -> None:
        """Reply to every following request with this status and body."""
        self._reply = lambda request: httpx.Response(status_code, **kwargs)

    def fail(self, error: Exception) -> None:
        """Raise ``error`` for every following request."""
        self.error = error

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self._reply(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_url(self) -> str:
        return str(self.last.url)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep JIRA_* variables and any .env file out of the tests."""
    for name in list(os.environ):
        if name.upper().startswith("JIRA_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def config() -> JiraConfig:
    """Basic-auth configuration for https://jira.example.com."""
    return load_config(
        host="jira.example.com",
        protocol="https",
        username="test@example.com",
        password="test-token",
    )


@pytest.fixture
def stub() -> StubJira:
    """Recording stand-in for the Jira server."""
    return StubJira()


@pytest.fixture
async def http(stub):
    """AsyncClient wired to the stub server."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
    yield client
    await client.aclose()


@pytest.fixture
def client(config, http) -> JiraClient:
    """JiraClient sending through the stub server."""
    return JiraClient(config, http=http)


@pytest.fixture
def sample_issue():
    """Sample issue data for testing."""
    return {
        "key": "TEST-123",
        "id": "10001",
        "self": "https://jira.example.com/rest/api/2/issue/10001",
        "fields": {
            "summary": "Test issue summary",
            "status": {"name": "Open", "id": "1"},
            "issuetype": {"name": "Bug", "id": "1"},
            "assignee": {"displayName": "Test User", "name": "test"},
        },
    }


@pytest.fixture
def sample_sprint():
    """Sample sprint data for testing."""
    return {
        "id": 1,
        "name": "Sprint 1",
        "state": "active",
        "startDate": "2024-01-01T00:00:00.000Z",
        "endDate": "2024-01-14T00:00:00.000Z",
        "originBoardId": 1,
        "goal": "Complete feature X",
    }
