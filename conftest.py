"""Shared pytest fixtures for the connector tests."""

import json
from typing import Any, Dict, List, Optional

import pytest

from connectors.netsuite.ns_auth import NSAuthProvider, NSCredentials
from connectors.netsuite.ns_client import NSApiClient, NSApiConfig


TEST_CREDENTIALS = NSCredentials(
    account_id="1234567_SB1",
    consumer_key="consumer-key",
    consumer_secret="consumer-secret",
    token_id="token-id",
    token_secret="token-secret",
)


class FakeResponse:
    """Stands in for aiohttp.ClientResponse inside ``async with``."""

    def __init__(self, status: int = 200, body: str = "", headers: Optional[Dict[str, str]] = None):
        self.status = status
        self._body = body
        self.headers = headers or {}

    async def text(self) -> str:
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Records requests and replays queued FakeResponses in order."""

    def __init__(self, responses: List[FakeResponse]):
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        return self.responses.pop(0)

    async def close(self):
        self.closed = True


class FakeHttp:
    """Builds fake responses and installs them on an NSApiClient."""

    def json(self, status: int, data: Any, headers: Optional[Dict[str, str]] = None) -> FakeResponse:
        all_headers = {"Content-Type": "application/json; charset=utf-8"}
        all_headers.update(headers or {})
        return FakeResponse(status, json.dumps(data), all_headers)

    def text(self, status: int, body: str = "", headers: Optional[Dict[str, str]] = None) -> FakeResponse:
        all_headers = {"Content-Type": "text/plain"}
        all_headers.update(headers or {})
        return FakeResponse(status, body, all_headers)

    def install(self, client: NSApiClient, *responses: FakeResponse) -> FakeSession:
        session = FakeSession(list(responses))
        client._session = session
        return session


@pytest.fixture
def credentials() -> NSCredentials:
    return TEST_CREDENTIALS


@pytest.fixture
def api_client(credentials) -> NSApiClient:
    return NSApiClient(NSAuthProvider(credentials), NSApiConfig())


@pytest.fixture
def http() -> FakeHttp:
    return FakeHttp()


class FakeClock:
    """Manually advanced seconds source."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
