"""Shared test fixtures for rapidapi-client tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator

import httpx
import pytest

from rapidapi_client import RapidApiClient, RetryConfig
from rapidapi_client.testing import STUB_URL, ScriptedProcessor, StubServer, make_stub_client, serve_stub

API_KEY = "1234"

FAST_RETRY = RetryConfig(initial_wait=0.001, max_wait=0.004)
"""Default attempt ceiling with millisecond backoff, for tests that exhaust retries."""

ClientFactory = Callable[..., RapidApiClient]
"""Type alias for the ``make_client`` fixture return type."""


def default_routes() -> dict[str, list[tuple[int, str]]]:
    """Return the scripted replies served by the ``stub`` fixture."""
    return {
        "/": [(200, "OK")],
        "/retry": [(429, "slow down!"), (200, "OK")],
        "/longretry": [(429, "slow down!")],
    }


@pytest.fixture
def stub() -> StubServer:
    """Create a stub expecting ``API_KEY`` with the default scripted routes."""
    return StubServer(API_KEY, ScriptedProcessor(default_routes()))


@pytest.fixture
def make_client(stub: StubServer) -> Iterator[ClientFactory]:
    """Return a factory for clients wired in-process to the ``stub`` fixture."""
    http_clients: list[httpx.Client] = []

    def factory(api_key: str = API_KEY, *, retry: RetryConfig | None = None) -> RapidApiClient:
        http_client = make_stub_client(stub)
        http_clients.append(http_client)
        return RapidApiClient("stub.p.rapidapi.com", api_key, url=STUB_URL, client=http_client, retry=retry)

    yield factory
    for http_client in http_clients:
        http_client.close()


@pytest.fixture
def stub_url(stub: StubServer) -> Iterator[str]:
    """Serve the ``stub`` fixture on a real socket and return its base URL."""
    with serve_stub(stub) as url:
        yield url
