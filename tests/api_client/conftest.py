"""
conftest.py

Shared pytest fixtures and helpers for the client core tests.
The network is replaced by httpx.MockTransport; handlers receive the
httpx.Request and return an httpx.Response.
"""

import time
from typing import Dict, Optional

import httpx
import pytest

from ocean_client.aio import AsyncClient
from ocean_client.client import Client

# Test timeout constant - can be imported in tests
TEST_TIMEOUT = 30

BASE_URL = "https://api.example.test/"


def rate_headers(
    limit: Optional[int] = 5000,
    remaining: Optional[int] = 4999,
    reset: Optional[int] = None,
) -> Dict[str, str]:
    """
    Build rate limit headers; None leaves a header out.
    reset defaults to one hour from now (epoch seconds).
    """
    if reset is None:
        reset = int(time.time()) + 3600
    headers = {}
    if limit is not None:
        headers["RateLimit-Limit"] = str(limit)
    if remaining is not None:
        headers["RateLimit-Remaining"] = str(remaining)
    if reset is not None:
        headers["RateLimit-Reset"] = str(reset)
    return headers


class CallRecorder:
    """Wraps a handler and records every request that reaches the transport."""

    def __init__(self, handler):
        self.handler = handler
        self.requests = []

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        return self.handler(request)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def make_client():
    """
    Fixture returning a factory: make_client(handler, **options) -> Client.
    The handler is wrapped in a CallRecorder available as client.recorder.
    Clients are closed after the test.
    """
    clients = []

    def _make(handler, **options):
        recorder = CallRecorder(handler)
        options.setdefault("base_url", BASE_URL)
        client = Client(transport=httpx.MockTransport(recorder), **options)
        client.recorder = recorder
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def make_async_client():
    """
    Async counterpart of make_client; handlers may be coroutines.
    Tests close the client themselves with `async with`.
    """

    def _make(handler, **options):
        recorder = CallRecorder(handler)
        options.setdefault("base_url", BASE_URL)
        client = AsyncClient(transport=httpx.MockTransport(recorder), **options)
        client.recorder = recorder
        return client

    return _make
