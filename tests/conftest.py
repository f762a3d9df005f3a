"""Shared test fixtures and helpers for apiai-client tests.

Provides a recording ``httpx`` transport that stands in for the
network, plus factories for configurations, services and sample
response bodies.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from apiai_client.config import AIConfiguration
from apiai_client.context import AIServiceContext
from apiai_client.service import AIDataService

TEST_API_KEY = "test-api-key"
TEST_SESSION_ID = "test-session"


# ---------------------------------------------------------------------------
# Transport double
# ---------------------------------------------------------------------------


class RecordingTransport(httpx.MockTransport):
    """``MockTransport`` that records requests and counts closes."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        super().__init__(handler)
        self.requests: list[httpx.Request] = []
        self.close_count = 0

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return await super().handle_async_request(request)

    async def aclose(self) -> None:
        self.close_count += 1

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]


def respond_json(payload: Any, status_code: int = 200) -> RecordingTransport:
    """Transport that answers every request with *payload* as JSON."""
    return RecordingTransport(
        lambda request: httpx.Response(status_code, json=payload)
    )


def respond_text(text: str, status_code: int = 200) -> RecordingTransport:
    """Transport that answers every request with raw *text*."""
    return RecordingTransport(
        lambda request: httpx.Response(status_code, text=text)
    )


def refuse_connection() -> RecordingTransport:
    """Transport whose every request fails with a connection error."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    return RecordingTransport(handler)


# ---------------------------------------------------------------------------
# Sample data factories
# ---------------------------------------------------------------------------


def make_config(**kwargs: Any) -> AIConfiguration:
    """Create an AIConfiguration with a test API key."""
    kwargs.setdefault("api_key", TEST_API_KEY)
    return AIConfiguration(**kwargs)


def make_service(
    transport: httpx.AsyncBaseTransport | None = None, **config_kwargs: Any
) -> AIDataService:
    """Create an AIDataService bound to a fixed session and *transport*."""
    return AIDataService(
        make_config(**config_kwargs),
        AIServiceContext(session_id=TEST_SESSION_ID),
        transport=transport,
    )


def success_body(**result: Any) -> dict[str, Any]:
    """A successful service response with an optional result block."""
    body: dict[str, Any] = {
        "id": "a8b6c5d4",
        "timestamp": "2016-01-01T12:00:00.000Z",
        "status": {"code": 200, "errorType": "success"},
        "sessionId": TEST_SESSION_ID,
    }
    if result:
        body["result"] = result
    return body


def request_json(request: httpx.Request) -> Any:
    """Decode the JSON body of a recorded request."""
    return json.loads(request.content.decode("utf-8"))


@pytest.fixture()
def config() -> AIConfiguration:
    return make_config()


@pytest.fixture(autouse=True)
def _fixed_timezone(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pin the local time zone so request bodies are deterministic."""
    monkeypatch.setenv("TZ", "Europe/Berlin")
