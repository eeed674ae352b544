"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from genesisdb import GenesisDBClient

BASE_URL = "https://api.example.com"
API_VERSION = "v1"
AUTH_TOKEN = "test-token"


class MockServer:
    """Queue of canned responses served through httpx.MockTransport.

    Every request is recorded; responses are served in the order they were
    appended. Appending an exception makes the transport raise it instead.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responses: list[httpx.Response | Exception] = []

    def append(self, response: httpx.Response | Exception) -> None:
        self._responses.append(response)

    def respond(self, status_code: int, content_type: str, body: str | bytes = "") -> None:
        """Queue a response with the given content type and body."""
        self.append(httpx.Response(status_code, headers={"Content-Type": content_type}, content=body))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def last_body(self) -> Any:
        """JSON body of the most recent request."""
        return json.loads(self.last_request.content)


@pytest.fixture
def server() -> MockServer:
    return MockServer()


@pytest.fixture
def http_client(server: MockServer) -> httpx.Client:
    with httpx.Client(transport=httpx.MockTransport(server.handler)) as client:
        yield client


@pytest.fixture
def client(http_client: httpx.Client) -> GenesisDBClient:
    """Client wired to the mock server."""
    return GenesisDBClient(BASE_URL, API_VERSION, AUTH_TOKEN, http_client=http_client)
