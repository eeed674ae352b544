"""Request construction for the GenesisDB HTTP API.

A RequestBuilder turns an operation and its logical parameters into a
transport-independent Request: method, path, JSON body and headers. The
client resolves the path against the configured base URL with url_for().
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from .._version import __version__
from ..config import ClientConfig
from ..errors import InvalidEventError
from ..types import CommitEvent, Preconditions, StreamQuery

NDJSON_CONTENT_TYPE = "application/x-ndjson"
JSON_CONTENT_TYPE = "application/json"

# Endpoint paths, relative to <base_url>/<api_version>/
STREAM_PATH = "stream"
QUERY_PATH = "q"
COMMIT_PATH = "commit"
ERASE_PATH = "erase"
AUDIT_PATH = "status/audit"
PING_PATH = "status/ping"


@dataclass(frozen=True)
class Request:
    """A fully described API request, before it touches the transport."""

    method: str
    path: str
    body: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)

    def content(self) -> bytes | None:
        """Encoded JSON body, or None for bodiless requests."""
        if self.body is None:
            return None
        return json.dumps(self.body, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


class RequestBuilder:
    """Builds requests for every GenesisDB operation."""

    def __init__(self, config: ClientConfig):
        self._config = config

    def url_for(self, path: str) -> str:
        """Join base URL, API version and path with single slashes."""
        parts = (self._config.base_url.rstrip("/"), self._config.api_version.strip("/"), path.lstrip("/"))
        return "/".join(part for part in parts if part)

    def build_stream_request(self, query: StreamQuery) -> Request:
        return self._post(STREAM_PATH, query.to_payload(), accept=NDJSON_CONTENT_TYPE)

    def build_query_request(self, query: str) -> Request:
        return self._post(QUERY_PATH, {"query": query}, accept=NDJSON_CONTENT_TYPE)

    def build_commit_request(
        self,
        events: Iterable[CommitEvent | Mapping[str, Any]],
        preconditions: Preconditions | None = None,
    ) -> Request:
        """Build a commit request.

        Args:
            events: CommitEvent models or plain mappings with the same keys
            preconditions: Optional server-checked conditions; the key is
                only sent when a value is given
        """
        body: dict[str, Any] = {"events": [_as_commit_event(event, index).to_payload() for index, event in enumerate(events)]}
        if preconditions is not None:
            body["preconditions"] = dict(preconditions)
        return self._post(COMMIT_PATH, body)

    def build_erase_request(self, subject: str) -> Request:
        return self._post(ERASE_PATH, {"subject": subject})

    def build_audit_request(self) -> Request:
        return Request(method="GET", path=AUDIT_PATH, headers=self._headers())

    def build_ping_request(self) -> Request:
        return Request(method="GET", path=PING_PATH, headers=self._headers())

    def _post(self, path: str, body: dict[str, Any], accept: str = JSON_CONTENT_TYPE) -> Request:
        headers = self._headers()
        headers["Content-Type"] = JSON_CONTENT_TYPE
        headers["Accept"] = accept
        return Request(method="POST", path=path, body=body, headers=headers)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.auth_token}",
            "User-Agent": f"genesisdb-python/{__version__}",
        }


def _as_commit_event(event: CommitEvent | Mapping[str, Any], index: int) -> CommitEvent:
    if isinstance(event, CommitEvent):
        return event
    if not isinstance(event, Mapping):
        raise InvalidEventError(f"expected a mapping, got {type(event).__name__}", index)

    try:
        return CommitEvent.model_validate(dict(event))
    except ValidationError as e:
        problems = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        raise InvalidEventError(problems, index) from e
