"""GenesisDB client - the public operation surface.

Each operation builds its request with the RequestBuilder, performs exactly
one blocking HTTP call, and dispatches on the response kind:

- NDJSON (stream_events, q, query_events): decoded incrementally while the
  body is read, then optionally mapped onto CloudEvent models
- JSON acknowledgement (commit_events, erase_data): status check only
- plain text (audit, ping): returned verbatim

The HTTP transport is an injectable httpx.Client. Pass one built on
httpx.MockTransport to test without a server.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import TracebackType
from typing import Any

import httpx

from .config import DEFAULT_TIMEOUT, ClientConfig
from .errors import (
    AuditError,
    CommitError,
    EraseError,
    OperationError,
    PingError,
    QueryError,
    StreamError,
    TransportError,
    UnexpectedContentTypeError,
)
from .protocol.event_mapper import to_cloud_events
from .protocol.ndjson import NDJSONDecoder
from .protocol.requests import NDJSON_CONTENT_TYPE, Request, RequestBuilder
from .types import CloudEvent, CommitEvent, Preconditions, StreamQuery

logger = logging.getLogger(__name__)


class GenesisDBClient:
    """Synchronous client for the GenesisDB event store.

    Example:
        with GenesisDBClient("http://localhost:8080/api", "v1", token) as client:
            client.commit_events([
                {"source": "io.genesisdb.app", "subject": "/customer/42",
                 "type": "io.genesisdb.app.customer-added", "data": {"name": "Bruce"}},
            ])
            events = client.stream_events("/customer/42")

    Args:
        base_url: Server URL, e.g. "http://localhost:8080/api"
        api_version: API version segment, e.g. "v1"
        auth_token: Bearer token sent with every request
        timeout: Timeout in seconds for the owned HTTP client
        http_client: Optional httpx.Client to use instead of an owned one.
            An injected client is not closed by close().

    Raises:
        ConfigurationError: If base_url, api_version or auth_token is empty
    """

    def __init__(
        self,
        base_url: str,
        api_version: str,
        auth_token: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.Client | None = None,
    ):
        self.config = ClientConfig(
            base_url=base_url,
            api_version=api_version,
            auth_token=auth_token,
            timeout=timeout,
        )
        self._requests = RequestBuilder(self.config)
        self._owns_http_client = http_client is None
        self._http = http_client if http_client is not None else httpx.Client(timeout=self.config.timeout)

    @classmethod
    def from_config(cls, config: ClientConfig, http_client: httpx.Client | None = None) -> GenesisDBClient:
        """Create a client from an existing ClientConfig."""
        return cls(
            config.base_url,
            config.api_version,
            config.auth_token,
            timeout=config.timeout,
            http_client=http_client,
        )

    @classmethod
    def from_env(cls, http_client: httpx.Client | None = None) -> GenesisDBClient:
        """Create a client from GENESISDB_* environment variables."""
        return cls.from_config(ClientConfig.from_env(), http_client=http_client)

    # =========================================================================
    # Event retrieval (NDJSON)
    # =========================================================================

    def stream_events(
        self,
        subject: str,
        lower_bound: str | None = None,
        include_lower_bound_event: bool | None = None,
        latest_by_event_type: str | None = None,
    ) -> list[CloudEvent]:
        """Fetch the events of a subject, in stream order.

        Args:
            subject: Subject whose history to read, e.g. "/customer/42"
            lower_bound: Event id to start from
            include_lower_bound_event: Whether the lower bound event itself
                is included
            latest_by_event_type: Only return the latest event of this type
        """
        query = StreamQuery(
            subject=subject,
            lower_bound=lower_bound,
            include_lower_bound_event=include_lower_bound_event,
            latest_by_event_type=latest_by_event_type,
        )
        records = self._fetch_records("stream", self._requests.build_stream_request(query), StreamError)
        return to_cloud_events(records)

    def q(self, query: str) -> list[Any]:
        """Run a query and return the decoded result rows as-is."""
        return self._fetch_records("query", self._requests.build_query_request(query), QueryError)

    def query_events(self, query: str) -> list[CloudEvent]:
        """Run a query whose rows are events and map them to CloudEvents."""
        records = self._fetch_records("query", self._requests.build_query_request(query), QueryError)
        return to_cloud_events(records)

    # =========================================================================
    # Writes
    # =========================================================================

    def commit_events(
        self,
        events: Iterable[CommitEvent | Mapping[str, Any]],
        preconditions: Preconditions | None = None,
    ) -> None:
        """Append events atomically.

        Args:
            events: CommitEvent models or mappings with source, subject,
                type, data and optional options
            preconditions: Optional conditions the server must verify,
                e.g. {"expectedVersion": 5}

        Raises:
            CommitError: If the server rejects the commit
        """
        request = self._requests.build_commit_request(events, preconditions)
        response = self._send("commit", request)
        self._check_status("commit", response, CommitError)
        logger.info(f"Committed {len(request.body['events'])} event(s)")

    def erase_data(self, subject: str) -> None:
        """Erase the stored data of a subject.

        Raises:
            EraseError: If the server rejects the erase
        """
        response = self._send("erase", self._requests.build_erase_request(subject))
        self._check_status("erase", response, EraseError)
        logger.info(f"Erased data for subject {subject}")

    # =========================================================================
    # Status
    # =========================================================================

    def audit(self) -> str:
        """Return the server's audit trail as raw text."""
        response = self._send("audit", self._requests.build_audit_request())
        self._check_status("audit", response, AuditError)
        return response.text

    def ping(self) -> str:
        """Return the raw health check body ("pong" on a healthy server)."""
        response = self._send("ping", self._requests.build_ping_request())
        self._check_status("ping", response, PingError)
        return response.text

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the owned HTTP client."""
        if self._owns_http_client:
            self._http.close()

    def __enter__(self) -> GenesisDBClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"GenesisDBClient(base_url={self.config.base_url!r}, api_version={self.config.api_version!r})"

    # =========================================================================
    # Transport plumbing
    # =========================================================================

    def _send(self, operation: str, request: Request) -> httpx.Response:
        url = self._requests.url_for(request.path)
        logger.debug(f"{operation}: {request.method} {url}")
        try:
            return self._http.request(
                request.method,
                url,
                content=request.content(),
                headers=request.headers,
            )
        except httpx.RequestError as e:
            raise TransportError(operation, str(e) or type(e).__name__) from e

    def _fetch_records(
        self,
        operation: str,
        request: Request,
        error_cls: type[OperationError],
    ) -> list[Any]:
        """Perform an NDJSON request and decode the full body."""
        url = self._requests.url_for(request.path)
        logger.debug(f"{operation}: {request.method} {url}")
        try:
            with self._http.stream(
                request.method,
                url,
                content=request.content(),
                headers=request.headers,
            ) as response:
                if not response.is_success:
                    response.read()
                    self._check_status(operation, response, error_cls)

                content_type = response.headers.get("content-type", "")
                if _media_type(content_type) != NDJSON_CONTENT_TYPE:
                    response.read()
                    raise UnexpectedContentTypeError(
                        operation, response.status_code, response.text, content_type
                    )

                decoder = NDJSONDecoder()
                records: list[Any] = []
                for chunk in response.iter_bytes():
                    records.extend(decoder.feed(chunk))
                records.extend(decoder.finish())
        except httpx.RequestError as e:
            raise TransportError(operation, str(e) or type(e).__name__) from e

        logger.debug(f"{operation}: decoded {len(records)} record(s) from {decoder.lines_seen} line(s)")
        return records

    @staticmethod
    def _check_status(operation: str, response: httpx.Response, error_cls: type[OperationError]) -> None:
        if response.is_success:
            return
        logger.warning(f"{operation} returned HTTP {response.status_code}")
        raise error_cls(operation, response.status_code, response.text)


def _media_type(content_type: str) -> str:
    """Strip parameters (e.g. charset) from a Content-Type value."""
    return content_type.split(";", 1)[0].strip().lower()
