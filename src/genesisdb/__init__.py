"""GenesisDB client - Python client for the GenesisDB event store.

Operations:
- commit_events: append events, optionally guarded by preconditions
- stream_events / query_events / q: read events back (NDJSON responses)
- erase_data: erase the data of a subject
- audit / ping: status endpoints

Example:
    from genesisdb import GenesisDBClient

    with GenesisDBClient("http://localhost:8080/api", "v1", "secret") as client:
        for event in client.stream_events("/customer/42"):
            print(event.id, event.type, event.data)
"""

from ._version import __version__
from .client import GenesisDBClient
from .config import ClientConfig
from .errors import (
    AuditError,
    CommitError,
    ConfigurationError,
    EraseError,
    GenesisDBError,
    InvalidEventError,
    MalformedEventError,
    OperationError,
    ParseError,
    PingError,
    QueryError,
    StreamError,
    TransportError,
    UnexpectedContentTypeError,
)
from .types import CloudEvent, CommitEvent, Preconditions, StreamQuery

__all__ = [
    "__version__",
    # Client
    "GenesisDBClient",
    "ClientConfig",
    # Types
    "CloudEvent",
    "CommitEvent",
    "Preconditions",
    "StreamQuery",
    # Errors
    "GenesisDBError",
    "ConfigurationError",
    "ParseError",
    "MalformedEventError",
    "InvalidEventError",
    "TransportError",
    "OperationError",
    "CommitError",
    "EraseError",
    "StreamError",
    "QueryError",
    "AuditError",
    "PingError",
    "UnexpectedContentTypeError",
]
