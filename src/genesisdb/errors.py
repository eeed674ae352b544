"""Exception hierarchy for the GenesisDB client.

Every error raised by the client derives from GenesisDBError so callers can
catch the whole family at once, or pick a specific kind:

- ConfigurationError: connection parameters missing at construction
- ParseError: an NDJSON line is not valid JSON
- MalformedEventError: a decoded record is not a valid CloudEvent
- InvalidEventError: an event given to commit is incomplete or malformed
- TransportError: the HTTP transport failed (connection, timeout, ...)
- OperationError: the server answered with an unusable response
"""

from __future__ import annotations


class GenesisDBError(Exception):
    """Base class for all GenesisDB client errors."""


class ConfigurationError(GenesisDBError):
    """One or more required connection parameters are missing."""

    def __init__(self, missing: tuple[str, ...] | list[str], message: str | None = None):
        self.missing = tuple(missing)
        super().__init__(message or f"Missing required variables: {', '.join(self.missing)}")


class ParseError(GenesisDBError):
    """A non-empty NDJSON line could not be parsed as JSON."""

    def __init__(self, line_index: int, line: str, reason: str = ""):
        self.line_index = line_index
        self.line = line
        self.reason = reason
        message = f"Invalid JSON on NDJSON line {line_index}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MalformedEventError(GenesisDBError):
    """A decoded record cannot be mapped onto a CloudEvent."""

    def __init__(self, message: str, index: int | None = None):
        self.index = index
        if index is not None:
            message = f"Record {index}: {message}"
        super().__init__(message)


class InvalidEventError(GenesisDBError):
    """An event passed to commit_events is missing or has malformed fields."""

    def __init__(self, message: str, index: int):
        self.index = index
        super().__init__(f"Event {index}: {message}")


class TransportError(GenesisDBError):
    """The HTTP request could not be completed."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation} failed: {message}")


class OperationError(GenesisDBError):
    """The server returned a response the operation cannot use.

    Carries the HTTP status code and the raw response body for diagnostics.
    """

    def __init__(self, operation: str, status_code: int, body: str, message: str | None = None):
        self.operation = operation
        self.status_code = status_code
        self.body = body
        super().__init__(message or f"{operation} failed with status {status_code}: {body}")


class CommitError(OperationError):
    """Committing events was rejected by the server."""


class EraseError(OperationError):
    """Erasing subject data was rejected by the server."""


class StreamError(OperationError):
    """Streaming events was rejected by the server."""


class QueryError(OperationError):
    """A query was rejected by the server."""


class AuditError(OperationError):
    """Fetching the audit trail failed."""


class PingError(OperationError):
    """The health check returned a non-success status."""


class UnexpectedContentTypeError(OperationError):
    """A successful response did not carry the expected content type."""

    def __init__(self, operation: str, status_code: int, body: str, content_type: str):
        self.content_type = content_type
        super().__init__(
            operation,
            status_code,
            body,
            message=f"{operation} expected application/x-ndjson, got {content_type or 'no content type'}",
        )
