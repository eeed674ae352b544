"""Data model for GenesisDB requests and responses.

Payload-carrying fields (data, options, preconditions, extension attributes)
use pydantic's JsonValue: any JSON value, validated structurally but never
interpreted.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, JsonValue, field_validator

# Server-checked conditions attached to a commit, e.g. {"expectedVersion": 5}
Preconditions = dict[str, JsonValue]

# RFC 3339 date-time; fractional seconds of any precision
RFC3339_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})$"
)


class CloudEvent(BaseModel):
    """An event as returned by the server, shaped after CloudEvents 1.0.

    id, source and type are mandatory. Keys beyond the standard attributes
    are kept as extension attributes and are available through `extensions`
    or plain attribute access.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    source: str
    type: str
    specversion: str = "1.0"
    subject: str | None = None
    time: str | None = Field(default=None, strict=True)
    datacontenttype: str | None = None
    dataschema: str | None = None
    data: JsonValue = None

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str | None) -> str | None:
        if value is not None and not RFC3339_PATTERN.match(value):
            raise ValueError(f"not an RFC 3339 timestamp: {value!r}")
        return value

    @property
    def timestamp(self) -> datetime | None:
        """`time` as a datetime, truncated to microseconds.

        The `time` attribute itself keeps the server's string unchanged.
        """
        if self.time is None:
            return None
        return datetime.fromisoformat(re.sub(r"(\.\d{6})\d+", r"\1", self.time.upper()))

    @property
    def extensions(self) -> dict[str, Any]:
        """Extension attributes (non-standard top-level keys)."""
        return dict(self.model_extra or {})

    @property
    def has_data(self) -> bool:
        """Whether the server sent a `data` attribute at all."""
        return "data" in self.model_fields_set


class CommitEvent(BaseModel):
    """One event to append to the store.

    Example:
        CommitEvent(
            source="io.genesisdb.app",
            subject="/customer/42",
            type="io.genesisdb.app.customer-added",
            data={"firstName": "Bruce"},
            options={"storeDataAsReference": True},
        )
    """

    source: str
    subject: str
    type: str
    data: JsonValue = None
    options: dict[str, JsonValue] | None = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize for the commit body; `options` only when supplied."""
        payload: dict[str, Any] = {
            "source": self.source,
            "subject": self.subject,
            "type": self.type,
            "data": self.data,
        }
        if self.options is not None:
            payload["options"] = self.options
        return payload


class StreamQuery(BaseModel):
    """Parameters for streaming the events of one subject.

    Optional fields left as None are absent from the request body.
    """

    model_config = ConfigDict(populate_by_name=True)

    subject: str
    lower_bound: str | None = Field(default=None, alias="lowerBound")
    include_lower_bound_event: bool | None = Field(default=None, alias="includeLowerBoundEvent")
    latest_by_event_type: str | None = Field(default=None, alias="latestByEventType")

    def to_payload(self) -> dict[str, Any]:
        """Serialize with wire names, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)
