"""Mapping of decoded NDJSON records onto CloudEvent models."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from ..errors import MalformedEventError
from ..types import CloudEvent

REQUIRED_ATTRIBUTES = ("id", "source", "type")


def to_cloud_event(record: Any, index: int | None = None) -> CloudEvent:
    """Build a CloudEvent from one decoded JSON object.

    `data`, `subject` and `time` stay None when absent. Unknown keys become
    extension attributes.

    Raises:
        MalformedEventError: If the record is not a JSON object, lacks one
            of id/source/type, or carries an attribute of the wrong type
    """
    if not isinstance(record, dict):
        raise MalformedEventError(f"expected a JSON object, got {type(record).__name__}", index)

    missing = [name for name in REQUIRED_ATTRIBUTES if name not in record or record[name] is None]
    if missing:
        raise MalformedEventError(f"missing required attribute(s): {', '.join(missing)}", index)

    try:
        return CloudEvent.model_validate(record)
    except ValidationError as e:
        problems = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        raise MalformedEventError(f"invalid attribute(s): {problems}", index) from e


def to_cloud_events(records: Iterable[Any]) -> list[CloudEvent]:
    """Map records in order; the first malformed one fails the whole batch."""
    return [to_cloud_event(record, index) for index, record in enumerate(records)]
