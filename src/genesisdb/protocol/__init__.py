"""Wire protocol for the GenesisDB HTTP API.

- requests: builds method/path/body/headers for each operation
- ndjson: incremental decoder for application/x-ndjson bodies
- event_mapper: decoded records -> CloudEvent models
"""

from .event_mapper import to_cloud_event, to_cloud_events
from .ndjson import NDJSONDecoder, decode_ndjson
from .requests import (
    JSON_CONTENT_TYPE,
    NDJSON_CONTENT_TYPE,
    Request,
    RequestBuilder,
)

__all__ = [
    # Requests
    "Request",
    "RequestBuilder",
    "JSON_CONTENT_TYPE",
    "NDJSON_CONTENT_TYPE",
    # Decoding
    "NDJSONDecoder",
    "decode_ndjson",
    # Mapping
    "to_cloud_event",
    "to_cloud_events",
]
