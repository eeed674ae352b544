"""Incremental decoder for newline-delimited JSON (NDJSON) bodies.

The transport may hand over the body in arbitrary fragments. Line
boundaries need not align with fragment boundaries, and for byte input a
multi-byte UTF-8 character may be split across two fragments. The decoder
buffers only the incomplete tail of the current line.
"""

from __future__ import annotations

import codecs
import json
import logging
from collections.abc import Iterable
from typing import Any

from ..errors import ParseError

logger = logging.getLogger(__name__)


class NDJSONDecoder:
    """One-shot NDJSON decoder.

    Usage:
        decoder = NDJSONDecoder()
        records = []
        for chunk in response.iter_bytes():
            records.extend(decoder.feed(chunk))
        records.extend(decoder.finish())
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._line_index = 0
        self._utf8 = codecs.getincrementaldecoder("utf-8")()
        self._finished = False

    @property
    def lines_seen(self) -> int:
        """Number of complete lines consumed so far, blank lines included."""
        return self._line_index

    def feed(self, fragment: str | bytes) -> list[Any]:
        """Append a fragment and return the records it completes.

        Raises:
            ParseError: If a completed line is not valid JSON
            RuntimeError: If called after finish()
        """
        if self._finished:
            raise RuntimeError("NDJSONDecoder has already finished")

        if isinstance(fragment, bytes):
            fragment = self._decode(fragment)
        self._buffer += fragment

        records: list[Any] = []
        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            self._take_line(line, records)
        return records

    def finish(self) -> list[Any]:
        """Flush the final line when the body has no trailing newline."""
        if self._finished:
            raise RuntimeError("NDJSONDecoder has already finished")

        self._buffer += self._decode(b"", final=True)
        self._finished = True

        records: list[Any] = []
        if self._buffer.strip():
            self._take_line(self._buffer, records)
        self._buffer = ""
        return records

    def _decode(self, data: bytes, final: bool = False) -> str:
        # e.start counts from the bytes held over from the previous fragment
        held_over = len(self._utf8.getstate()[0])
        try:
            return self._utf8.decode(data, final)
        except UnicodeDecodeError as e:
            bad_offset = max(e.start - held_over, 0)
            index = self._line_index + self._buffer.count("\n") + data.count(b"\n", 0, bad_offset)
            raise ParseError(index, "", f"invalid UTF-8 ({e.reason})") from e

    def _take_line(self, line: str, records: list[Any]) -> None:
        index = self._line_index
        self._line_index += 1

        stripped = line.strip()
        if not stripped:
            return

        try:
            records.append(json.loads(stripped))
        except json.JSONDecodeError as e:
            logger.debug(f"Rejecting NDJSON line {index}: {e}")
            raise ParseError(index, stripped, str(e)) from e


def decode_ndjson(fragments: Iterable[str | bytes] | str | bytes) -> list[Any]:
    """Decode a complete NDJSON body into its records, in stream order.

    Accepts either the whole body or an iterable of fragments. An empty body
    yields an empty list. Any invalid line fails the whole decode.
    """
    if isinstance(fragments, (str, bytes)):
        fragments = [fragments]

    decoder = NDJSONDecoder()
    records: list[Any] = []
    for fragment in fragments:
        records.extend(decoder.feed(fragment))
    records.extend(decoder.finish())
    return records
