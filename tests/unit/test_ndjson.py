"""Unit tests for the NDJSON stream decoder."""

import json

import pytest

from genesisdb import ParseError
from genesisdb.protocol import NDJSONDecoder, decode_ndjson

RECORDS = [
    {"id": "event-1", "data": {"key": "value1"}},
    {"id": "event-2", "data": {"text": "line1\nline2"}},
    {"id": "event-3", "data": {"name": "Zoë 世界 🌍"}},
]
BODY = "\n".join(json.dumps(r, ensure_ascii=False) for r in RECORDS)


class TestWholeBody:
    """Test decoding a body delivered in one piece."""

    def test_empty_body(self):
        """An empty body is success with no records."""
        assert decode_ndjson("") == []
        assert decode_ndjson(b"") == []
        assert decode_ndjson([]) == []

    def test_whitespace_only_body(self):
        assert decode_ndjson("\n\n  \n") == []

    def test_single_record_without_newline(self):
        assert decode_ndjson('{"id": "event-1"}') == [{"id": "event-1"}]

    def test_single_record_with_newline(self):
        assert decode_ndjson('{"id": "event-1"}\n') == [{"id": "event-1"}]

    @pytest.mark.parametrize("trailing", ["", "\n"])
    def test_many_records_in_order(self, trailing):
        assert decode_ndjson(BODY + trailing) == RECORDS

    def test_blank_lines_skipped(self):
        body = '\n{"id": "a"}\n\n   \n{"id": "b"}\n\n'

        assert decode_ndjson(body) == [{"id": "a"}, {"id": "b"}]

    def test_crlf_line_endings(self):
        assert decode_ndjson('{"id": "a"}\r\n{"id": "b"}\r\n') == [{"id": "a"}, {"id": "b"}]

    def test_escaped_newlines_inside_strings(self):
        """Escaped \\n inside JSON strings must not split a line."""
        assert decode_ndjson(BODY)[1]["data"]["text"] == "line1\nline2"

    def test_non_object_values_decoded(self):
        """The decoder is structural only; mapping decides what is valid."""
        assert decode_ndjson("1\n[2]\n\"x\"") == [1, [2], "x"]


class TestChunking:
    """Test that fragment boundaries are transparent."""

    def test_every_split_point(self):
        """Splitting the body anywhere yields the same records."""
        encoded = (BODY + "\n").encode("utf-8")

        for split in range(len(encoded) + 1):
            assert decode_ndjson([encoded[:split], encoded[split:]]) == RECORDS, f"split at {split}"

    def test_byte_at_a_time(self):
        """Multi-byte characters split across fragments decode correctly."""
        encoded = BODY.encode("utf-8")

        assert decode_ndjson(encoded[i : i + 1] for i in range(len(encoded))) == RECORDS

    def test_text_fragments(self):
        assert decode_ndjson(BODY[i : i + 7] for i in range(0, len(BODY), 7)) == RECORDS

    def test_feed_returns_completed_records_only(self):
        decoder = NDJSONDecoder()

        assert decoder.feed('{"id": "a"}\n{"id"') == [{"id": "a"}]
        assert decoder.feed(': "b"}') == []
        assert decoder.feed("\n") == [{"id": "b"}]
        assert decoder.finish() == []
        assert decoder.lines_seen == 2

    def test_finish_flushes_unterminated_line(self):
        decoder = NDJSONDecoder()

        assert decoder.feed('{"id": "a"}') == []
        assert decoder.finish() == [{"id": "a"}]


class TestErrors:
    """Test invalid input handling."""

    def test_invalid_line_reports_index(self):
        body = '{"id": "a"}\n\nnot json\n{"id": "b"}'

        with pytest.raises(ParseError) as exc_info:
            decode_ndjson(body)

        assert exc_info.value.line_index == 2
        assert exc_info.value.line == "not json"

    def test_invalid_first_line(self):
        with pytest.raises(ParseError) as exc_info:
            decode_ndjson("{broken")

        assert exc_info.value.line_index == 0

    def test_truncated_final_line(self):
        with pytest.raises(ParseError) as exc_info:
            decode_ndjson('{"id": "a"}\n{"id": "b"')

        assert exc_info.value.line_index == 1

    def test_invalid_utf8(self):
        with pytest.raises(ParseError, match="UTF-8") as exc_info:
            decode_ndjson(b'{"id": "a"}\n{"id": "\xff"}')

        assert exc_info.value.line_index == 1

    def test_invalid_utf8_after_held_over_bytes(self):
        """A character split across fragments does not shift the reported line."""
        with pytest.raises(ParseError) as exc_info:
            decode_ndjson([b"{}\n\xe2\x82", b"\xac\xff\n\n"])

        assert exc_info.value.line_index == 1

    def test_invalid_utf8_index_independent_of_chunking(self):
        body = "{\"id\": \"€\"}\n{\"id\": \"€\"}\n".encode() + b"\xff\n\n{}\n"

        for split in range(len(body) + 1):
            with pytest.raises(ParseError) as exc_info:
                decode_ndjson([body[:split], body[split:]])
            assert exc_info.value.line_index == 2, f"split at {split}"

    def test_truncated_character_at_end(self):
        with pytest.raises(ParseError, match="UTF-8") as exc_info:
            decode_ndjson([b"{}\n\n", b"\xe2\x82"])

        assert exc_info.value.line_index == 2

    def test_one_shot(self):
        decoder = NDJSONDecoder()
        decoder.finish()

        with pytest.raises(RuntimeError):
            decoder.feed("{}")
        with pytest.raises(RuntimeError):
            decoder.finish()
