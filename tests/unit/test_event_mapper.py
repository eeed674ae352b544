"""Unit tests for mapping decoded records onto CloudEvents."""

from datetime import UTC, datetime

import pytest

from genesisdb import CloudEvent, MalformedEventError
from genesisdb.protocol import to_cloud_event, to_cloud_events

FULL_EVENT = {
    "id": "event-1",
    "source": "test-source",
    "type": "test.event",
    "subject": "test-subject",
    "time": "2023-01-01T00:00:00Z",
    "data": {"key": "value", "nested": [1, 2.5, None, True]},
    "specversion": "1.0",
    "datacontenttype": "application/json",
}


class TestMapping:
    """Test field mapping."""

    def test_standard_attributes(self):
        event = to_cloud_event(FULL_EVENT)

        assert isinstance(event, CloudEvent)
        assert event.id == "event-1"
        assert event.source == "test-source"
        assert event.type == "test.event"
        assert event.subject == "test-subject"
        assert event.time == "2023-01-01T00:00:00Z"
        assert event.timestamp == datetime(2023, 1, 1, tzinfo=UTC)
        assert event.datacontenttype == "application/json"

    def test_nanosecond_time_kept_verbatim(self):
        event = to_cloud_event({**FULL_EVENT, "time": "2025-01-21T10:45:23.123456789Z"})

        assert event.time == "2025-01-21T10:45:23.123456789Z"
        assert event.timestamp == datetime(2025, 1, 21, 10, 45, 23, 123456, tzinfo=UTC)

    def test_offset_time_kept_verbatim(self):
        event = to_cloud_event({**FULL_EVENT, "time": "2023-01-01t02:00:00+02:00"})

        assert event.time == "2023-01-01t02:00:00+02:00"
        assert event.timestamp == datetime(2023, 1, 1, tzinfo=UTC)

    def test_time_survives_dump(self):
        """Dumping an event gives back the server's time string."""
        record = {**FULL_EVENT, "time": "2025-01-21T10:45:23.123456789Z"}

        assert to_cloud_event(record).model_dump(mode="json")["time"] == record["time"]

    def test_data_passed_through(self):
        assert to_cloud_event(FULL_EVENT).data == {"key": "value", "nested": [1, 2.5, None, True]}

    def test_optional_attributes_unset(self):
        event = to_cloud_event({"id": "e", "source": "s", "type": "t"})

        assert event.subject is None
        assert event.time is None
        assert event.timestamp is None
        assert event.data is None
        assert event.has_data is False
        assert event.specversion == "1.0"

    def test_explicit_null_data_is_present(self):
        event = to_cloud_event({"id": "e", "source": "s", "type": "t", "data": None})

        assert event.data is None
        assert event.has_data is True

    def test_scalar_data(self):
        assert to_cloud_event({"id": "e", "source": "s", "type": "t", "data": "plain"}).data == "plain"

    def test_extension_attributes(self):
        event = to_cloud_event({**FULL_EVENT, "correlationid": "abc", "sequence": 7})

        assert event.extensions == {"correlationid": "abc", "sequence": 7}
        assert event.correlationid == "abc"

    def test_no_extensions(self):
        assert to_cloud_event(FULL_EVENT).extensions == {}

    def test_events_are_frozen(self):
        event = to_cloud_event(FULL_EVENT)

        with pytest.raises(ValueError):
            event.id = "other"


class TestMalformed:
    """Test rejection of records that are not CloudEvents."""

    @pytest.mark.parametrize("attribute", ["id", "source", "type"])
    def test_missing_required_attribute(self, attribute):
        record = {k: v for k, v in FULL_EVENT.items() if k != attribute}

        with pytest.raises(MalformedEventError, match=attribute):
            to_cloud_event(record)

    def test_null_required_attribute(self):
        with pytest.raises(MalformedEventError, match="id"):
            to_cloud_event({**FULL_EVENT, "id": None})

    def test_lists_all_missing(self):
        with pytest.raises(MalformedEventError, match="id, source, type"):
            to_cloud_event({"data": 1})

    @pytest.mark.parametrize("value", [42, [1, 2], "text", None, True])
    def test_non_object_record(self, value):
        with pytest.raises(MalformedEventError, match="expected a JSON object"):
            to_cloud_event(value)

    def test_wrong_attribute_type(self):
        with pytest.raises(MalformedEventError, match="invalid attribute"):
            to_cloud_event({**FULL_EVENT, "id": 42})

    def test_unparsable_time(self):
        with pytest.raises(MalformedEventError, match="time"):
            to_cloud_event({**FULL_EVENT, "time": "yesterday"})

    @pytest.mark.parametrize("value", [1700000000, 1700000000.5, True, ["2023-01-01T00:00:00Z"]])
    def test_non_string_time(self, value):
        """Epoch numbers and other non-strings are not CloudEvents timestamps."""
        with pytest.raises(MalformedEventError, match="time"):
            to_cloud_event({**FULL_EVENT, "time": value})

    def test_date_only_time(self):
        with pytest.raises(MalformedEventError, match="time"):
            to_cloud_event({**FULL_EVENT, "time": "2023-01-01"})


class TestBatch:
    """Test mapping a sequence of records."""

    def test_order_preserved(self):
        records = [{**FULL_EVENT, "id": f"event-{i}"} for i in range(5)]

        assert [e.id for e in to_cloud_events(records)] == [f"event-{i}" for i in range(5)]

    def test_error_carries_position(self):
        records = [FULL_EVENT, FULL_EVENT, {"source": "s", "type": "t"}]

        with pytest.raises(MalformedEventError) as exc_info:
            to_cloud_events(records)

        assert exc_info.value.index == 2
        assert str(exc_info.value).startswith("Record 2:")
