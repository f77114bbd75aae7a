"""Unit tests for defensive assistant-reply parsing and timestamp repair."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone

import pytest

from invite_ai.exceptions import MalformedResponseError
from invite_ai.models.event import EventPayload
from invite_ai.parser import (
    build_event,
    next_midnight,
    parse_event,
    parse_event_payload,
    parse_timestamp,
    repair_times,
    slice_json_object,
)

_UTC = timezone.utc
_NOW = datetime(2025, 3, 5, 14, 30, 15, tzinfo=_UTC)


# ---------------------------------------------------------------------------
# JSON slicing
# ---------------------------------------------------------------------------


class TestSliceJsonObject:
    """First-brace-to-last-brace slicing."""

    def test_prose_around_object_removed(self) -> None:
        raw = 'Sure! Here\'s the event: {"title":"Meeting"} Thanks.'

        assert slice_json_object(raw) == '{"title":"Meeting"}'

    def test_markdown_fence_removed(self) -> None:
        raw = '```json\n{"title": "Gig", "location": "Club"}\n```'

        assert slice_json_object(raw) == '{"title": "Gig", "location": "Club"}'

    def test_nested_braces_keep_outermost(self) -> None:
        raw = 'x {"a": {"b": 1}} y'

        assert slice_json_object(raw) == '{"a": {"b": 1}}'

    def test_no_braces_returned_unchanged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="invite_ai.parser"):
            assert slice_json_object("no json here") == "no json here"

        assert any("JSON object markers" in r.message for r in caplog.records)

    def test_reversed_braces_returned_unchanged(self) -> None:
        assert slice_json_object("} oops {") == "} oops {"


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------


class TestParseEventPayload:
    """JSON decoding and schema validation."""

    def test_full_payload(self) -> None:
        raw = json.dumps(
            {
                "title": "Team lunch",
                "description": "Monthly lunch",
                "location": "Cafe Roma",
                "start_time": "2025-03-10T12:00:00Z",
                "end_time": "2025-03-10T13:00:00Z",
            }
        )

        payload = parse_event_payload(raw)

        assert payload.title == "Team lunch"
        assert payload.location == "Cafe Roma"
        assert payload.start_time == "2025-03-10T12:00:00Z"

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(MalformedResponseError) as exc_info:
            parse_event_payload("Sorry, I could not find an event {title: nope}")

        assert exc_info.value.raw_response.startswith("Sorry")
        assert "failed to parse event data" in str(exc_info.value)

    def test_no_json_at_all_raises(self) -> None:
        with pytest.raises(MalformedResponseError):
            parse_event_payload("I could not find any event in this image.")

    def test_schema_mismatch_raises(self) -> None:
        with pytest.raises(MalformedResponseError, match="does not match schema"):
            parse_event_payload('{"title": ["a", "list"]}')

    def test_error_stage_is_parse(self) -> None:
        with pytest.raises(MalformedResponseError) as exc_info:
            parse_event_payload("{broken")

        assert exc_info.value.stage == "parse"


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


class TestParseTimestamp:
    """RFC 3339 parsing."""

    def test_utc_designator(self) -> None:
        assert parse_timestamp("2025-03-10T16:00:00Z") == datetime(
            2025, 3, 10, 16, 0, tzinfo=_UTC
        )

    def test_numeric_offset_converted_to_utc(self) -> None:
        parsed = parse_timestamp("2025-03-10T16:00:00+03:00")

        assert parsed == datetime(2025, 3, 10, 13, 0, tzinfo=_UTC)
        assert parsed is not None and parsed.utcoffset() == timedelta(0)

    @pytest.mark.parametrize(
        "value", ["", "   ", "tomorrow at 5", "2025-03-10T16:00:00", "2025-13-40T00:00:00Z"]
    )
    def test_invalid_values_return_none(self, value: str) -> None:
        assert parse_timestamp(value) is None


class TestRepairTimes:
    """Fallback policy for missing or invalid times."""

    def test_valid_times_kept(self) -> None:
        start, end = repair_times("2025-03-10T16:00:00Z", "2025-03-10T18:30:00Z", _NOW)

        assert start == datetime(2025, 3, 10, 16, 0, tzinfo=_UTC)
        assert end == datetime(2025, 3, 10, 18, 30, tzinfo=_UTC)

    def test_empty_start_uses_now(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="invite_ai.parser"):
            start, end = repair_times("", "", _NOW)

        assert start == _NOW
        assert end == _NOW + timedelta(hours=1)
        assert any("Start time was empty" in r.message for r in caplog.records)

    def test_invalid_start_uses_now(self) -> None:
        start, _ = repair_times("next Tuesday", "2025-03-10T18:00:00Z", _NOW)

        assert start == _NOW

    def test_empty_end_defaults_to_one_hour(self) -> None:
        start, end = repair_times("2025-03-10T16:00:00Z", "", _NOW)

        assert end - start == timedelta(hours=1)

    def test_invalid_end_defaults_to_one_hour(self) -> None:
        start, end = repair_times("2025-03-10T16:00:00Z", "late", _NOW)

        assert end == datetime(2025, 3, 10, 17, 0, tzinfo=_UTC)

    def test_midnight_start_with_empty_end_is_all_day(self) -> None:
        start, end = repair_times("2025-03-10T00:00:00Z", "", _NOW)

        assert start == datetime(2025, 3, 10, tzinfo=_UTC)
        assert end == datetime(2025, 3, 11, tzinfo=_UTC)

    def test_midnight_start_with_invalid_end_is_all_day(self) -> None:
        _, end = repair_times("2025-12-31T00:00:00Z", "??", _NOW)

        assert end == datetime(2026, 1, 1, tzinfo=_UTC)

    def test_midnight_in_own_offset_is_all_day(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="invite_ai.parser"):
            start, end = repair_times("2025-03-10T00:00:00+03:00", "", _NOW)

        assert start == datetime(2025, 3, 9, 21, 0, tzinfo=_UTC)
        assert end == datetime(2025, 3, 10, 21, 0, tzinfo=_UTC)
        assert end.utcoffset() == timedelta(0)
        assert any("all-day" in r.message for r in caplog.records)

    def test_utc_midnight_with_offset_is_timed(self) -> None:
        start, end = repair_times("2025-03-10T03:00:00+03:00", "", _NOW)

        assert start == datetime(2025, 3, 10, tzinfo=_UTC)
        assert end - start == timedelta(hours=1)

    def test_end_before_start_left_alone(self) -> None:
        start, end = repair_times("2025-03-10T16:00:00Z", "2025-03-10T15:00:00Z", _NOW)

        assert end < start

    def test_now_with_local_offset_normalised(self) -> None:
        local_now = datetime(2025, 3, 5, 17, 30, tzinfo=timezone(timedelta(hours=3)))

        start, _ = repair_times("", "", local_now)

        assert start == datetime(2025, 3, 5, 14, 30, tzinfo=_UTC)
        assert start.utcoffset() == timedelta(0)


def test_next_midnight_crosses_month() -> None:
    assert next_midnight(datetime(2025, 2, 28, 9, 15, tzinfo=_UTC)) == datetime(
        2025, 3, 1, tzinfo=_UTC
    )


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


class TestParseEvent:
    """Raw reply straight to Event."""

    def test_prose_wrapped_reply_with_empty_times(self) -> None:
        raw = (
            'Sure! Here\'s the event: {"title":"Meeting","start_time":"",'
            '"end_time":""} Thanks.'
        )
        before = datetime.now(_UTC)

        event = parse_event(raw, datetime.now(_UTC))

        assert event.title == "Meeting"
        assert abs(event.start_time - before) < timedelta(seconds=5)
        assert event.end_time - event.start_time == timedelta(hours=1)

    def test_all_day_reply(self) -> None:
        raw = '{"title": "Festival", "start_time": "2025-03-10T00:00:00Z", "end_time": ""}'

        event = parse_event(raw, _NOW)

        assert event.end_time == datetime(2025, 3, 11, tzinfo=_UTC)
        assert event.is_all_day

    def test_build_event_copies_text_fields(self) -> None:
        payload = EventPayload(
            title="Gig",
            description="Live music",
            location="The Hall",
            start_time="2025-04-01T20:00:00Z",
            end_time="2025-04-01T23:00:00Z",
        )

        event = build_event(payload, _NOW)

        assert (event.title, event.description, event.location) == (
            "Gig",
            "Live music",
            "The Hall",
        )

    def test_malformed_reply_raises(self) -> None:
        with pytest.raises(MalformedResponseError):
            parse_event("No event found, sorry!", _NOW)
