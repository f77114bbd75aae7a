"""Unit tests for timezone loading, offsets and user-typed offsets."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from invite_ai.exceptions import InvalidTimezoneError
from invite_ai.timezones import (
    UTC_NAME,
    current_offset_hours,
    format_timezone_for_display,
    load_zone,
    parse_timezone,
)

_WINTER = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
_SUMMER = datetime(2025, 7, 15, 12, 0, tzinfo=timezone.utc)


class TestLoadZone:
    """Zone resolution with UTC fallback."""

    def test_known_zone(self) -> None:
        zone, name = load_zone("Europe/London")

        assert name == "Europe/London"
        assert zone.key == "Europe/London"

    @pytest.mark.parametrize("name", ["Mars/Olympus", "", "   ", "../etc/passwd"])
    def test_unknown_zone_falls_back_to_utc(
        self, name: str, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="invite_ai.timezones"):
            zone, resolved = load_zone(name)

        assert resolved == UTC_NAME
        assert zone.key == "UTC"
        assert any("falling back to UTC" in r.message for r in caplog.records)


class TestCurrentOffsetHours:
    """Whole-hour offsets, truncated toward zero."""

    def test_utc_is_zero(self) -> None:
        assert current_offset_hours(ZoneInfo("UTC"), _WINTER) == 0

    def test_positive_whole_hours(self) -> None:
        assert current_offset_hours(ZoneInfo("Etc/GMT-3"), _WINTER) == 3

    def test_negative_whole_hours(self) -> None:
        assert current_offset_hours(ZoneInfo("America/New_York"), _WINTER) == -5

    def test_half_hour_truncated(self) -> None:
        assert current_offset_hours(ZoneInfo("Asia/Kolkata"), _WINTER) == 5

    def test_negative_half_hour_truncated_toward_zero(self) -> None:
        assert current_offset_hours(ZoneInfo("America/St_Johns"), _WINTER) == -3

    def test_offset_follows_the_given_moment(self) -> None:
        zone = ZoneInfo("Europe/London")

        assert current_offset_hours(zone, _WINTER) == 0
        assert current_offset_hours(zone, _SUMMER) == 1

    def test_defaults_to_now(self) -> None:
        assert current_offset_hours(ZoneInfo("UTC")) == 0


class TestParseTimezone:
    """User-typed timezone text."""

    @pytest.mark.parametrize("name", ["Europe/London", "Asia/Tokyo", "UTC"])
    def test_iana_names_pass_through(self, name: str) -> None:
        assert parse_timezone(name) == name

    @pytest.mark.parametrize("text", ["GMT", "gmt", " utc "])
    def test_bare_gmt_is_utc(self, text: str) -> None:
        assert parse_timezone(text) == UTC_NAME

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("GMT+3", "Etc/GMT-3"),
            ("gmt-5", "Etc/GMT+5"),
            ("UTC + 2", "Etc/GMT-2"),
            ("GMT+14", "Etc/GMT-14"),
        ],
    )
    def test_offsets_map_to_inverted_etc_zones(self, text: str, expected: str) -> None:
        assert parse_timezone(text) == expected

    def test_minutes_below_thirty_round_down(self) -> None:
        assert parse_timezone("GMT+5:15") == "Etc/GMT-5"

    def test_minutes_from_thirty_round_up(self) -> None:
        assert parse_timezone("GMT+5:30") == "Etc/GMT-6"

    def test_result_loads_as_a_zone(self) -> None:
        _, name = load_zone(parse_timezone("GMT-7"))

        assert name == "Etc/GMT+7"

    def test_hours_out_of_range(self) -> None:
        with pytest.raises(InvalidTimezoneError, match="hours"):
            parse_timezone("GMT+15")

    def test_minutes_out_of_range(self) -> None:
        with pytest.raises(InvalidTimezoneError, match="minutes"):
            parse_timezone("GMT+3:75")

    @pytest.mark.parametrize("text", ["Mars/Olympus", "GMT+", "three", "EST+5"])
    def test_garbage_rejected(self, text: str) -> None:
        with pytest.raises(InvalidTimezoneError, match="invalid timezone format"):
            parse_timezone(text)

    def test_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_timezone("nowhere")


class TestFormatTimezoneForDisplay:
    """Undoing the Etc/GMT sign inversion."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Etc/GMT-3", "GMT+3"),
            ("Etc/GMT+5", "GMT-5"),
            ("Etc/GMT", "GMT+0"),
            ("Europe/London", "Europe/London"),
            ("UTC", "UTC"),
        ],
    )
    def test_display(self, name: str, expected: str) -> None:
        assert format_timezone_for_display(name) == expected
