"""Unit tests for date-time and duration value helpers."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from icalendar import Event

from jmapical.ical.values import (
    event_end,
    format_duration,
    format_local,
    format_utc,
    parse_duration,
    parse_local,
    parse_utc,
)

BERLIN = ZoneInfo("Europe/Berlin")


class TestFormatting:
    """Test rendering of date-time strings."""

    def test_format_local_when_aware_then_wall_clock(self) -> None:
        """Test that the zone is not rendered."""
        assert format_local(datetime(2024, 1, 15, 9, 5, 7, tzinfo=BERLIN)) == "2024-01-15T09:05:07"

    def test_format_local_when_date_then_midnight(self) -> None:
        """Test dates of all-day events."""
        assert format_local(date(2024, 3, 1)) == "2024-03-01T00:00:00"

    def test_format_utc_when_aware_then_converted(self) -> None:
        """Test conversion to UTC."""
        assert format_utc(datetime(2024, 1, 15, 9, 0, tzinfo=BERLIN)) == "2024-01-15T08:00:00Z"


class TestParsing:
    """Test parsing of date-time and duration strings."""

    def test_parse_local_when_zone_then_aware(self) -> None:
        """Test localizing to a zone."""
        value = parse_local("2024-01-15T09:00:00", BERLIN)
        assert value == datetime(2024, 1, 15, 9, 0, tzinfo=BERLIN)

    def test_parse_local_when_all_day_then_date(self) -> None:
        """Test that floating all-day values are dates."""
        assert parse_local("2024-03-01T00:00:00", None, is_allday=True) == date(2024, 3, 1)
        assert parse_local("2024-03-01T10:00:00", None, is_allday=True) is None

    @pytest.mark.parametrize(
        "text",
        ["2024-01-15", "2024-01-15T09:00:00Z", "2024-02-30T09:00:00", "tomorrow", None, 5],
    )
    def test_parse_local_when_malformed_then_none(self, text) -> None:
        """Test rejected local date-times."""
        assert parse_local(text) is None

    def test_parse_utc_when_z_suffix_then_utc(self) -> None:
        """Test UTC date-time strings."""
        assert parse_utc("2024-01-15T08:00:00Z") == datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)
        assert parse_utc("2024-01-15T08:00:00") is None

    def test_parse_duration_when_text_then_timedelta(self) -> None:
        """Test duration parsing and formatting."""
        assert parse_duration("PT1H30M") == timedelta(hours=1, minutes=30)
        assert parse_duration("P1D") == timedelta(days=1)
        assert parse_duration("an hour") is None
        assert format_duration(timedelta(hours=1, minutes=30)) == "PT1H30M"


class TestEventEnd:
    """Test end computation from component properties."""

    def test_event_end_when_duration_then_start_plus_duration(self) -> None:
        """Test DTSTART plus DURATION."""
        event = Event()
        event.add("DTSTART", datetime(2024, 1, 15, 9, 0, tzinfo=BERLIN))
        event.add("DURATION", timedelta(hours=2))
        assert event_end(event) == datetime(2024, 1, 15, 11, 0, tzinfo=BERLIN)

    def test_event_end_when_all_day_without_end_then_one_day(self) -> None:
        """Test the implicit length of all-day events."""
        event = Event()
        event.add("DTSTART", date(2024, 3, 1))
        assert event_end(event) == date(2024, 3, 2)

    def test_event_end_when_timed_without_end_then_start(self) -> None:
        """Test the implicit length of timed events."""
        event = Event()
        event.add("DTSTART", datetime(2024, 1, 15, 9, 0))
        assert event_end(event) == datetime(2024, 1, 15, 9, 0)
