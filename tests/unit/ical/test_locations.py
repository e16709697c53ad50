"""Unit tests for location conversion."""

import pytest
from icalendar import Event

from jmapical.ical.locations import is_end_timezone, locations_from_ical, locations_to_ical

LOCATIONS_VEVENT = (
    "BEGIN:VEVENT\r\n"
    "DTSTART;TZID=Europe/Berlin:20240115T090000\r\n"
    "LOCATION;X-JMAP-ID=office;ALTREP=\"https://example.com/office\":Office\r\n"
    "GEO:52.52;13.405\r\n"
    "CONFERENCE;VALUE=URI;LABEL=Video;FEATURE=VIDEO,AUDIO;X-JMAP-ID=call:"
    "https://meet.example.com/x\r\n"
    "X-JMAP-LOCATION;X-JMAP-ID=annex;X-JMAP-REL=nearby:Annex\r\n"
    "END:VEVENT\r\n"
)


@pytest.fixture
def located_event() -> Event:
    return Event.from_ical(LOCATIONS_VEVENT)


class TestLocationsFromICal:
    """Test location property conversion."""

    def test_locations_from_ical_when_properties_then_all_mapped(
        self, read_ctx, located_event
    ) -> None:
        """Test LOCATION, GEO, CONFERENCE and vendor locations."""
        read_ctx.tzid_start = "Europe/Berlin"

        locations = locations_from_ical(read_ctx, located_event)

        assert locations["office"]["name"] == "Office"
        assert locations["office"]["uri"] == "https://example.com/office"
        assert locations["office"]["rel"] == "unknown"
        assert locations["call"]["rel"] == "virtual"
        assert locations["call"]["name"] == "Video"
        assert locations["call"]["uri"] == "https://meet.example.com/x"
        assert locations["call"]["features"] == ["video", "audio"]
        assert locations["annex"]["rel"] == "nearby"
        geo = [loc for loc in locations.values() if loc.get("coordinates") == "geo:52.52,13.405"]
        assert len(geo) == 1

    def test_locations_from_ical_when_generated_ids_then_stable(self, read_ctx) -> None:
        """Test that locations without X-JMAP-ID get the same id every time."""
        text = "BEGIN:VEVENT\r\nLOCATION:Somewhere\r\nEND:VEVENT\r\n"
        first = locations_from_ical(read_ctx, Event.from_ical(text))
        second = locations_from_ical(read_ctx, Event.from_ical(text))
        assert list(first) == list(second)

    def test_locations_from_ical_when_none_then_none(self, read_ctx) -> None:
        """Test events without locations."""
        assert locations_from_ical(read_ctx, Event()) is None


class TestLocationsToICal:
    """Test location object conversion."""

    def test_locations_to_ical_when_several_then_first_is_location(self, write_ctx) -> None:
        """Test the property chosen for each location."""
        event = Event()
        locations_to_ical(
            write_ctx,
            event,
            {
                "office": {"name": "Office", "uri": "https://example.com/office"},
                "call": {"name": "Video", "uri": "https://meet.example.com/x", "rel": "virtual"},
                "annex": {"name": "Annex", "description": "Second floor"},
            },
        )

        assert not write_ctx.has_invalid()
        assert str(event["LOCATION"]) == "Office"
        assert event["LOCATION"].params["ALTREP"] == "https://example.com/office"
        assert str(event["CONFERENCE"]) == "https://meet.example.com/x"
        assert event["CONFERENCE"].params["LABEL"] == "Video"
        assert str(event["X-JMAP-LOCATION"]) == "Annex"
        assert event["X-JMAP-LOCATION"].params["X-JMAP-DESCRIPTION"] == "Second floor"

    def test_locations_to_ical_when_end_timezone_then_skipped(self, write_ctx) -> None:
        """Test that end timezone locations are not written as locations."""
        event = Event()
        locations_to_ical(write_ctx, event, {"end": {"timeZone": "America/New_York", "rel": "end"}})
        for name in ("LOCATION", "CONFERENCE", "X-JMAP-LOCATION"):
            assert name not in event

    @pytest.mark.parametrize(
        "loc,path",
        [
            ({}, "locations/l1"),
            ("Office", "locations/l1"),
            ({"name": 7}, "locations/l1/name"),
            ({"name": "Office", "timeZone": "Mars/Olympus"}, "locations/l1/timeZone"),
            ({"name": "Office", "features": ["video", 3]}, "locations/l1/features/1"),
            ({"name": "Office", "linkIds": "l1"}, "locations/l1/linkIds"),
        ],
    )
    def test_locations_to_ical_when_invalid_then_reports_path(self, write_ctx, loc, path) -> None:
        """Test invalid property paths of malformed locations."""
        event = Event()
        locations_to_ical(write_ctx, event, {"l1": loc})
        assert write_ctx.invalid_properties == [path]
        assert "LOCATION" not in event


class TestIsEndTimezone:
    """Test end timezone location detection."""

    @pytest.mark.parametrize(
        "loc,expected",
        [
            ({"rel": "end", "timeZone": "Europe/Paris"}, True),
            ({"rel": "end", "timeZone": None}, True),
            ({"rel": "end"}, False),
            ({"rel": "start", "timeZone": "Europe/Paris"}, False),
            ("end", False),
        ],
    )
    def test_is_end_timezone_when_location_then_expected(self, loc, expected) -> None:
        """Test which locations carry the end timezone."""
        assert is_end_timezone(loc) is expected
