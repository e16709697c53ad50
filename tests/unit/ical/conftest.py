"""Shared fixtures for iCalendar conversion tests.

ICS fixtures are kept as literals so each test reads like the calendar data
it converts.
"""

import pytest
from icalendar import Calendar

from jmapical.ical.context import ConversionContext, Mode
from jmapical.ical.converter import EventConverter

# ============================================================================
# ICS Content Fixtures
# ============================================================================

MEETING_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Example Corp//Calendar//EN
BEGIN:VEVENT
UID:meeting-1@example.com
DTSTAMP:20240101T120000Z
CREATED:20240101T100000Z
SEQUENCE:2
DTSTART;TZID=Europe/Berlin:20240115T090000
DURATION:PT1H30M
SUMMARY;LANGUAGE=de:Teambesprechung
DESCRIPTION:Weekly sync
LOCATION;X-JMAP-ID=loc1:Room 101
ORGANIZER;CN=Alice:mailto:alice@example.com
ATTENDEE;CN=Alice;PARTSTAT=ACCEPTED;ROLE=CHAIR:mailto:alice@example.com
ATTENDEE;CN=Bob;PARTSTAT=TENTATIVE;RSVP=TRUE;X-JMAP-ID=bob:mailto:bob@Example.COM
CATEGORIES:work,meeting
STATUS:CONFIRMED
TRANSP:OPAQUE
CLASS:PRIVATE
PRIORITY:5
RRULE:FREQ=WEEKLY;BYDAY=MO;COUNT=10
BEGIN:VALARM
UID:alert1
ACTION:DISPLAY
TRIGGER;RELATED=START:-PT15M
DESCRIPTION:Reminder
END:VALARM
END:VEVENT
END:VCALENDAR
"""

ALLDAY_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Example Corp//Calendar//EN
BEGIN:VEVENT
UID:holiday-1@example.com
DTSTAMP:20240101T120000Z
DTSTART;VALUE=DATE:20240301
DTEND;VALUE=DATE:20240302
SUMMARY:Holiday
TRANSP:TRANSPARENT
END:VEVENT
END:VCALENDAR
"""

TIMED_END_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Example Corp//Calendar//EN
BEGIN:VEVENT
UID:review-1@example.com
DTSTAMP:20240101T120000Z
DTSTART;TZID=Europe/Berlin:20240301T090000
DTEND;TZID=Europe/Berlin:20240301T100000
SUMMARY:Design review
LOCATION;X-JMAP-ID=room:Room 7
ORGANIZER;CN=Alice:mailto:alice@example.com
ATTENDEE;CN=Alice;PARTSTAT=ACCEPTED:mailto:alice@example.com
ATTENDEE;CN=Carol;PARTSTAT=NEEDS-ACTION;RSVP=TRUE:mailto:carol@example.com
END:VEVENT
END:VCALENDAR
"""

RECURRING_WITH_OVERRIDES_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Example Corp//Calendar//EN
BEGIN:VEVENT
UID:series-1@example.com
DTSTAMP:20240101T120000Z
DTSTART;TZID=Europe/Berlin:20240108T090000
DURATION:PT1H
SUMMARY:Standup
RRULE:FREQ=WEEKLY;COUNT=5
EXDATE;TZID=Europe/Berlin:20240108T090000
END:VEVENT
BEGIN:VEVENT
UID:series-1@example.com
DTSTAMP:20240101T120000Z
RECURRENCE-ID;TZID=Europe/Berlin:20240115T090000
DTSTART;TZID=Europe/Berlin:20240115T090000
DURATION:PT1H
SUMMARY:Special standup
END:VEVENT
END:VCALENDAR
"""

SPLIT_ZONE_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Example Corp//Calendar//EN
BEGIN:VEVENT
UID:flight-1@example.com
DTSTAMP:20240101T120000Z
DTSTART;TZID=Europe/London:20240610T100000
DTEND;TZID=America/New_York;X-JMAP-ID=arrival:20240610T130000
SUMMARY:Flight
END:VEVENT
END:VCALENDAR
"""

FLOATING_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Example Corp//Calendar//EN
BEGIN:VEVENT
UID:floating-1@example.com
DTSTAMP:20240101T120000Z
DTSTART:20240520T080000
DTEND:20240520T083000
SUMMARY:Morning run
END:VEVENT
END:VCALENDAR
"""


@pytest.fixture
def meeting_calendar() -> Calendar:
    return Calendar.from_ical(MEETING_ICS)


@pytest.fixture
def allday_calendar() -> Calendar:
    return Calendar.from_ical(ALLDAY_ICS)


@pytest.fixture
def timed_end_calendar() -> Calendar:
    return Calendar.from_ical(TIMED_END_ICS)


@pytest.fixture
def recurring_calendar() -> Calendar:
    return Calendar.from_ical(RECURRING_WITH_OVERRIDES_ICS)


@pytest.fixture
def split_zone_calendar() -> Calendar:
    return Calendar.from_ical(SPLIT_ZONE_ICS)


@pytest.fixture
def floating_calendar() -> Calendar:
    return Calendar.from_ical(FLOATING_ICS)


# ============================================================================
# Converter and Context Fixtures
# ============================================================================


@pytest.fixture
def converter(test_settings) -> EventConverter:
    """Converter that does not add VTIMEZONE components."""
    return EventConverter(test_settings)


@pytest.fixture
def read_ctx(test_settings) -> ConversionContext:
    return ConversionContext(Mode.READ, settings=test_settings)


@pytest.fixture
def write_ctx(test_settings) -> ConversionContext:
    return ConversionContext(Mode.WRITE, settings=test_settings)


# ============================================================================
# Event Object Fixtures
# ============================================================================


@pytest.fixture
def minimal_event() -> dict:
    """Smallest event object a calendar can be created from."""
    return {
        "@type": "jsevent",
        "uid": "new-1@example.com",
        "title": "Lunch",
        "isAllDay": False,
        "start": "2024-04-02T12:00:00",
        "timeZone": "Europe/Paris",
        "duration": "PT1H",
    }

