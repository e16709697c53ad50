"""Unit tests for alert conversion."""

from datetime import datetime, timezone

import pytest
from icalendar import Calendar, Event

from jmapical.ical.alerts import alerts_from_ical, alerts_to_ical, split_alarms

ABSOLUTE_TRIGGER_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Example Corp//Calendar//EN
BEGIN:VEVENT
UID:alarm-1@example.com
DTSTAMP:20240101T120000Z
DTSTART:20240101T090000Z
DURATION:PT1H
SUMMARY:Review
BEGIN:VALARM
UID:abs
ACTION:DISPLAY
TRIGGER;VALUE=DATE-TIME:20240101T084500Z
DESCRIPTION:Soon
END:VALARM
BEGIN:VALARM
UID:mail
ACTION:EMAIL
TRIGGER;RELATED=END:PT5M
SUMMARY:Follow-up
DESCRIPTION:Write the minutes
ATTENDEE;CN=Bob:mailto:bob@example.com
END:VALARM
BEGIN:VALARM
UID:proc
ACTION:PROCEDURE
TRIGGER:-PT1M
END:VALARM
END:VEVENT
END:VCALENDAR
"""


@pytest.fixture
def alarm_event() -> Event:
    return next(iter(Calendar.from_ical(ABSOLUTE_TRIGGER_ICS).walk("VEVENT")))


@pytest.fixture
def timed_event() -> Event:
    event = Event()
    event.add("DTSTART", datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc))
    return event


class TestAlertsFromICal:
    """Test VALARM to alert conversion."""

    def test_alerts_from_ical_when_absolute_trigger_then_relative_offset(
        self, read_ctx, alarm_event
    ) -> None:
        """Test that absolute triggers become offsets from the start."""
        alerts = alerts_from_ical(read_ctx, alarm_event)

        assert alerts["abs"] == {
            "relativeTo": "before-start",
            "offset": "PT15M",
            "action": {"type": "display"},
        }

    def test_alerts_from_ical_when_email_then_recipients(self, read_ctx, alarm_event) -> None:
        """Test email action recipients, subject and body."""
        alerts = alerts_from_ical(read_ctx, alarm_event)

        assert alerts["mail"] == {
            "relativeTo": "after-end",
            "offset": "PT5M",
            "action": {
                "type": "email",
                "to": [{"name": "Bob", "email": "bob@example.com"}],
                "subject": "Follow-up",
                "textBody": "Write the minutes",
            },
        }

    def test_alerts_from_ical_when_unsupported_action_then_skipped(
        self, read_ctx, alarm_event
    ) -> None:
        """Test that PROCEDURE alarms are not converted."""
        assert "proc" not in alerts_from_ical(read_ctx, alarm_event)

    def test_alerts_from_ical_when_no_alarms_then_none(self, read_ctx, timed_event) -> None:
        """Test events without alarms."""
        assert alerts_from_ical(read_ctx, timed_event) is None


class TestAlertsToICal:
    """Test alert to VALARM conversion."""

    def test_alerts_to_ical_when_display_then_related_trigger(self, write_ctx, timed_event) -> None:
        """Test the trigger written for a relative alert."""
        alerts_to_ical(
            write_ctx,
            timed_event,
            {"a1": {"relativeTo": "before-end", "offset": "PT10M", "action": {"type": "display"}}},
        )

        assert not write_ctx.has_invalid()
        [alarm] = timed_event.subcomponents
        assert str(alarm["UID"]) == "a1"
        assert str(alarm["ACTION"]) == "DISPLAY"
        assert alarm["TRIGGER"].to_ical() == b"-PT10M"
        assert alarm["TRIGGER"].params["RELATED"] == "END"

    def test_alerts_to_ical_when_snoozed_then_snooze_alarm_round_trips(
        self, write_ctx, read_ctx, timed_event
    ) -> None:
        """Test that a snoozed alert adds a related snooze alarm."""
        alerts = {
            "a1": {
                "relativeTo": "before-start",
                "offset": "PT10M",
                "action": {"type": "display", "snoozed": "2024-01-01T08:55:00Z"},
            }
        }

        alerts_to_ical(write_ctx, timed_event, alerts)

        primaries, snoozes = split_alarms(timed_event)
        assert len(primaries) == 1
        assert list(snoozes) == ["a1"]
        assert "UID" not in snoozes["a1"]
        assert alerts_from_ical(read_ctx, timed_event) == alerts

    def test_alerts_to_ical_when_email_then_attendees(self, write_ctx, timed_event) -> None:
        """Test recipients of an email alert."""
        alerts_to_ical(
            write_ctx,
            timed_event,
            {
                "m": {
                    "relativeTo": "after-start",
                    "offset": "PT0S",
                    "action": {
                        "type": "email",
                        "to": [{"name": "Bob", "email": "bob@example.com"}],
                        "subject": "Starting",
                    },
                }
            },
        )

        [alarm] = timed_event.subcomponents
        assert str(alarm["ACTION"]) == "EMAIL"
        assert str(alarm["ATTENDEE"]) == "mailto:bob@example.com"
        assert alarm["ATTENDEE"].params["CN"] == "Bob"
        assert str(alarm["SUMMARY"]) == "Starting"

    def test_alerts_to_ical_when_none_then_removes_alarms(
        self, write_ctx, alarm_event
    ) -> None:
        """Test that null removes every alarm."""
        alerts_to_ical(write_ctx, alarm_event, None)
        assert alarm_event.walk("VALARM") == []

    def test_alerts_to_ical_when_unsupported_type_then_skipped(
        self, write_ctx, timed_event
    ) -> None:
        """Test that unknown action types are dropped silently."""
        alerts_to_ical(
            write_ctx,
            timed_event,
            {"a1": {"relativeTo": "before-start", "offset": "PT1M", "action": {"type": "sms"}}},
        )
        assert timed_event.subcomponents == []
        assert not write_ctx.has_invalid()

    @pytest.mark.parametrize(
        "alert,path",
        [
            (
                {"relativeTo": "before-start", "offset": "-PT5M", "action": {"type": "display"}},
                "alerts/a1/offset",
            ),
            (
                {"relativeTo": "before-start", "offset": "soon", "action": {"type": "display"}},
                "alerts/a1/offset",
            ),
            (
                {"relativeTo": "whenever", "offset": "PT5M", "action": {"type": "display"}},
                "alerts/a1/relativeTo",
            ),
            ({"relativeTo": "before-start", "offset": "PT5M"}, "alerts/a1/action"),
            (
                {"relativeTo": "before-start", "offset": "PT5M", "action": {"type": "email"}},
                "alerts/a1/action/to",
            ),
            (
                {
                    "relativeTo": "before-start",
                    "offset": "PT5M",
                    "action": {"type": "display", "snoozed": "2024-01-01T08:55:00"},
                },
                "alerts/a1/action/snoozed",
            ),
        ],
    )
    def test_alerts_to_ical_when_invalid_then_reports_path(
        self, write_ctx, timed_event, alert, path
    ) -> None:
        """Test invalid property paths of malformed alerts."""
        alerts_to_ical(write_ctx, timed_event, {"a1": alert})
        assert write_ctx.invalid_properties == [path]
        assert timed_event.subcomponents == []

    def test_alerts_to_ical_when_earlier_field_invalid_then_action_still_validated(
        self, write_ctx, timed_event
    ) -> None:
        """Test that alert fields are checked even after another property failed."""
        write_ctx.invalid("priority")

        alerts_to_ical(
            write_ctx,
            timed_event,
            {
                "a1": {
                    "relativeTo": "before-start",
                    "offset": "PT5M",
                    "action": {"type": "display", "snoozed": "later", "acknowledged": "garbage"},
                }
            },
        )

        assert write_ctx.invalid_properties == [
            "priority",
            "alerts/a1/action/snoozed",
            "alerts/a1/action/acknowledged",
        ]
        assert timed_event.subcomponents == []
