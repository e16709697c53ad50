"""Date-time and duration value helpers shared by the converters.

Event objects carry date-times as local (``2024-01-01T09:00:00``) or UTC
(``2024-01-01T09:00:00Z``) strings and durations in iCalendar duration
syntax. These helpers translate between those strings and the Python values
the ``icalendar`` library stores in properties.
"""

import re
from datetime import date, datetime, timedelta, timezone as dt_timezone
from typing import Any, Optional, Union

from icalendar.prop import vDDDTypes, vDuration

from ..timezone import get_timezone_service
from .xparams import get_prop

_DATETIME_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})$")

ZERO_DURATION = "P0D"


def format_local(value: Union[date, datetime]) -> str:
    """Render the wall-clock time of value as a local date-time string."""
    if isinstance(value, datetime):
        hour, minute, second = value.hour, value.minute, value.second
    else:
        hour = minute = second = 0
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{hour:02d}:{minute:02d}:{second:02d}"
    )


def format_utc(value: Union[date, datetime]) -> str:
    """Render value in UTC with a trailing Z."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = value.astimezone(dt_timezone.utc)
    return format_local(value) + "Z"


def _parse_fields(text: Any) -> Optional[datetime]:
    if not isinstance(text, str):
        return None
    match = _DATETIME_RE.match(text)
    if not match:
        return None
    try:
        return datetime(*(int(group) for group in match.groups()))
    except ValueError:
        return None


def parse_local(text: Any, tz: Optional[Any] = None, is_allday: bool = False) -> Optional[Any]:
    """Parse a local date-time string.

    Args:
        text: String of the form ``YYYY-MM-DDTHH:MM:SS``
        tz: Zone the wall-clock time is in, None for floating
        is_allday: Require midnight and return a date when floating

    Returns:
        date, naive or aware datetime, or None if text is malformed
    """
    value = _parse_fields(text)
    if value is None:
        return None
    if is_allday:
        if value.hour or value.minute or value.second:
            return None
        if tz is None:
            return value.date()
    return get_timezone_service().localize(value, tz)


def parse_utc(text: Any) -> Optional[datetime]:
    """Parse a UTC date-time string, which must end in Z."""
    if not isinstance(text, str) or not text.endswith("Z"):
        return None
    value = _parse_fields(text[:-1])
    if value is None:
        return None
    return value.replace(tzinfo=dt_timezone.utc)


def parse_duration(text: Any) -> Optional[timedelta]:
    """Parse an iCalendar duration string, returning None if malformed."""
    if not isinstance(text, str):
        return None
    try:
        return vDuration.from_ical(text)
    except ValueError:
        return None


def format_duration(value: timedelta) -> str:
    return vDuration(value).to_ical().decode("utf-8")


def datetime_value(prop: Any) -> Optional[Any]:
    """Return the date-time carried by a property.

    Properties the ``icalendar`` library does not know (ACKNOWLEDGED,
    X-properties) are parsed from their text.
    """
    if prop is None:
        return None
    value = getattr(prop, "dt", None)
    if value is not None:
        return value
    try:
        return vDDDTypes.from_ical(str(prop))
    except ValueError:
        return None


def utc_datetime(value: Any) -> Any:
    """Make a datetime UTC, treating floating values as UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=dt_timezone.utc)
        return value.astimezone(dt_timezone.utc)
    return value


def event_start(comp: Any) -> Optional[Any]:
    """Return the DTSTART value of a component."""
    return datetime_value(get_prop(comp, "DTSTART"))


def event_end(comp: Any) -> Optional[Any]:
    """Return the end of a component from DTEND, or DTSTART plus DURATION.

    Without either, all-day events last one day and timed events end when
    they start.
    """
    end = datetime_value(get_prop(comp, "DTEND"))
    if end is not None:
        return end

    start = event_start(comp)
    if start is None:
        return None
    duration = datetime_value(get_prop(comp, "DURATION"))
    if isinstance(duration, timedelta):
        return get_timezone_service().add_duration(start, duration)
    if not isinstance(start, datetime):
        return start + timedelta(days=1)
    return start
