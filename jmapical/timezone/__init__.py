"""
Timezone package for jmapical.

Resolves timezone identifiers with a zoneinfo + pytz fallback strategy.

Example usage:
    >>> from jmapical.timezone import resolve_timezone, tzid_from_property
    >>>
    >>> # UTC aliases resolve to the canonical UTC zone
    >>> tz = resolve_timezone("Etc/UTC")
    >>>
    >>> # Identify the zone of a parsed DTSTART
    >>> tzid = tzid_from_property(event.get("DTSTART"))
"""

from .service import (
    UTC_TZID,
    TimezoneService,
    as_datetime,
    get_timezone_service,
    now_utc,
    property_datetime,
    resolve_timezone,
    tzid_from_property,
)

__all__ = [
    "UTC_TZID",
    "TimezoneService",
    "as_datetime",
    "get_timezone_service",
    "now_utc",
    "property_datetime",
    "resolve_timezone",
    "tzid_from_property",
]
