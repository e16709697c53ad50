"""Core timezone service for jmapical.

Resolves timezone identifiers with a zoneinfo + pytz fallback strategy and
derives identifiers back from parsed iCalendar date-time values.
"""

import logging
from datetime import date, datetime, timedelta, timezone as dt_timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pytz

logger = logging.getLogger(__name__)

UTC_ALIASES = frozenset({"UTC", "Etc/UTC"})
UTC_TZID = "Etc/UTC"


class TimezoneService:
    """Timezone resolution for the converters.

    Identifiers resolve to zoneinfo zones, falling back to pytz for names the
    system zone database lacks. ``UTC`` and ``Etc/UTC`` always resolve to the
    canonical UTC zone.
    """

    def __init__(self) -> None:
        self._cache: dict = {}

    def resolve(self, tzid: Optional[str]) -> Optional[Any]:
        """Resolve a timezone identifier.

        Args:
            tzid: Timezone identifier such as ``Europe/Berlin``

        Returns:
            tzinfo object, or None if the identifier is unknown
        """
        if not tzid:
            return None
        if tzid in UTC_ALIASES:
            return dt_timezone.utc
        if tzid in self._cache:
            return self._cache[tzid]

        tz: Optional[Any] = None
        try:
            tz = ZoneInfo(tzid)
        except (ZoneInfoNotFoundError, ValueError):
            try:
                tz = pytz.timezone(tzid)
            except pytz.UnknownTimeZoneError:
                logger.debug(f"Unknown timezone: {tzid}")

        self._cache[tzid] = tz
        return tz

    def zone_id(self, tz: Optional[Any]) -> Optional[str]:
        """Return the identifier of a tzinfo object."""
        if tz is None:
            return None
        if tz is dt_timezone.utc or tz is pytz.utc:
            return UTC_TZID
        tzid = getattr(tz, "key", None) or getattr(tz, "zone", None)
        if tzid in UTC_ALIASES:
            return UTC_TZID
        return tzid

    def is_utc(self, tz: Optional[Any]) -> bool:
        """Return True if tz is the UTC zone."""
        return tz is not None and self.zone_id(tz) == UTC_TZID

    def same_zone(self, a: Optional[Any], b: Optional[Any]) -> bool:
        """Return True if both zones are the same zone (or both floating)."""
        if a is None or b is None:
            return a is None and b is None
        return self.zone_id(a) == self.zone_id(b)

    def guess(self, value: Any) -> Optional[str]:
        """Guess a timezone identifier from a parsed date-time.

        Args:
            value: Date-time (or date) parsed from a calendar property

        Returns:
            Identifier of the embedded zone if it can be resolved again, else None
        """
        if not isinstance(value, datetime) or value.tzinfo is None:
            return None
        tzid = self.zone_id(value.tzinfo)
        if tzid and self.resolve(tzid) is not None:
            return tzid
        return None

    def tzid_from_property(self, prop: Any, guess: bool = True) -> Optional[str]:
        """Determine the timezone identifier of a date-time property.

        Args:
            prop: Parsed date-time property (DTSTART, DTEND, EXDATE, ...)
            guess: Fall back to the value's embedded zone

        Returns:
            Timezone identifier, ``Etc/UTC`` for UTC values, None if floating
        """
        if prop is None:
            return None

        value = property_datetime(prop)
        params = getattr(prop, "params", {}) or {}
        tzid = params.get("TZID")
        if isinstance(tzid, list):
            tzid = tzid[0] if tzid else None

        if tzid:
            if self.resolve(tzid) is not None:
                return tzid
            return self.guess(value) if guess else None

        if isinstance(value, datetime) and value.tzinfo is not None:
            if self.is_utc(value.tzinfo) or value.tzname() == "UTC":
                return UTC_TZID
            return self.guess(value) if guess else None
        return None

    def localize(self, value: datetime, tz: Optional[Any]) -> datetime:
        """Attach tz to a naive wall-clock datetime."""
        if tz is None:
            return value
        if hasattr(tz, "localize"):
            return tz.localize(value)
        return value.replace(tzinfo=tz)

    def add_duration(self, value: Any, delta: timedelta) -> Any:
        """Add a duration in wall-clock time."""
        result = value + delta
        tz = getattr(value, "tzinfo", None)
        if tz is not None and hasattr(tz, "normalize"):
            result = tz.normalize(result)
        return result

    def convert(self, value: datetime, tz: Optional[Any]) -> datetime:
        """Convert an aware datetime to tz; floating values are returned as-is."""
        if tz is None or value.tzinfo is None:
            return value
        return value.astimezone(tz)

    def now_utc(self) -> datetime:
        """Get current time in UTC, truncated to seconds."""
        return datetime.now(dt_timezone.utc).replace(microsecond=0)


def property_datetime(prop: Any) -> Any:
    """Return the date, datetime or duration carried by a parsed property.

    Handles single values (``.dt``) as well as date lists (``.dts``).
    """
    if hasattr(prop, "dts"):
        return prop.dts[0].dt if prop.dts else None
    return getattr(prop, "dt", None)


def as_datetime(value: Any) -> Optional[datetime]:
    """Promote a date to a midnight datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return None


# Global service instance
_timezone_service: Optional[TimezoneService] = None


def get_timezone_service() -> TimezoneService:
    """Get global timezone service instance.

    Returns:
        Singleton TimezoneService instance.
    """
    if globals()["_timezone_service"] is None:
        globals()["_timezone_service"] = TimezoneService()
    return globals()["_timezone_service"]


# Convenience functions for direct use
def resolve_timezone(tzid: Optional[str]) -> Optional[Any]:
    """Resolve a timezone identifier."""
    return get_timezone_service().resolve(tzid)


def tzid_from_property(prop: Any, guess: bool = True) -> Optional[str]:
    """Determine the timezone identifier of a date-time property."""
    return get_timezone_service().tzid_from_property(prop, guess)


def now_utc() -> datetime:
    """Get current time in UTC."""
    return get_timezone_service().now_utc()
