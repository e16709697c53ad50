"""Recurrence rule conversion between RRULE properties and recurrenceRule objects."""

import logging
import re
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, List, Optional

from dateutil.rrule import rrulestr
from icalendar.prop import vDDDTypes, vRecur

from ..timezone import as_datetime, get_timezone_service, property_datetime
from .context import ConversionContext, PropStatus
from .exceptions import ICalStructureError
from .values import format_local, parse_local
from .xparams import get_prop, remove_all

logger = logging.getLogger(__name__)

FREQUENCIES = ("yearly", "monthly", "weekly", "daily", "hourly", "minutely", "secondly")
WEEKDAYS = ("mo", "tu", "we", "th", "fr", "sa", "su")
SKIP_VALUES = ("omit", "backward", "forward")

_BYDAY_RE = re.compile(r"^([+-]?\d{1,2})?(MO|TU|WE|TH|FR|SA|SU)$")
_BYMONTH_RE = re.compile(r"^(\d{1,2})(L?)$")
_LEAP_MONTH_RE = re.compile(r"BYMONTH=[^;]*L")

# RRULE part, recurrenceRule member, lowest and highest value, zero allowed
_INTEGER_PARTS = (
    ("BYMONTHDAY", "byDate", -31, 31, False),
    ("BYYEARDAY", "byYearDay", -366, 366, False),
    ("BYWEEKNO", "byWeekNo", -53, 53, False),
    ("BYHOUR", "byHour", 0, 23, True),
    ("BYMINUTE", "byMinute", 0, 59, True),
    ("BYSECOND", "bySecond", 0, 59, True),
    ("BYSETPOS", "bySetPosition", -366, 366, False),
)


def parse_rrule_string(rrule_string: str) -> Dict[str, str]:
    """Split an RRULE value into its upper-cased parts.

    Args:
        rrule_string: RRULE value (e.g. "FREQ=WEEKLY;INTERVAL=1;BYDAY=MO")

    Returns:
        Dictionary mapping part names to their raw values
    """
    parts: Dict[str, str] = {}
    for part in rrule_string.split(";"):
        if "=" not in part:
            continue
        key, value = part.split("=", 1)
        parts[key.strip().upper()] = value.strip()
    return parts


def _int_list(value: str) -> List[int]:
    result = []
    for item in value.split(","):
        try:
            result.append(int(item))
        except ValueError:
            logger.debug(f"Ignoring malformed RRULE value: {item}")
    return sorted(result)


def _until_from_ical(ctx: ConversionContext, text: str) -> Optional[str]:
    try:
        until = vDDDTypes.from_ical(text)
    except ValueError:
        logger.debug(f"Ignoring malformed RRULE UNTIL: {text}")
        return None

    if isinstance(until, datetime) and until.tzinfo is not None:
        tz = get_timezone_service().resolve(ctx.tzid_start)
        until = until.astimezone(tz or dt_timezone.utc)
    return format_local(until)


def recurrence_from_ical(ctx: ConversionContext, comp: Any) -> Optional[dict]:
    """Convert the RRULE of comp to a recurrenceRule object.

    Args:
        ctx: Read context, with the start timezone already determined
        comp: VEVENT component

    Returns:
        recurrenceRule object, or None if the event does not recur
    """
    prop = get_prop(comp, "RRULE")
    if prop is None:
        return None

    parts = parse_rrule_string(prop.to_ical().decode("utf-8"))
    if "FREQ" not in parts:
        return None

    recur: Dict[str, Any] = {"frequency": parts["FREQ"].lower()}

    try:
        interval = int(parts.get("INTERVAL", "1"))
    except ValueError:
        interval = 1
    if interval > 1:
        recur["interval"] = interval

    if "RSCALE" in parts:
        recur["rscale"] = parts["RSCALE"].lower()
    if "SKIP" in parts:
        recur["skip"] = parts["SKIP"].lower()

    firstday = parts.get("WKST", "MO").lower()
    if firstday != "mo":
        recur["firstDayOfWeek"] = firstday

    if "BYDAY" in parts:
        by_day = []
        for item in parts["BYDAY"].split(","):
            match = _BYDAY_RE.match(item.strip().upper())
            if not match:
                continue
            entry: Dict[str, Any] = {"day": match.group(2).lower()}
            if match.group(1):
                entry["nthOfPeriod"] = int(match.group(1))
            by_day.append(entry)
        recur["byDay"] = by_day

    if "BYMONTH" in parts:
        recur["byMonth"] = [item.strip().upper() for item in parts["BYMONTH"].split(",")]

    for part, name, _low, _high, _zero in _INTEGER_PARTS:
        if part in parts:
            recur[name] = _int_list(parts[part])

    if "COUNT" in parts:
        try:
            recur["count"] = int(parts["COUNT"])
        except ValueError:
            logger.debug(f"Ignoring malformed RRULE COUNT: {parts['COUNT']}")
    elif "UNTIL" in parts:
        until = _until_from_ical(ctx, parts["UNTIL"])
        if until is not None:
            recur["until"] = until

    return recur


def _read_weekday(ctx: ConversionContext, obj: dict, name: str, mandatory: bool) -> Optional[str]:
    status, value = ctx.read_prop(obj, name, str, mandatory)
    if status is not PropStatus.FOUND:
        return None
    if value.lower() not in WEEKDAYS:
        ctx.invalid(name)
        return None
    return value.upper()


def _by_day_to_ical(ctx: ConversionContext, by_day: Any) -> Optional[str]:
    if not isinstance(by_day, list):
        ctx.invalid("byDay")
        return None

    items = []
    for i, entry in enumerate(by_day):
        with ctx.prop("byDay", i):
            if not isinstance(entry, dict):
                ctx.invalid()
                continue
            day = _read_weekday(ctx, entry, "day", mandatory=True)
            status, nth = ctx.read_prop(entry, "nthOfPeriod", int)
            if status is PropStatus.FOUND and nth == 0:
                ctx.invalid("nthOfPeriod")
                continue
            if day is None or status is PropStatus.INVALID:
                continue
            items.append(f"{nth:+d}{day}" if nth else day)
    return ",".join(items)


def _by_month_to_ical(ctx: ConversionContext, by_month: Any) -> Optional[str]:
    if not isinstance(by_month, list):
        ctx.invalid("byMonth")
        return None

    items = []
    for i, value in enumerate(by_month):
        match = _BYMONTH_RE.match(value.upper()) if isinstance(value, str) else None
        if not match or not 1 <= int(match.group(1)) <= 12:
            with ctx.prop("byMonth", i):
                ctx.invalid()
            continue
        items.append(f"{int(match.group(1))}{match.group(2)}")
    return ",".join(items)


def _integers_to_ical(
    ctx: ConversionContext, name: str, values: Any, low: int, high: int, zero: bool
) -> Optional[str]:
    if not isinstance(values, list):
        ctx.invalid(name)
        return None

    items = []
    for i, value in enumerate(values):
        valid = isinstance(value, int) and not isinstance(value, bool)
        if valid and (value < low or value > high or (value == 0 and not zero)):
            valid = False
        if not valid:
            with ctx.prop(name, i):
                ctx.invalid()
            continue
        items.append(str(value))
    return ",".join(items)


def _until_to_ical(ctx: ConversionContext, text: str) -> Optional[str]:
    until = parse_local(text, ctx.tzstart, ctx.is_allday)
    if until is None:
        return None
    if isinstance(until, datetime) and until.tzinfo is not None:
        until = until.astimezone(dt_timezone.utc)
    return vDDDTypes(until).to_ical().decode("utf-8")


def _check_rule(rule: str, comp: Any) -> None:
    """Parse an assembled rule, raising ValueError if it is malformed."""
    recur = vRecur.from_ical(rule)
    if "RSCALE" in recur or "SKIP" in recur or _LEAP_MONTH_RE.search(rule):
        return

    dtstart = as_datetime(property_datetime(get_prop(comp, "DTSTART")))
    if dtstart is not None:
        rrulestr(rule, dtstart=dtstart)


def recurrence_to_ical(ctx: ConversionContext, comp: Any, recur: Any) -> None:
    """Replace the RRULE of comp with the given recurrenceRule object.

    Args:
        ctx: Write context, with start timezone and all-day flag resolved
        comp: VEVENT component to modify
        recur: recurrenceRule object, or None to remove the rule

    Raises:
        ICalStructureError: If the assembled rule cannot be parsed
    """
    remove_all(comp, "RRULE")
    if recur is None:
        return

    with ctx.prop("recurrenceRule"):
        if not isinstance(recur, dict):
            ctx.invalid()
            return

        parts = []

        status, frequency = ctx.read_prop(recur, "frequency", str, mandatory=True)
        if status is PropStatus.FOUND:
            if frequency.lower() in FREQUENCIES:
                parts.append(f"FREQ={frequency.upper()}")
            else:
                ctx.invalid("frequency")

        status, interval = ctx.read_prop(recur, "interval", int)
        if status is PropStatus.FOUND:
            if interval < 1:
                ctx.invalid("interval")
            else:
                parts.append(f"INTERVAL={interval}")

        status, rscale = ctx.read_prop(recur, "rscale", str)
        if status is PropStatus.FOUND:
            parts.append(f"RSCALE={rscale.upper()}")

        status, skip = ctx.read_prop(recur, "skip", str)
        if status is PropStatus.FOUND:
            if skip.lower() in SKIP_VALUES:
                parts.append(f"SKIP={skip.upper()}")
            else:
                ctx.invalid("skip")

        firstday = _read_weekday(ctx, recur, "firstDayOfWeek", mandatory=False)
        if firstday is not None:
            parts.append(f"WKST={firstday}")

        if "byDay" in recur:
            by_day = _by_day_to_ical(ctx, recur["byDay"])
            if by_day:
                parts.append(f"BYDAY={by_day}")

        if "byMonth" in recur:
            by_month = _by_month_to_ical(ctx, recur["byMonth"])
            if by_month:
                parts.append(f"BYMONTH={by_month}")

        for part, name, low, high, zero in _INTEGER_PARTS:
            if name in recur:
                values = _integers_to_ical(ctx, name, recur[name], low, high, zero)
                if values:
                    parts.append(f"{part}={values}")

        count = recur.get("count")
        until = recur.get("until")
        if count is not None and until is not None:
            ctx.invalid("count")
            ctx.invalid("until")
        elif count is not None:
            if isinstance(count, int) and not isinstance(count, bool) and count > 0:
                parts.append(f"COUNT={count}")
            else:
                ctx.invalid("count")
        elif until is not None:
            until_text = _until_to_ical(ctx, until)
            if until_text is None:
                ctx.invalid("until")
            else:
                parts.append(f"UNTIL={until_text}")

    if ctx.has_invalid():
        return

    rule = ";".join(parts)
    try:
        _check_rule(rule, comp)
    except ValueError as e:
        raise ICalStructureError(f"Invalid recurrence rule {rule!r}: {e}") from e

    comp.add("RRULE", vRecur.from_ical(rule))
