"""Read direction: VEVENT component to event object."""

import logging
from contextlib import nullcontext
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

from ..timezone import as_datetime, get_timezone_service
from .alerts import alerts_from_ical
from .context import ConversionContext
from .links import LINK_PREFIX, links_from_ical
from .locations import locations_from_ical
from .models import (
    JSEVENT_TYPE,
    PRIVACY_FROM_ICAL,
    STATUS_FROM_ICAL,
    EventProperty,
    EventStatus,
    FreeBusyStatus,
    Privacy,
)
from .overrides import overrides_from_ical
from .participants import participants_from_ical, reply_to_from_ical
from .properties import (
    html_description_from_ical,
    keywords_from_ical,
    locale_from_ical,
    related_to_from_ical,
)
from .recurrence import recurrence_from_ical
from .values import (
    ZERO_DURATION,
    datetime_value,
    event_end,
    event_start,
    format_duration,
    format_local,
    format_utc,
    utc_datetime,
)
from .xparams import XPROP_USEDEFAULTALERTS, get_prop

logger = logging.getLogger(__name__)


def _text(comp: Any, name: str) -> Optional[str]:
    prop = get_prop(comp, name)
    return str(prop) if prop is not None else None


def _utc_text(comp: Any, name: str) -> Optional[str]:
    value = datetime_value(get_prop(comp, name))
    if not isinstance(value, datetime):
        return None
    return format_utc(utc_datetime(value))


def _align(start: datetime, end: datetime) -> datetime:
    """Give a floating end the zone of an aware start, and vice versa."""
    if start.tzinfo is None and end.tzinfo is not None:
        return end.replace(tzinfo=None)
    if start.tzinfo is not None and end.tzinfo is None:
        return get_timezone_service().localize(end, start.tzinfo)
    return end


def duration_from_ical(comp: Any) -> str:
    """Compute the duration of a VEVENT from its start and end.

    Negative or unknown durations read as ``P0D``.
    """
    start = event_start(comp)
    end = event_end(comp)
    if start is None or end is None:
        return ZERO_DURATION

    if isinstance(start, datetime) or isinstance(end, datetime):
        start = as_datetime(start)
        end = _align(start, as_datetime(end))

    delta = end - start
    if delta <= timedelta(0):
        return ZERO_DURATION
    return format_duration(delta)


def _read_timing(ctx: ConversionContext, comp: Any) -> None:
    dtstart = get_prop(comp, "DTSTART")
    ctx.tzid_start = get_timezone_service().tzid_from_property(dtstart)
    start = event_start(comp)
    ctx.is_allday = isinstance(start, date) and not isinstance(start, datetime)
    if ctx.is_allday and ctx.tzid_start:
        logger.debug(f"Ignoring timezone {ctx.tzid_start} of an all-day event")
        ctx.tzid_start = None


def _prod_id(ctx: ConversionContext) -> Optional[str]:
    if ctx.calendar is None:
        return None
    return _text(ctx.calendar, "PRODID")


def _read_properties(ctx: ConversionContext, comp: Any) -> Dict[str, Any]:
    is_exc = ctx.is_exception
    event: Dict[str, Any] = {EventProperty.TYPE.value: JSEVENT_TYPE}

    _read_timing(ctx, comp)

    if ctx.wants(EventProperty.IS_ALL_DAY) and not is_exc:
        event["isAllDay"] = ctx.is_allday

    uid = _text(comp, "UID")
    if uid and not is_exc:
        event["uid"] = uid

    if ctx.wants(EventProperty.RELATED_TO) and not is_exc:
        event["relatedTo"] = related_to_from_ical(ctx, comp)

    if ctx.wants(EventProperty.PROD_ID) and not is_exc:
        event["prodId"] = _prod_id(ctx)

    if ctx.wants(EventProperty.CREATED):
        event["created"] = _utc_text(comp, "CREATED")

    if ctx.wants(EventProperty.UPDATED):
        event["updated"] = _utc_text(comp, "DTSTAMP")

    if ctx.wants(EventProperty.SEQUENCE):
        sequence = get_prop(comp, "SEQUENCE")
        event["sequence"] = int(sequence) if sequence is not None else 0

    if ctx.wants(EventProperty.PRIORITY):
        priority = get_prop(comp, "PRIORITY")
        if priority is not None:
            event["priority"] = int(priority)

    if ctx.wants(EventProperty.TITLE):
        event["title"] = _text(comp, "SUMMARY") or ""

    if ctx.wants(EventProperty.DESCRIPTION):
        event["description"] = _text(comp, "DESCRIPTION") or ""

    if ctx.wants(EventProperty.HTML_DESCRIPTION):
        event["htmlDescription"] = html_description_from_ical(ctx, comp)

    if ctx.wants(EventProperty.COLOR):
        color = _text(comp, "COLOR")
        if color:
            event["color"] = color

    if ctx.wants(EventProperty.KEYWORDS):
        event["keywords"] = keywords_from_ical(ctx, comp)

    if ctx.wants(EventProperty.LINKS):
        event["links"] = links_from_ical(ctx, comp, LINK_PREFIX)

    if ctx.wants(EventProperty.LOCALE):
        event["locale"] = locale_from_ical(ctx, comp)

    if ctx.wants(EventProperty.LOCATIONS):
        event["locations"] = locations_from_ical(ctx, comp)

    if ctx.wants(EventProperty.START):
        start = event_start(comp)
        event["start"] = format_local(start) if start is not None else None

    if ctx.wants(EventProperty.TIME_ZONE):
        event["timeZone"] = ctx.tzid_start if not ctx.is_allday else None

    if ctx.wants(EventProperty.DURATION):
        event["duration"] = duration_from_ical(comp)

    if ctx.wants(EventProperty.RECURRENCE_RULE) and not is_exc:
        event["recurrenceRule"] = recurrence_from_ical(ctx, comp)

    if ctx.wants(EventProperty.STATUS):
        status = (_text(comp, "STATUS") or "").upper()
        event["status"] = STATUS_FROM_ICAL.get(status, EventStatus.CONFIRMED.value)

    if ctx.wants(EventProperty.FREE_BUSY_STATUS):
        transp = (_text(comp, "TRANSP") or "").upper()
        free = transp == "TRANSPARENT"
        event["freeBusyStatus"] = FreeBusyStatus.FREE.value if free else FreeBusyStatus.BUSY.value

    if ctx.wants(EventProperty.PRIVACY):
        klass = (_text(comp, "CLASS") or "").upper()
        event["privacy"] = PRIVACY_FROM_ICAL.get(klass, Privacy.PUBLIC.value)

    if ctx.wants(EventProperty.REPLY_TO) and not is_exc:
        event["replyTo"] = reply_to_from_ical(ctx, comp)

    if ctx.wants(EventProperty.PARTICIPANTS):
        event["participants"] = participants_from_ical(ctx, comp)

    if ctx.wants(EventProperty.USE_DEFAULT_ALERTS):
        if (_text(comp, XPROP_USEDEFAULTALERTS) or "").upper() == "TRUE":
            event["useDefaultAlerts"] = True

    if ctx.wants(EventProperty.ALERTS):
        event["alerts"] = alerts_from_ical(ctx, comp)

    # Patches are computed against every other property, so this comes last
    if ctx.wants(EventProperty.RECURRENCE_OVERRIDES) and not is_exc:
        event["recurrenceOverrides"] = overrides_from_ical(ctx, comp, event)

    return event


_FIELD_ORDER = {prop.value: i for i, prop in enumerate(EventProperty)}


def _field_order(name: str) -> tuple:
    return (_FIELD_ORDER.get(name, len(_FIELD_ORDER)), name)


def event_from_ical(ctx: ConversionContext, comp: Any) -> Dict[str, Any]:
    """Convert a VEVENT to an event object.

    With a wanted filter, the result carries exactly the requested
    properties (null when the component has no value for them). Requesting
    ``recurrenceOverrides`` computes every property, since override patches
    are relative to the complete master event.

    Args:
        ctx: Read context; ``ctx.calendar`` holds the sibling exceptions
        comp: VEVENT component, a master or (with ``ctx.master`` set) an exception

    Returns:
        Event object
    """
    wanted = ctx.wanted
    if wanted is None:
        return _read_properties(ctx, comp)

    suspend = ctx.wants(EventProperty.RECURRENCE_OVERRIDES) and not ctx.is_exception
    with ctx.all_properties() if suspend else nullcontext():
        event = _read_properties(ctx, comp)
    return {name: event.get(name) for name in sorted(wanted, key=_field_order)}
