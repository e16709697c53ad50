"""Write direction: event object to VEVENT component."""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional, Set

from icalendar.prop import vDDDTypes

from ..timezone import get_timezone_service, now_utc
from .alerts import alerts_to_ical
from .context import ConversionContext, Mode, PropStatus
from .links import links_to_ical
from .locations import is_end_timezone, locations_to_ical
from .models import (
    JSEVENT_TYPE,
    PRIVACY_TO_ICAL,
    STATUS_TO_ICAL,
    EventProperty,
    EventStatus,
    FreeBusyStatus,
)
from .overrides import overrides_to_ical
from .participants import participants_to_ical, reply_to_to_ical
from .properties import (
    html_description_to_ical,
    keywords_to_ical,
    locale_to_ical,
    related_to_to_ical,
)
from .reader import duration_from_ical, event_from_ical
from .recurrence import recurrence_to_ical
from .values import event_start, parse_duration, parse_local
from .xparams import X_ID, XPROP_USEDEFAULTALERTS, get_prop, remove_all, set_xparam

logger = logging.getLogger(__name__)

# Properties whose component representation another property rewrites
_DEPENDENT_PROPERTIES = {
    EventProperty.TITLE.value: (EventProperty.LOCALE.value,),
    EventProperty.DESCRIPTION.value: (
        EventProperty.HTML_DESCRIPTION.value,
        EventProperty.LOCALE.value,
    ),
    EventProperty.START.value: (EventProperty.RECURRENCE_RULE.value,),
    EventProperty.TIME_ZONE.value: (EventProperty.RECURRENCE_RULE.value,),
    EventProperty.IS_ALL_DAY.value: (EventProperty.RECURRENCE_RULE.value,),
}

# Properties whose change rewrites DTSTART and DTEND or DURATION
_TIMING_PROPERTIES = (
    EventProperty.START.value,
    EventProperty.TIME_ZONE.value,
    EventProperty.DURATION.value,
    EventProperty.IS_ALL_DAY.value,
)


class _Changes:
    """Which top-level properties a write has to (re)build.

    A create builds everything. An update only rebuilds the properties the
    caller sent, plus the ones whose component form those rewrite, so that
    untouched properties keep their exact iCalendar representation.
    """

    def __init__(self, changed: Optional[Set[str]] = None) -> None:
        self._changed = None
        if changed is not None:
            self._changed = set(changed)
            for name in changed:
                self._changed.update(_DEPENDENT_PROPERTIES.get(name, ()))

    def __contains__(self, name: str) -> bool:
        return self._changed is None or name in self._changed


def _read_nullable(ctx: ConversionContext, event: dict, name: str, kind: type) -> tuple:
    """Read an optional property where null means "remove"."""
    if name in event and event[name] is None:
        return PropStatus.FOUND, None
    return ctx.read_prop(event, name, kind)


def _replace(comp: Any, name: str, value: Any) -> None:
    remove_all(comp, name)
    if value is not None:
        comp.add(name, value)


def _end_timezone(ctx: ConversionContext, event: dict) -> Optional[str]:
    """Resolve the end timezone from an end location; return its id."""
    service = get_timezone_service()
    locations = event.get("locations")
    if not isinstance(locations, dict):
        return None

    for loc_id, loc in locations.items():
        if not is_end_timezone(loc):
            continue
        with ctx.prop("locations", loc_id):
            tzid = loc["timeZone"]
            if tzid is None:
                ctx.tzend = None
            elif isinstance(tzid, str):
                ctx.tzend = service.resolve(tzid)
                if ctx.tzend is None:
                    ctx.invalid("timeZone")
            else:
                ctx.invalid("timeZone")

            if (ctx.tzstart is None) != (ctx.tzend is None):
                ctx.invalid("timeZone")
            if ctx.is_allday and ctx.tzend is not None:
                ctx.invalid("timeZone")
        return loc_id
    return None


def _timing_changed(
    ctx: ConversionContext, changes: Optional[_Changes], end_id: Optional[str]
) -> bool:
    if changes is None or any(name in changes for name in _TIMING_PROPERTIES):
        return True
    if EventProperty.LOCATIONS.value not in changes:
        return False
    # Adding or dropping an end timezone location moves the end between zones
    service = get_timezone_service()
    return end_id is not None or not service.same_zone(ctx.tzstart_old, ctx.tzend_old)


def startend_to_ical(
    ctx: ConversionContext, comp: Any, event: dict, changes: Optional[_Changes] = None
) -> None:
    """Rebuild DTSTART and DTEND or DURATION of comp.

    Resolves the start and end timezones into ``ctx`` for the property
    converters that run afterwards. DTEND is written, in the end timezone,
    only if that differs from the start timezone; otherwise the end is
    expressed as DURATION. On update the properties are only rebuilt when
    the timing changed, so untouched events keep their DTEND.

    Args:
        ctx: Write context, with ``is_allday`` already read
        comp: VEVENT component to modify
        event: Event object
        changes: Properties sent by the caller, None to rebuild unconditionally
    """
    service = get_timezone_service()

    ctx.tzstart_old = service.resolve(service.tzid_from_property(get_prop(comp, "DTSTART")))
    if "timeZone" in event and event["timeZone"] is None:
        ctx.tzstart = None
    else:
        mandatory = ctx.is_create and not ctx.is_allday
        status, tzid = ctx.read_prop(event, "timeZone", str, mandatory)
        if status is PropStatus.FOUND:
            ctx.tzstart = service.resolve(tzid)
            if ctx.tzstart is None:
                ctx.invalid("timeZone")
        elif status is PropStatus.MISSING:
            ctx.tzstart = ctx.tzstart_old
    if ctx.is_allday and ctx.tzstart is not None:
        ctx.invalid("timeZone")
    if ctx.is_create:
        ctx.tzstart_old = ctx.tzstart

    dtend = get_prop(comp, "DTEND")
    tzid_end = service.tzid_from_property(dtend) if dtend is not None else None
    ctx.tzend_old = service.resolve(tzid_end) if tzid_end else ctx.tzstart_old
    end_id = _end_timezone(ctx, event)
    if end_id is None:
        ctx.tzend = ctx.tzstart

    duration = timedelta(0)
    status, text = ctx.read_prop(event, "duration", str)
    if status is PropStatus.FOUND:
        parsed = parse_duration(text)
        if parsed is None or parsed < timedelta(0):
            ctx.invalid("duration")
        else:
            duration = parsed
        if ctx.is_allday and "T" in text:
            ctx.invalid("duration")
    elif status is PropStatus.MISSING and not ctx.is_create:
        duration = parse_duration(duration_from_ical(comp)) or timedelta(0)

    start: Any = None
    status, text = ctx.read_prop(event, "start", str, mandatory=ctx.is_create)
    if status is PropStatus.FOUND:
        start = parse_local(text, ctx.tzstart, ctx.is_allday)
        if start is None:
            ctx.invalid("start")
    elif status is PropStatus.MISSING:
        start = event_start(comp)
        if start is None:
            ctx.invalid("start")

    if ctx.has_invalid() or not _timing_changed(ctx, changes, end_id):
        return

    for name in ("DTSTART", "DTEND", "DURATION"):
        remove_all(comp, name)
    comp.add("DTSTART", start)

    if not service.same_zone(ctx.tzstart, ctx.tzend):
        end = service.convert(service.add_duration(start, duration), ctx.tzend)
        prop = vDDDTypes(end)
        set_xparam(prop, X_ID, end_id, purge=True)
        comp.add("DTEND", prop)
    else:
        comp.add("DURATION", duration)


def _prod_id_to_ical(ctx: ConversionContext, comp: Any, event: dict) -> None:
    status, prod_id = ctx.read_prop(event, "prodId", str)
    if status is PropStatus.INVALID:
        return
    remove_all(comp, "PRODID")
    if ctx.calendar is not None:
        _replace(ctx.calendar, "PRODID", prod_id or ctx.settings.prod_id)


def _bookkeeping_to_ical(ctx: ConversionContext, comp: Any) -> None:
    now = now_utc()
    if ctx.is_create:
        _replace(comp, "CREATED", now)
        _replace(comp, "SEQUENCE", 0)
    _replace(comp, "DTSTAMP", now)


def _priority_to_ical(ctx: ConversionContext, comp: Any, event: dict) -> None:
    status, priority = _read_nullable(ctx, event, "priority", int)
    if status is PropStatus.INVALID:
        return
    if priority is not None and not 0 <= priority <= 9:
        ctx.invalid("priority")
        return
    _replace(comp, "PRIORITY", priority)


def _text_to_ical(
    ctx: ConversionContext,
    comp: Any,
    event: dict,
    name: str,
    prop_name: str,
    mandatory: bool = False,
) -> None:
    if name in event and event[name] is None:
        remove_all(comp, prop_name)
        return
    status, value = ctx.read_prop(event, name, str, mandatory)
    if status is PropStatus.FOUND:
        _replace(comp, prop_name, value or None)


def _enum_to_ical(
    ctx: ConversionContext,
    comp: Any,
    event: dict,
    name: str,
    prop_name: str,
    mapping: Dict[str, str],
) -> None:
    status, value = _read_nullable(ctx, event, name, str)
    if status is not PropStatus.FOUND:
        return
    if value is not None and value not in mapping:
        ctx.invalid(name)
        return
    _replace(comp, prop_name, mapping[value] if value is not None else None)


def _status_to_ical(ctx: ConversionContext, comp: Any, event: dict) -> None:
    if "status" not in event and ctx.is_create:
        _replace(comp, "STATUS", STATUS_TO_ICAL[EventStatus.CONFIRMED.value])
        return
    _enum_to_ical(ctx, comp, event, "status", "STATUS", STATUS_TO_ICAL)


_TRANSP_TO_ICAL = {
    FreeBusyStatus.FREE.value: "TRANSPARENT",
    FreeBusyStatus.BUSY.value: "OPAQUE",
}


def _non_empty(ctx: ConversionContext, event: dict, name: str, kind: type) -> bool:
    """Check that a collection property is null or non-empty."""
    if name not in event:
        return False
    value = event[name]
    if value is None:
        return True
    if not isinstance(value, kind) or not value:
        ctx.invalid(name)
        return False
    return True


def _use_default_alerts_to_ical(ctx: ConversionContext, comp: Any, event: dict) -> None:
    status, value = _read_nullable(ctx, event, "useDefaultAlerts", bool)
    if status is not PropStatus.FOUND:
        return
    _replace(comp, XPROP_USEDEFAULTALERTS, "TRUE" if value else None)


def _check_scheduling(ctx: ConversionContext, comp: Any) -> None:
    has_organizer = get_prop(comp, "ORGANIZER") is not None
    has_attendees = get_prop(comp, "ATTENDEE") is not None
    if has_organizer != has_attendees:
        ctx.invalid("replyTo")
        ctx.invalid("participants")


def _merge_current(ctx: ConversionContext, comp: Any, event: dict) -> dict:
    """Read the current state of comp and apply the caller's changes on top."""
    read_ctx = ConversionContext(Mode.READ, settings=ctx.settings, calendar=ctx.calendar)
    current = event_from_ical(read_ctx, comp)
    current.update(event)
    return current


def event_to_ical(ctx: ConversionContext, comp: Any, event: dict) -> None:
    """Write an event object into a VEVENT component.

    On update, the current event is read back from comp and the caller's
    object is merged on top of it; properties the caller did not send keep
    their current component representation. Validation problems are
    collected in ``ctx`` rather than raised; the caller must discard comp
    if any were found.

    Args:
        ctx: Write context; ``ctx.uid`` must be set
        comp: VEVENT component to write into
        event: Event object, complete on create, partial on update

    Raises:
        ICalStructureError: If the recurrence rule cannot be assembled
    """
    is_exc = ctx.is_exception
    changes = _Changes()
    if ctx.is_update and not is_exc:
        changes = _Changes(set(event))
        event = _merge_current(ctx, comp, event)

    excluded = event.get("excluded", False)
    if excluded is not False:
        ctx.invalid("excluded")

    _replace(comp, "UID", ctx.uid)

    event_type = event.get("@type")
    if event_type is not None and event_type != JSEVENT_TYPE:
        ctx.invalid("@type")

    status, is_allday = ctx.read_prop(event, "isAllDay", bool, mandatory=ctx.is_create)
    ctx.is_allday = bool(is_allday) if status is PropStatus.FOUND else False

    startend_to_ical(ctx, comp, event, changes)

    if "relatedTo" in changes and _non_empty(ctx, event, "relatedTo", dict):
        related_to_to_ical(ctx, comp, event["relatedTo"])

    if not is_exc and (ctx.is_create or "prodId" in changes):
        _prod_id_to_ical(ctx, comp, event)

    _bookkeeping_to_ical(ctx, comp)

    if "priority" in changes:
        _priority_to_ical(ctx, comp, event)

    if "title" in changes:
        _text_to_ical(ctx, comp, event, "title", "SUMMARY", mandatory=ctx.is_create)

    if "description" in changes:
        _text_to_ical(ctx, comp, event, "description", "DESCRIPTION")

    # Must come after the plain description
    if "htmlDescription" in changes:
        status, html = _read_nullable(ctx, event, "htmlDescription", str)
        if status is PropStatus.FOUND:
            html_description_to_ical(ctx, comp, html)

    if "color" in changes:
        _text_to_ical(ctx, comp, event, "color", "COLOR")

    if "keywords" in changes and _non_empty(ctx, event, "keywords", list):
        keywords_to_ical(ctx, comp, event["keywords"])

    if "links" in changes and _non_empty(ctx, event, "links", dict):
        links_to_ical(ctx, comp, event["links"])

    if "locale" in changes:
        status, locale = _read_nullable(ctx, event, "locale", str)
        if status is PropStatus.FOUND:
            locale_to_ical(ctx, comp, locale or None)

    if "locations" in changes and _non_empty(ctx, event, "locations", dict):
        locations_to_ical(ctx, comp, event["locations"])

    if not is_exc and "recurrenceRule" in changes and "recurrenceRule" in event:
        recurrence_to_ical(ctx, comp, event["recurrenceRule"])

    if "status" in changes:
        _status_to_ical(ctx, comp, event)

    if "freeBusyStatus" in changes:
        _enum_to_ical(ctx, comp, event, "freeBusyStatus", "TRANSP", _TRANSP_TO_ICAL)

    if "privacy" in changes:
        _enum_to_ical(ctx, comp, event, "privacy", "CLASS", PRIVACY_TO_ICAL)

    if "replyTo" in changes and "replyTo" in event:
        reply_to_to_ical(ctx, comp, event["replyTo"])

    if "participants" in changes and _non_empty(ctx, event, "participants", dict):
        participants_to_ical(ctx, comp, event["participants"])

    if "useDefaultAlerts" in changes:
        _use_default_alerts_to_ical(ctx, comp, event)

    if "alerts" in changes and _non_empty(ctx, event, "alerts", dict):
        alerts_to_ical(ctx, comp, event["alerts"])

    if ctx.has_invalid():
        return

    # Override patches apply to the master as written above, so this comes last
    if not is_exc and "recurrenceOverrides" in event:
        overrides_to_ical(ctx, comp, event["recurrenceOverrides"])
        if ctx.has_invalid():
            return

    if "replyTo" in changes or "participants" in changes:
        _check_scheduling(ctx, comp)
