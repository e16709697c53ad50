"""Alerts: VALARM components, including snooze alarms."""

import copy
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from icalendar import Alarm
from icalendar.prop import vCalAddress, vDDDTypes, vText

from ..timezone import as_datetime
from .context import ConversionContext, PropStatus
from .links import ALERT_ATTACHMENT_PREFIX, ALERT_MEDIA_LINK_PREFIX, links_from_ical, links_to_ical
from .models import RelativeTo
from .participants import mail_address, mail_uri
from .properties import html_description_from_ical, html_description_to_ical
from .values import (
    datetime_value,
    event_end,
    event_start,
    format_duration,
    format_utc,
    parse_duration,
    parse_utc,
    utc_datetime,
)
from .xparams import XPROP_ATTACH, get_prop, get_props, get_xparam, hexkey

logger = logging.getLogger(__name__)

ACTION_EMAIL = "email"
ACTION_DISPLAY = "display"

RELTYPE_SNOOZE = "SNOOZE"

# relativeTo -> (RELATED parameter, negative offset)
_RELATIVE_TO = {
    RelativeTo.BEFORE_START.value: ("START", True),
    RelativeTo.AFTER_START.value: ("START", False),
    RelativeTo.BEFORE_END.value: ("END", True),
    RelativeTo.AFTER_END.value: ("END", False),
}


def _alarms(comp: Any) -> List[Any]:
    return [sub for sub in comp.subcomponents if sub.name == "VALARM"]


def _snooze_target(alarm: Any) -> Optional[str]:
    """Return the UID of the alarm snoozed by alarm, or None for primary alarms."""
    prop = get_prop(alarm, "RELATED-TO")
    if prop is None or not str(prop):
        return None
    reltype = get_xparam(prop, "RELTYPE") or ""
    if reltype.upper() != RELTYPE_SNOOZE:
        return None
    return str(prop)


def split_alarms(comp: Any) -> Tuple[List[Any], Dict[str, Any]]:
    """Split the VALARMs of comp into primary alarms and snooze alarms.

    Returns:
        Tuple of primary alarms and snooze alarms keyed by the UID they snooze
    """
    primaries = []
    snoozes: Dict[str, Any] = {}
    for alarm in _alarms(comp):
        target = _snooze_target(alarm)
        if target is None:
            primaries.append(alarm)
        else:
            snoozes[target] = alarm
    return primaries, snoozes


def _email_action_from_ical(ctx: ConversionContext, alarm: Any) -> Optional[dict]:
    to = []
    for prop in get_props(alarm, "ATTENDEE"):
        email = mail_address(str(prop))
        if email:
            to.append({"name": get_xparam(prop, "CN") or "", "email": email})
    if not to:
        logger.debug("Skipping email alarm without recipients")
        return None

    action: Dict[str, Any] = {"type": ACTION_EMAIL, "to": to}

    summary = get_prop(alarm, "SUMMARY")
    if summary is not None:
        action["subject"] = str(summary)
    description = get_prop(alarm, "DESCRIPTION")
    if description is not None:
        action["textBody"] = str(description)

    html = html_description_from_ical(ctx, alarm)
    if html is not None:
        action["htmlBody"] = html

    attachments = links_from_ical(ctx, alarm, ALERT_ATTACHMENT_PREFIX)
    if attachments:
        action["attachments"] = attachments
    return action


def _action_from_ical(
    ctx: ConversionContext, alarm: Any, snoozes: Dict[str, Any]
) -> Optional[dict]:
    prop = get_prop(alarm, "ACTION")
    kind = str(prop).upper() if prop is not None else ""

    if kind == "EMAIL":
        action = _email_action_from_ical(ctx, alarm)
    elif kind in ("DISPLAY", "AUDIO"):
        action = {"type": ACTION_DISPLAY}
        media_links = links_from_ical(ctx, alarm, ALERT_MEDIA_LINK_PREFIX)
        if media_links:
            action["mediaLinks"] = media_links
    else:
        logger.debug(f"Skipping alarm with unsupported action: {kind or None}")
        action = None
    if action is None:
        return None

    acknowledged = datetime_value(get_prop(alarm, "ACKNOWLEDGED"))
    if isinstance(acknowledged, datetime):
        action["acknowledged"] = format_utc(utc_datetime(acknowledged))

    uid = get_prop(alarm, "UID")
    snooze = snoozes.get(str(uid)) if uid is not None else None
    if snooze is not None:
        snoozed = datetime_value(get_prop(snooze, "TRIGGER"))
        if isinstance(snoozed, datetime):
            action["snoozed"] = format_utc(utc_datetime(snoozed))
    return action


def _utc_reference(value: Any) -> Optional[datetime]:
    if isinstance(value, date) and not isinstance(value, datetime):
        value = as_datetime(value)
    if not isinstance(value, datetime):
        return None
    return utc_datetime(value)


def _trigger_offset(comp: Any, trigger: Any, related: str) -> Optional[timedelta]:
    """Return the signed distance of a TRIGGER to the start or end of comp."""
    value = datetime_value(trigger)
    if isinstance(value, timedelta):
        return value
    if not isinstance(value, datetime):
        return None

    reference = event_start(comp) if related == "START" else event_end(comp)
    reference = _utc_reference(reference)
    if reference is None:
        return None
    return utc_datetime(value) - reference


def alert_from_ical(
    ctx: ConversionContext, comp: Any, alarm: Any, snoozes: Dict[str, Any]
) -> Optional[dict]:
    """Convert one primary VALARM of comp to an alert object."""
    trigger = get_prop(alarm, "TRIGGER")
    if trigger is None:
        return None

    related = (get_xparam(trigger, "RELATED") or "START").upper()
    if related not in ("START", "END"):
        return None

    offset = _trigger_offset(comp, trigger, related)
    if offset is None:
        logger.debug("Skipping alarm with unresolvable trigger")
        return None

    action = _action_from_ical(ctx, alarm, snoozes)
    if action is None:
        return None

    before = offset < timedelta(0)
    if related == "START":
        relative_to = RelativeTo.BEFORE_START if before else RelativeTo.AFTER_START
    else:
        relative_to = RelativeTo.BEFORE_END if before else RelativeTo.AFTER_END

    return {
        "relativeTo": relative_to.value,
        "offset": format_duration(abs(offset)),
        "action": action,
    }


def alerts_from_ical(ctx: ConversionContext, comp: Any) -> Optional[dict]:
    """Convert the VALARMs of a VEVENT.

    Snooze alarms (RELATED-TO;RELTYPE=SNOOZE) are not alerts of their own;
    they set the ``snoozed`` time of the alarm they refer to.

    Returns:
        Map of alert id to alert object, or None if there are none
    """
    primaries, snoozes = split_alarms(comp)

    alerts: Dict[str, dict] = {}
    for alarm in primaries:
        uid = get_prop(alarm, "UID")
        alert_id = str(uid) if uid is not None else hexkey("VALARM", alarm)
        with ctx.prop("alerts", alert_id):
            alert = alert_from_ical(ctx, comp, alarm, snoozes)
        if alert is not None:
            alerts[alert_id] = alert
    return alerts or None


def _email_action_to_ical(ctx: ConversionContext, alarm: Alarm, action: dict) -> None:
    status, to = ctx.read_prop(action, "to", list, mandatory=True)
    if status is PropStatus.FOUND:
        for i, recipient in enumerate(to):
            with ctx.prop("to", i):
                if not isinstance(recipient, dict):
                    ctx.invalid()
                    continue
                status, email = ctx.read_prop(recipient, "email", str, mandatory=True)
                name_status, name = ctx.read_prop(recipient, "name", str)
                if status is not PropStatus.FOUND or name_status is PropStatus.INVALID:
                    continue
                prop = vCalAddress(mail_uri(email))
                if name:
                    prop.params["CN"] = name
                alarm.add("ATTENDEE", prop)

    _, subject = ctx.read_prop(action, "subject", str)
    alarm.add("SUMMARY", subject or "")
    _, text_body = ctx.read_prop(action, "textBody", str)
    alarm.add("DESCRIPTION", text_body or "")

    status, html_body = ctx.read_prop(action, "htmlBody", None)
    if status is PropStatus.FOUND:
        if html_body is None or isinstance(html_body, str):
            html_description_to_ical(ctx, alarm, html_body)
        else:
            ctx.invalid("htmlBody")

    attachments = action.get("attachments")
    if attachments is None or isinstance(attachments, dict):
        links_to_ical(ctx, alarm, attachments, "attachments", "ATTACH")
    else:
        ctx.invalid("attachments")


def _display_action_to_ical(ctx: ConversionContext, alarm: Alarm, action: dict) -> None:
    alarm.add("DESCRIPTION", "")

    media_links = action.get("mediaLinks")
    if media_links is None or isinstance(media_links, dict):
        links_to_ical(ctx, alarm, media_links, "mediaLinks", XPROP_ATTACH)
    else:
        ctx.invalid("mediaLinks")


def _snooze_alarm(alarm: Alarm, alert_id: str, snoozed: datetime) -> Alarm:
    snooze = copy.deepcopy(alarm)
    if "UID" in snooze:
        del snooze["UID"]
    related = vText(alert_id)
    related.params["RELTYPE"] = RELTYPE_SNOOZE
    snooze.add("RELATED-TO", related)
    snooze.add("TRIGGER", vDDDTypes(snoozed), parameters={"VALUE": "DATE-TIME"})
    return snooze


def _action_to_ical(
    ctx: ConversionContext, alarm: Alarm, alert_id: str, action: dict
) -> Tuple[bool, Optional[Alarm]]:
    """Fill alarm from an alert action.

    Returns:
        Tuple of whether the action type is supported and the snooze alarm to
        add next to alarm, if any
    """
    _, kind = ctx.read_prop(action, "type", str, mandatory=True)
    if kind not in (ACTION_EMAIL, ACTION_DISPLAY):
        if kind is not None:
            logger.debug(f"Skipping alert with unsupported action type: {kind}")
        return False, None

    if kind == ACTION_EMAIL:
        alarm.add("ACTION", "EMAIL")
        _email_action_to_ical(ctx, alarm, action)
    else:
        alarm.add("ACTION", "DISPLAY")
        _display_action_to_ical(ctx, alarm, action)

    snooze = None
    status, snoozed = ctx.read_prop(action, "snoozed", str)
    if status is PropStatus.FOUND:
        snoozed_at = parse_utc(snoozed)
        if snoozed_at is None:
            ctx.invalid("snoozed")
        else:
            snooze = _snooze_alarm(alarm, alert_id, snoozed_at)

    status, acknowledged = ctx.read_prop(action, "acknowledged", str)
    if status is PropStatus.FOUND:
        acknowledged_at = parse_utc(acknowledged)
        if acknowledged_at is None:
            ctx.invalid("acknowledged")
        else:
            alarm.add("ACKNOWLEDGED", vDDDTypes(acknowledged_at))

    return True, snooze


def alert_to_ical(ctx: ConversionContext, alert_id: str, alert: Any) -> List[Alarm]:
    """Convert one alert object to its VALARM and optional snooze VALARM.

    Args:
        ctx: Write context, positioned at the alert
        alert_id: Alert id, written as the UID of the alarm
        alert: Alert object

    Returns:
        The alarms to add, empty for invalid or unsupported alerts
    """
    if not isinstance(alert, dict):
        ctx.invalid()
        return []

    before = ctx.invalid_properties
    alarm = Alarm()
    alarm.add("UID", alert_id)

    offset = None
    status, text = ctx.read_prop(alert, "offset", str, mandatory=True)
    if status is PropStatus.FOUND:
        offset = parse_duration(text)
        if offset is None or offset < timedelta(0):
            ctx.invalid("offset")

    related = "START"
    status, relative_to = ctx.read_prop(alert, "relativeTo", str, mandatory=True)
    if status is PropStatus.FOUND:
        if relative_to in _RELATIVE_TO:
            related, negative = _RELATIVE_TO[relative_to]
            if offset is not None and negative:
                offset = -offset
        else:
            ctx.invalid("relativeTo")

    supported, snooze = True, None
    status, action = ctx.read_prop(alert, "action", dict, mandatory=True)
    if status is PropStatus.FOUND:
        with ctx.prop("action"):
            supported, snooze = _action_to_ical(ctx, alarm, alert_id, action)

    if not supported or ctx.invalid_properties != before or offset is None:
        return []

    alarm.add("TRIGGER", offset, parameters={"RELATED": related})
    return [alarm, snooze] if snooze is not None else [alarm]


def alerts_to_ical(ctx: ConversionContext, comp: Any, alerts: Any) -> None:
    """Replace the VALARMs of comp.

    Args:
        ctx: Write context
        comp: VEVENT component to modify
        alerts: Map of alert id to alert object, or None to remove all alarms
    """
    comp.subcomponents = [sub for sub in comp.subcomponents if sub.name != "VALARM"]
    if alerts is None:
        return
    if not isinstance(alerts, dict):
        ctx.invalid("alerts")
        return

    for alert_id, alert in alerts.items():
        with ctx.prop("alerts", alert_id):
            for alarm in alert_to_ical(ctx, alert_id, alert):
                comp.add_component(alarm)
