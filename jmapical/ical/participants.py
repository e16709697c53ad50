"""Participants and replyTo: ATTENDEE and ORGANIZER properties."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from icalendar.prop import vCalAddress, vDDDTypes

from .context import ConversionContext, PropStatus
from .models import RsvpResponse
from .values import format_utc, parse_utc
from .xparams import (
    X_DTSTAMP,
    X_ID,
    X_LINKID,
    X_LOCATIONID,
    X_ROLE,
    X_RSVP_URI,
    X_SEQUENCE,
    get_prop,
    get_props,
    get_xparam,
    get_xparams,
    remove_all,
    set_xparam,
)

logger = logging.getLogger(__name__)

MAILTO = "mailto:"

_KIND_FROM_CUTYPE = {
    "INDIVIDUAL": "individual",
    "GROUP": "group",
    "RESOURCE": "resource",
    "ROOM": "location",
}
_CUTYPE_FROM_KIND = {
    "INDIVIDUAL": "INDIVIDUAL",
    "GROUP": "GROUP",
    "RESOURCE": "RESOURCE",
    "ROOM": "ROOM",
    "LOCATION": "ROOM",
}

_PARTICIPATION_FROM_ROLE = {
    "REQ-PARTICIPANT": "required",
    "OPT-PARTICIPANT": "optional",
    "NON-PARTICIPANT": "non-participant",
}
_ROLE_FROM_PARTICIPATION = {value: key for key, value in _PARTICIPATION_FROM_ROLE.items()}

_KNOWN_ROLES = ("attendee", "chair", "owner")

_PARTSTATS = {
    "NEEDS-ACTION": RsvpResponse.NEEDS_ACTION.value,
    "ACCEPTED": RsvpResponse.ACCEPTED.value,
    "DECLINED": RsvpResponse.DECLINED.value,
    "TENTATIVE": RsvpResponse.TENTATIVE.value,
}


def mail_address(uri: Optional[str]) -> Optional[str]:
    """Extract the canonical mail address from a mailto URI.

    The domain part is lower-cased; anything but a mailto URI yields None.
    """
    if not uri or not uri.lower().startswith(MAILTO):
        return None
    addr = uri[len(MAILTO) :]
    local, at, domain = addr.rpartition("@")
    if not at:
        return addr
    return f"{local}@{domain.lower()}"


def mail_uri(addr: str) -> str:
    return MAILTO + addr


def _param(prop: Any, name: str) -> Optional[str]:
    value = get_xparam(prop, name)
    return value.upper() if value else None


def _addresses(prop: Any, name: str) -> Optional[List[str]]:
    addresses = []
    for uri in get_xparams(prop, name):
        addr = mail_address(uri)
        if addr:
            addresses.append(addr)
    return addresses or None


def _rsvp_response(prop: Any, attendees: Dict[str, Any], max_hops: int) -> str:
    """Determine the reply of an attendee, following delegations.

    An attendee that delegated its participation replies with whatever its
    delegate replied. Chains longer than max_hops (including cycles) resolve
    to needs-action.
    """
    current = prop
    hops = 0
    while True:
        partstat = _param(current, "PARTSTAT")
        if partstat is None:
            return RsvpResponse.NEEDS_ACTION.value
        if partstat != "DELEGATED":
            return _PARTSTATS.get(partstat, RsvpResponse.NEEDS_ACTION.value)

        delegate = None
        to = mail_address(get_xparam(current, "DELEGATED-TO"))
        if to:
            delegate = attendees.get(to.lower())
        if delegate is None:
            return RsvpResponse.NEEDS_ACTION.value

        hops += 1
        if hops > max_hops:
            logger.debug(f"Delegation chain exceeds {max_hops} hops, giving up")
            return RsvpResponse.NEEDS_ACTION.value
        current = delegate


def _schedule_updated(prop: Any) -> Optional[str]:
    text = get_xparam(prop, X_DTSTAMP)
    if not text:
        return None
    try:
        value = vDDDTypes.from_ical(text)
    except ValueError:
        logger.debug(f"Ignoring malformed {X_DTSTAMP}: {text}")
        return None
    if not isinstance(value, datetime) or value.tzinfo is None:
        return None
    return format_utc(value)


def participant_from_ical(
    prop: Any, attendees: Dict[str, Any], organizer: Any, max_hops: int
) -> Optional[dict]:
    """Convert one ATTENDEE property to a participant object.

    Args:
        prop: ATTENDEE property
        attendees: All attendees of the component keyed by lower-cased address
        organizer: ORGANIZER property, or None
        max_hops: Maximum length of delegation chains to follow

    Returns:
        Participant object, or None if the attendee has no mailto address
    """
    email = mail_address(str(prop))
    if email is None:
        logger.debug(f"Skipping attendee without mail address: {prop}")
        return None

    participant: Dict[str, Any] = {"name": get_xparam(prop, "CN") or "", "email": email}

    cutype = _param(prop, "CUTYPE")
    if cutype:
        participant["kind"] = _KIND_FROM_CUTYPE.get(cutype, "unknown")

    role = _param(prop, "ROLE")
    if role:
        participant["participation"] = _PARTICIPATION_FROM_ROLE.get(role, "required")

    roles = []
    if role == "CHAIR":
        roles.append("chair")
    roles.extend(value.lower() for value in get_xparams(prop, X_ROLE))
    if "owner" not in roles and organizer is not None:
        if str(organizer).lower() == str(prop).lower():
            roles.append("owner")
    participant["roles"] = roles or ["attendee"]

    location_id = get_xparam(prop, X_LOCATIONID)
    if location_id:
        participant["locationId"] = location_id

    participant["rsvpResponse"] = _rsvp_response(prop, attendees, max_hops)

    rsvp = _param(prop, "RSVP")
    if rsvp:
        participant["rsvpWanted"] = rsvp == "TRUE"

    for name, field in (
        ("DELEGATED-TO", "delegatedTo"),
        ("DELEGATED-FROM", "delegatedFrom"),
        ("MEMBER", "memberOf"),
    ):
        addresses = _addresses(prop, name)
        if addresses:
            participant[field] = addresses

    link_ids = [value.lower() for value in get_xparams(prop, X_LINKID) if value]
    if link_ids:
        participant["linkIds"] = link_ids

    sequence = get_xparam(prop, X_SEQUENCE)
    if sequence:
        try:
            participant["scheduleSequence"] = int(sequence)
        except ValueError:
            logger.debug(f"Ignoring malformed {X_SEQUENCE}: {sequence}")

    updated = _schedule_updated(prop)
    if updated:
        participant["scheduleUpdated"] = updated

    return participant


def participants_from_ical(ctx: ConversionContext, comp: Any) -> Optional[dict]:
    """Convert the ATTENDEE properties of a VEVENT.

    Returns:
        Map of participant id to participant object, or None without attendees
    """
    props = get_props(comp, "ATTENDEE")
    if not props:
        return None

    attendees: Dict[str, Any] = {}
    for prop in props:
        addr = mail_address(str(prop))
        if addr:
            attendees.setdefault(addr.lower(), prop)

    organizer = get_prop(comp, "ORGANIZER")
    max_hops = ctx.settings.max_delegation_hops

    participants: Dict[str, dict] = {}
    for prop in props:
        participant = participant_from_ical(prop, attendees, organizer, max_hops)
        if participant is None:
            continue
        participant_id = get_xparam(prop, X_ID) or participant["email"]
        participants[participant_id] = participant
    return participants or None


def _read_address_list(ctx: ConversionContext, p: dict, name: str) -> List[str]:
    value = p.get(name)
    if value is None:
        return []
    if not isinstance(value, list):
        ctx.invalid(name)
        return []

    addresses = []
    for i, addr in enumerate(value):
        if not isinstance(addr, str):
            with ctx.prop(name, i):
                ctx.invalid()
            continue
        addresses.append(mail_uri(addr))
    return addresses


def _roles_to_ical(ctx: ConversionContext, prop: vCalAddress, roles: Any, role: str) -> None:
    if not isinstance(roles, list) or not roles:
        ctx.invalid("roles")
        return

    for i, value in enumerate(roles):
        name = value.lower() if isinstance(value, str) else None
        if name not in _KNOWN_ROLES:
            with ctx.prop("roles", i):
                ctx.invalid()
            continue
        if name == "chair" and role == "REQ-PARTICIPANT" and "ROLE" not in prop.params:
            prop.params["ROLE"] = "CHAIR"
        else:
            set_xparam(prop, X_ROLE, name.upper())


def participant_to_ical(ctx: ConversionContext, prop: vCalAddress, p: dict) -> None:
    """Set the parameters of an ATTENDEE from a participant object.

    Args:
        ctx: Write context, positioned at the participant
        prop: ATTENDEE property to modify
        p: Participant object
    """
    status, name = ctx.read_prop(p, "name", str)
    if status is PropStatus.FOUND:
        prop.params["CN"] = name

    status, kind = ctx.read_prop(p, "kind", str)
    if status is PropStatus.FOUND:
        cutype = _CUTYPE_FROM_KIND.get(kind.upper())
        if cutype:
            prop.params["CUTYPE"] = cutype
        else:
            logger.debug(f"Ignoring unknown participant kind: {kind}")

    role = "REQ-PARTICIPANT"
    status, participation = ctx.read_prop(p, "participation", str)
    if status is PropStatus.FOUND:
        role = _ROLE_FROM_PARTICIPATION.get(participation.lower(), role)
        if role != "REQ-PARTICIPANT":
            prop.params["ROLE"] = role

    if p.get("roles") is not None:
        _roles_to_ical(ctx, prop, p["roles"], role)

    status, location_id = ctx.read_prop(p, "locationId", str)
    if status is PropStatus.FOUND:
        set_xparam(prop, X_LOCATIONID, location_id, purge=True)

    partstat = "NEEDS-ACTION"
    status, rsvp = ctx.read_prop(p, "rsvpResponse", str)
    if status is PropStatus.FOUND:
        partstat = rsvp.upper()
        if partstat not in _PARTSTATS:
            ctx.invalid("rsvpResponse")
            partstat = None
    if partstat:
        prop.params["PARTSTAT"] = partstat

    status, rsvp_wanted = ctx.read_prop(p, "rsvpWanted", bool)
    if status is PropStatus.FOUND:
        prop.params["RSVP"] = "TRUE" if rsvp_wanted else "FALSE"

    for name, param in (
        ("delegatedTo", "DELEGATED-TO"),
        ("delegatedFrom", "DELEGATED-FROM"),
        ("memberOf", "MEMBER"),
    ):
        uris = _read_address_list(ctx, p, name)
        if uris:
            prop.params[param] = uris if len(uris) > 1 else uris[0]

    link_ids = p.get("linkIds")
    if isinstance(link_ids, list):
        for i, link_id in enumerate(link_ids):
            if not isinstance(link_id, str):
                with ctx.prop("linkIds", i):
                    ctx.invalid()
                continue
            set_xparam(prop, X_LINKID, link_id)
    elif link_ids is not None:
        ctx.invalid("linkIds")

    status, sequence = ctx.read_prop(p, "scheduleSequence", int)
    if status is PropStatus.FOUND:
        if sequence < 0:
            ctx.invalid("scheduleSequence")
        else:
            set_xparam(prop, X_SEQUENCE, str(sequence), purge=True)

    status, updated = ctx.read_prop(p, "scheduleUpdated", str)
    if status is PropStatus.FOUND:
        dtstamp = parse_utc(updated)
        if dtstamp is None:
            ctx.invalid("scheduleUpdated")
        else:
            set_xparam(prop, X_DTSTAMP, vDDDTypes(dtstamp).to_ical().decode("utf-8"), purge=True)


def participants_to_ical(ctx: ConversionContext, comp: Any, participants: Any) -> None:
    """Replace the ATTENDEE properties of comp.

    Args:
        ctx: Write context
        comp: VEVENT component to modify
        participants: Map of participant id to participant object, or None
    """
    remove_all(comp, "ATTENDEE")
    if participants is None:
        return
    if not isinstance(participants, dict):
        ctx.invalid("participants")
        return

    for participant_id, p in participants.items():
        with ctx.prop("participants", participant_id):
            if not participant_id or not isinstance(p, dict):
                ctx.invalid()
                continue

            status, email = ctx.read_prop(p, "email", str, mandatory=True)
            if status is not PropStatus.FOUND:
                continue

            prop = vCalAddress(mail_uri(email))
            participant_to_ical(ctx, prop, p)
            if participant_id != email:
                set_xparam(prop, X_ID, participant_id, purge=True)
            comp.add("ATTENDEE", prop)


def reply_to_from_ical(ctx: ConversionContext, comp: Any) -> Optional[dict]:
    """Convert the ORGANIZER of a VEVENT to a replyTo object."""
    prop = get_prop(comp, "ORGANIZER")
    if prop is None:
        return None

    reply_to = {}
    if str(prop):
        reply_to["imip"] = str(prop)
    web = get_xparam(prop, X_RSVP_URI)
    if web:
        reply_to["web"] = web
    return reply_to or None


def reply_to_to_ical(ctx: ConversionContext, comp: Any, reply_to: Any) -> None:
    """Replace the ORGANIZER of comp with the given replyTo object.

    Without an ``imip`` method there is no ORGANIZER to carry the ``web``
    method, so it is dropped.
    """
    remove_all(comp, "ORGANIZER")
    if reply_to is None:
        return
    if not isinstance(reply_to, dict):
        ctx.invalid("replyTo")
        return

    with ctx.prop("replyTo"):
        if "imip" not in reply_to:
            return
        status, imip = ctx.read_prop(reply_to, "imip", str)
        if status is not PropStatus.FOUND:
            return

        prop = vCalAddress(imip)
        comp.add("ORGANIZER", prop)

        status, web = ctx.read_prop(reply_to, "web", str)
        if status is PropStatus.FOUND:
            if web.startswith("http:") or web.startswith("https:"):
                set_xparam(prop, X_RSVP_URI, web, purge=True)
            else:
                ctx.invalid("web")
