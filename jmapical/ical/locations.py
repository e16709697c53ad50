"""Locations: LOCATION, GEO, CONFERENCE and vendor location properties."""

import logging
from typing import Any, Dict, List, Optional

from icalendar.prop import vText, vUri

from ..timezone import get_timezone_service
from .context import ConversionContext
from .xparams import (
    X_DESCRIPTION,
    X_FEATURE,
    X_GEO,
    X_ID,
    X_LINKID,
    X_REL,
    X_TITLE,
    X_TZID,
    XPROP_APPLE_LOCATION,
    XPROP_LOCATION,
    get_prop,
    get_props,
    get_xparam,
    get_xparams,
    hexkey,
    remove_all,
    set_xparam,
)

logger = logging.getLogger(__name__)

REL_END = "end"
REL_VIRTUAL = "virtual"
REL_UNKNOWN = "unknown"

_LOCATION_FIELDS = (
    ("name", str),
    ("uri", str),
    ("rel", str),
    ("description", str),
    ("timeZone", str),
    ("coordinates", str),
)


def location_id(name: str, prop: Any) -> str:
    """Return the stable id of a location-bearing property."""
    return get_xparam(prop, X_ID) or hexkey(name, prop)


def _features(prop: Any, param: str) -> Optional[List[str]]:
    features = []
    for value in get_xparams(prop, param):
        for feature in value.split(","):
            feature = feature.strip().lower()
            if feature:
                features.append(feature)
    return features or None


def _link_ids(prop: Any) -> Optional[List[str]]:
    link_ids = [value for value in get_xparams(prop, X_LINKID) if value]
    return link_ids or None


def location_from_ical(name: str, prop: Any) -> dict:
    """Convert a location-bearing property to a location object.

    Args:
        name: Property name (LOCATION, CONFERENCE, X-JMAP-LOCATION, ...)
        prop: The property
    """
    if name == "CONFERENCE":
        loc_name = get_xparam(prop, "LABEL")
        uri = str(prop)
        rel = REL_VIRTUAL
        features = _features(prop, "FEATURE")
    else:
        loc_name = str(prop)
        uri = get_xparam(prop, "ALTREP")
        rel = REL_UNKNOWN
        features = _features(prop, X_FEATURE)

    return {
        "name": loc_name,
        "uri": uri,
        "rel": get_xparam(prop, X_REL) or rel,
        "features": features,
        "description": get_xparam(prop, X_DESCRIPTION),
        "linkIds": _link_ids(prop),
        "timeZone": get_xparam(prop, X_TZID),
        "coordinates": get_xparam(prop, X_GEO),
    }


def _geo_coordinates(prop: Any) -> Optional[str]:
    text = prop.to_ical()
    if isinstance(text, bytes):
        text = text.decode("utf-8")
    parts = text.split(";")
    if len(parts) != 2:
        return None
    return f"geo:{parts[0]},{parts[1]}"


def locations_from_ical(ctx: ConversionContext, comp: Any) -> Optional[dict]:
    """Convert the locations of a VEVENT.

    Args:
        ctx: Read context, with the start timezone already determined
        comp: VEVENT component

    Returns:
        Map of location id to location object, or None if there are none
    """
    locations: Dict[str, dict] = {}
    service = get_timezone_service()

    # End timezone
    dtend = get_prop(comp, "DTEND")
    tzid_end = service.tzid_from_property(dtend) if dtend is not None else None
    if ctx.tzid_start and tzid_end and ctx.tzid_start != tzid_end:
        locations[location_id("DTEND", dtend)] = {"timeZone": tzid_end, "rel": REL_END}

    prop = get_prop(comp, "LOCATION")
    if prop is not None:
        locations[location_id("LOCATION", prop)] = location_from_ical("LOCATION", prop)

    prop = get_prop(comp, "GEO")
    if prop is not None:
        coordinates = _geo_coordinates(prop)
        if coordinates:
            locations[location_id("GEO", prop)] = {"coordinates": coordinates}

    for prop in get_props(comp, "CONFERENCE"):
        locations[location_id("CONFERENCE", prop)] = location_from_ical("CONFERENCE", prop)

    for prop in get_props(comp, XPROP_APPLE_LOCATION):
        uri = str(prop)
        if not uri.lower().startswith("geo:"):
            continue
        loc: Dict[str, Any] = {"coordinates": uri}
        title = get_xparam(prop, X_TITLE)
        if title:
            loc["name"] = title
        locations[location_id(XPROP_APPLE_LOCATION, prop)] = loc

    for prop in get_props(comp, XPROP_LOCATION):
        locations[location_id(XPROP_LOCATION, prop)] = location_from_ical(XPROP_LOCATION, prop)

    return locations or None


def is_end_timezone(loc: Any) -> bool:
    """Return True if loc only carries the end timezone of the event."""
    return isinstance(loc, dict) and loc.get("rel") == REL_END and "timeZone" in loc


def _validate_string_list(ctx: ConversionContext, loc: dict, name: str) -> None:
    value = loc.get(name)
    if value is None:
        return
    if not isinstance(value, list):
        ctx.invalid(name)
        return
    for i, item in enumerate(value):
        if not isinstance(item, str):
            with ctx.prop(name, i):
                ctx.invalid()


def _validate_location(ctx: ConversionContext, loc: Any) -> bool:
    if not isinstance(loc, dict) or not loc:
        ctx.invalid()
        return False

    before = ctx.invalid_properties
    for field, kind in _LOCATION_FIELDS:
        if loc.get(field) is not None:
            ctx.read_prop(loc, field, kind)

    tzid = loc.get("timeZone")
    if isinstance(tzid, str) and get_timezone_service().resolve(tzid) is None:
        ctx.invalid("timeZone")

    _validate_string_list(ctx, loc, "linkIds")
    _validate_string_list(ctx, loc, "features")
    return ctx.invalid_properties == before


def _location_to_ical(ctx: ConversionContext, comp: Any, loc_id: str, loc: dict) -> None:
    name = loc.get("name")
    uri = loc.get("uri")
    rel = loc.get("rel")
    if rel == REL_UNKNOWN:
        rel = None

    if get_prop(comp, "LOCATION") is None:
        prop_name = "LOCATION"
        prop = vText(name or "")
    elif uri and rel == REL_VIRTUAL:
        prop_name = "CONFERENCE"
        prop = vUri(uri)
        prop.params["VALUE"] = "URI"
        if name:
            prop.params["LABEL"] = name
    else:
        prop_name = XPROP_LOCATION
        prop = vText(name or "")

    set_xparam(prop, X_ID, loc_id, purge=True)

    if prop_name != "CONFERENCE":
        if uri:
            prop.params["ALTREP"] = uri
        if rel:
            set_xparam(prop, X_REL, rel, purge=True)

    if loc.get("description"):
        set_xparam(prop, X_DESCRIPTION, loc["description"], purge=True)
    if loc.get("timeZone"):
        set_xparam(prop, X_TZID, loc["timeZone"], purge=True)
    if loc.get("coordinates"):
        set_xparam(prop, X_GEO, loc["coordinates"], purge=True)
    for link_id in loc.get("linkIds") or []:
        set_xparam(prop, X_LINKID, link_id)

    features = [feature.upper() for feature in loc.get("features") or []]
    if features:
        prop.params["FEATURE" if prop_name == "CONFERENCE" else X_FEATURE] = features

    comp.add(prop_name, prop)


def locations_to_ical(ctx: ConversionContext, comp: Any, locations: Any) -> None:
    """Replace the location properties of comp.

    End timezone locations are skipped; they are handled with the start
    and end of the event.

    Args:
        ctx: Write context
        comp: VEVENT component to modify
        locations: Map of location id to location object, or None
    """
    for name in ("LOCATION", "GEO", "CONFERENCE", XPROP_LOCATION, XPROP_APPLE_LOCATION):
        remove_all(comp, name)

    if locations is None:
        return
    if not isinstance(locations, dict):
        ctx.invalid("locations")
        return

    for loc_id, loc in locations.items():
        with ctx.prop("locations", loc_id):
            if not loc_id:
                ctx.invalid()
                continue
            if is_end_timezone(loc):
                continue
            if not _validate_location(ctx, loc):
                continue
            if not ctx.has_invalid():
                _location_to_ical(ctx, comp, loc_id, loc)
