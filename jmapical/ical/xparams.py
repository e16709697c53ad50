"""Vendor extension parameters and properties.

Event object concepts without a native iCalendar slot (stable sub-object ids,
role tags, location overlays, opaque link properties, ...) are carried in
``X-`` parameters and properties so that they survive a round trip through
the calendar text form.
"""

import base64
import binascii
import hashlib
import json
from typing import Any, List, Optional

# Parameters
X_ID = "X-JMAP-ID"
X_ROLE = "X-JMAP-ROLE"
X_REL = "X-JMAP-REL"
X_LOCATIONID = "X-JMAP-LOCATIONID"
X_LINKID = "X-JMAP-LINKID"
X_TITLE = "X-TITLE"
X_CID = "X-JMAP-CID"
X_PROPERTIES = "X-JMAP-PROPERTIES"
X_DESCRIPTION = "X-JMAP-DESCRIPTION"
X_FEATURE = "X-JMAP-FEATURE"
X_TZID = "X-JMAP-TZID"
X_GEO = "X-JMAP-GEO"
X_SEQUENCE = "X-JMAP-SEQUENCE"
X_DTSTAMP = "X-JMAP-DTSTAMP"
X_RSVP_URI = "X-JMAP-RSVP-URI"

# Properties
XPROP_LOCATION = "X-JMAP-LOCATION"
XPROP_ATTACH = "X-ATTACH"
XPROP_USEDEFAULTALERTS = "X-JMAP-USEDEFAULTALERTS"
XPROP_APPLE_LOCATION = "X-APPLE-STRUCTURED-LOCATION"

_BASE64_JSON_PREFIX = "data:application/json;base64,"


def get_xparams(prop: Any, name: str) -> List[str]:
    """Return all values of parameter name."""
    params = getattr(prop, "params", None)
    if not params or name not in params:
        return []
    value = params[name]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def get_xparam(prop: Any, name: str) -> Optional[str]:
    """Return the first value of parameter name, or None."""
    values = get_xparams(prop, name)
    return values[0] if values else None


def set_xparam(prop: Any, name: str, value: str, purge: bool = False) -> None:
    """Add name=value to the parameters of prop.

    Args:
        prop: Property to modify
        name: Parameter name
        value: Parameter value
        purge: Replace any prior values instead of appending
    """
    existing = [] if purge else get_xparams(prop, name)
    if existing:
        prop.params[name] = existing + [value]
    else:
        prop.params[name] = value


def remove_xparam(prop: Any, name: str) -> None:
    params = getattr(prop, "params", None)
    if params is not None and name in params:
        del params[name]


def get_props(component: Any, name: str) -> List[Any]:
    """Return every property called name on a component as a list."""
    value = component.get(name)
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def get_prop(component: Any, name: str) -> Optional[Any]:
    """Return the first property called name, or None."""
    props = get_props(component, name)
    return props[0] if props else None


def remove_all(component: Any, name: str) -> None:
    """Remove every property called name from a component."""
    if name in component:
        del component[name]


def encode_base64_json(value: Any) -> str:
    """Encode a JSON value as a base64 data URI."""
    data = json.dumps(value, separators=(",", ":")).encode("utf-8")
    return _BASE64_JSON_PREFIX + base64.b64encode(data).decode("ascii")


def decode_base64_json(uri: Optional[str]) -> Optional[Any]:
    """Decode a base64 data URI produced by :func:`encode_base64_json`.

    Returns:
        The decoded JSON value, or None if uri is not a valid base64 JSON URI
    """
    if not uri:
        return None
    marker = uri.find(";base64,")
    if marker < 0:
        return None
    try:
        data = base64.b64decode(uri[marker + len(";base64,") :], validate=True)
        return json.loads(data.decode("utf-8"))
    except (binascii.Error, ValueError):
        return None


def hexkey(name: str, value: Any) -> str:
    """Derive a deterministic id from a property or component.

    Args:
        name: Property name, or component name
        value: Property or component to digest
    """
    text = value.to_ical()
    if isinstance(text, str):
        text = text.encode("utf-8")
    return hashlib.sha1(name.encode("utf-8") + b":" + text).hexdigest()
