"""Links: ATTACH and X-ATTACH properties keyed by stable ids."""

import logging
from typing import Any, Dict, Optional

from icalendar.prop import vUri

from .context import ConversionContext, PropStatus
from .xparams import (
    X_CID,
    X_ID,
    X_PROPERTIES,
    X_REL,
    X_TITLE,
    XPROP_ATTACH,
    decode_base64_json,
    encode_base64_json,
    get_props,
    get_xparam,
    remove_all,
    set_xparam,
)

logger = logging.getLogger(__name__)

LINK_PREFIX = "link"
ALERT_ATTACHMENT_PREFIX = "alertAttachment"
ALERT_MEDIA_LINK_PREFIX = "alertMediaLink"


def _is_binary(prop: Any) -> bool:
    value_type = get_xparam(prop, "VALUE") or ""
    return value_type.upper() == "BINARY" or get_xparam(prop, "ENCODING") is not None


def link_from_ical(prop: Any) -> Optional[dict]:
    """Convert one ATTACH or X-ATTACH property to a link object.

    Returns:
        Link object, or None for inline binary attachments and empty URIs
    """
    if _is_binary(prop):
        logger.debug("Skipping binary attachment")
        return None

    href = str(prop)
    if not href:
        return None

    size_param = get_xparam(prop, "SIZE")
    try:
        size = int(size_param) if size_param is not None else None
    except ValueError:
        size = None

    return {
        "href": href,
        "cid": get_xparam(prop, X_CID),
        "type": get_xparam(prop, "FMTTYPE"),
        "title": get_xparam(prop, X_TITLE),
        "properties": decode_base64_json(get_xparam(prop, X_PROPERTIES)),
        "size": size,
        "rel": get_xparam(prop, X_REL),
    }


def links_from_ical(
    ctx: ConversionContext, comp: Any, id_prefix: str = LINK_PREFIX
) -> Optional[dict]:
    """Convert the links of a component.

    Args:
        ctx: Read context
        comp: VEVENT or VALARM component
        id_prefix: Prefix of generated ids for links without X-JMAP-ID

    Returns:
        Map of link id to link object, or None if there are no links
    """
    found = []
    for name in ("ATTACH", XPROP_ATTACH):
        for prop in get_props(comp, name):
            link = link_from_ical(prop)
            if link is not None:
                found.append((get_xparam(prop, X_ID), link))

    # Generated ids must not collide with explicit ones, wherever they appear
    taken = {link_id for link_id, _ in found if link_id}
    links: Dict[str, dict] = {}
    for link_id, link in found:
        if not link_id or link_id in links:
            ordinal = len(links) + 1
            while f"{id_prefix}{ordinal}" in taken:
                ordinal += 1
            link_id = f"{id_prefix}{ordinal}"
            taken.add(link_id)
        links[link_id] = link
    return links or None


def _link_to_ical(ctx: ConversionContext, link: Any, link_id: str) -> Optional[vUri]:
    if not isinstance(link, dict):
        ctx.invalid()
        return None

    status, href = ctx.read_prop(link, "href", str, mandatory=True)
    if status is PropStatus.FOUND and not href:
        ctx.invalid("href")

    media_type = title = cid = rel = properties = size = None
    if link.get("type") is not None:
        _, media_type = ctx.read_prop(link, "type", str)
    if link.get("title") is not None:
        _, title = ctx.read_prop(link, "title", str)
    if link.get("cid") is not None:
        _, cid = ctx.read_prop(link, "cid", str)
    if link.get("rel") is not None:
        _, rel = ctx.read_prop(link, "rel", str)
    if link.get("size") is not None:
        status, size = ctx.read_prop(link, "size", int)
        if status is PropStatus.FOUND and size < 0:
            ctx.invalid("size")
    if link.get("properties") is not None:
        status, properties = ctx.read_prop(link, "properties", dict)
        if status is PropStatus.FOUND and not properties:
            ctx.invalid("properties")

    if not href or ctx.has_invalid():
        return None

    prop = vUri(href)
    prop.params["VALUE"] = "URI"
    if media_type:
        prop.params["FMTTYPE"] = media_type
    if title:
        set_xparam(prop, X_TITLE, title, purge=True)
    if cid:
        set_xparam(prop, X_CID, cid, purge=True)
    if size is not None and size >= 0:
        prop.params["SIZE"] = str(size)
    if rel:
        set_xparam(prop, X_REL, rel, purge=True)
    if properties:
        set_xparam(prop, X_PROPERTIES, encode_base64_json(properties), purge=True)
    set_xparam(prop, X_ID, link_id, purge=True)
    return prop


def links_to_ical(
    ctx: ConversionContext,
    comp: Any,
    links: Any,
    name: str = "links",
    prop_name: str = "ATTACH",
) -> None:
    """Replace the ATTACH (or X-ATTACH) properties of comp with links.

    Args:
        ctx: Write context
        comp: VEVENT or VALARM component to modify
        links: Map of link id to link object, or None to remove all links
        name: Event object property name, used in invalid property paths
        prop_name: ATTACH or X-ATTACH
    """
    remove_all(comp, prop_name)
    if links is None:
        return
    if not isinstance(links, dict):
        ctx.invalid(name)
        return

    for link_id, link in links.items():
        with ctx.prop(name, link_id):
            prop = _link_to_ical(ctx, link, link_id)
        if prop is not None:
            comp.add(prop_name, prop)
