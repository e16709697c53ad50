"""Keywords, relatedTo, HTML descriptions and locale."""

import logging
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup
from icalendar.prop import vCategory, vText

from .context import ConversionContext
from .xparams import get_prop, get_props, get_xparam, remove_all, remove_xparam

logger = logging.getLogger(__name__)

HTML_DATA_PREFIX = "data:text/html,"


def keywords_from_ical(ctx: ConversionContext, comp: Any) -> Optional[List[str]]:
    """Collect the CATEGORIES of a component as keywords."""
    keywords: List[str] = []
    for prop in get_props(comp, "CATEGORIES"):
        for category in getattr(prop, "cats", [prop]):
            category = str(category)
            if category and category not in keywords:
                keywords.append(category)
    return keywords or None


def keywords_to_ical(ctx: ConversionContext, comp: Any, keywords: Any) -> None:
    """Replace the CATEGORIES of comp, one property per keyword."""
    remove_all(comp, "CATEGORIES")
    if keywords is None:
        return
    if not isinstance(keywords, list):
        ctx.invalid("keywords")
        return

    for i, keyword in enumerate(keywords):
        if not isinstance(keyword, str):
            with ctx.prop("keywords", i):
                ctx.invalid()
            continue
        comp.add("CATEGORIES", vCategory([keyword]))


def related_to_from_ical(ctx: ConversionContext, comp: Any) -> Optional[Dict[str, str]]:
    """Convert RELATED-TO properties to a map of relation type to UID."""
    related: Dict[str, str] = {}
    for prop in get_props(comp, "RELATED-TO"):
        reltype = get_xparam(prop, "RELTYPE")
        uid = str(prop)
        if not reltype or not uid:
            continue
        related[reltype.lower()] = uid
    return related or None


def related_to_to_ical(ctx: ConversionContext, comp: Any, related: Any) -> None:
    remove_all(comp, "RELATED-TO")
    if related is None:
        return
    if not isinstance(related, dict):
        ctx.invalid("relatedTo")
        return

    for reltype, uid in related.items():
        with ctx.prop("relatedTo", reltype):
            if not reltype or not isinstance(uid, str) or not uid:
                ctx.invalid()
                continue
            prop = vText(uid)
            prop.params["RELTYPE"] = reltype.upper()
            comp.add("RELATED-TO", prop)


def html_to_text(html: str) -> str:
    """Extract the plain text of an HTML fragment."""
    return BeautifulSoup(html, "html.parser").get_text()


def html_description_from_ical(ctx: ConversionContext, comp: Any) -> Optional[str]:
    """Return the HTML alternative representation of DESCRIPTION, if any."""
    prop = get_prop(comp, "DESCRIPTION")
    if prop is None:
        return None
    altrep = get_xparam(prop, "ALTREP")
    if not altrep or not altrep.lower().startswith(HTML_DATA_PREFIX):
        return None
    return altrep[len(HTML_DATA_PREFIX) :]


def html_description_to_ical(ctx: ConversionContext, comp: Any, html: Optional[str]) -> None:
    """Set or clear the HTML alternative representation of DESCRIPTION.

    Must run after the plain description was written: an empty DESCRIPTION
    is filled with the text extracted from html.

    Args:
        ctx: Write context
        comp: VEVENT or VALARM component to modify
        html: HTML description, or None to remove it
    """
    prop = get_prop(comp, "DESCRIPTION")
    if prop is not None:
        remove_xparam(prop, "ALTREP")
    if html is None:
        return

    text = str(prop) if prop is not None else ""
    if not text:
        text = html_to_text(html)

    params = dict(prop.params) if prop is not None else {}
    params["ALTREP"] = HTML_DATA_PREFIX + html

    remove_all(comp, "DESCRIPTION")
    description = vText(text)
    description.params.update(params)
    comp.add("DESCRIPTION", description)


def locale_from_ical(ctx: ConversionContext, comp: Any) -> Optional[str]:
    """Return the LANGUAGE of SUMMARY, falling back to DESCRIPTION."""
    for name in ("SUMMARY", "DESCRIPTION"):
        prop = get_prop(comp, name)
        if prop is None:
            continue
        language = get_xparam(prop, "LANGUAGE")
        if language:
            return language
    return None


def locale_to_ical(ctx: ConversionContext, comp: Any, locale: Optional[str]) -> None:
    """Set LANGUAGE on SUMMARY, clearing it from SUMMARY and DESCRIPTION first."""
    for name in ("SUMMARY", "DESCRIPTION"):
        prop = get_prop(comp, name)
        if prop is not None:
            remove_xparam(prop, "LANGUAGE")
    if locale is None:
        return

    summary = get_prop(comp, "SUMMARY")
    if summary is None:
        logger.debug("Dropping locale of an event without title")
        return
    summary.params["LANGUAGE"] = locale
