"""Recurrence overrides: RDATE, EXDATE and exception VEVENTs.

Overrides map the local start of an occurrence to a patch against the master
event. An empty patch adds an occurrence (RDATE), ``{"excluded": true}``
removes one (EXDATE) and any other patch describes a modified occurrence,
stored as a sibling VEVENT with a RECURRENCE-ID.
"""

import copy
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from ..timezone import get_timezone_service
from .context import ConversionContext, Mode
from .exceptions import PatchError
from .models import EXCEPTION_SKIPPED_PROPERTIES, OVERRIDE_FORBIDDEN_PROPERTIES, EventProperty
from .patch import apply as apply_patch
from .patch import diff as diff_patch
from .values import format_duration, format_local, parse_local
from .xparams import get_prop, get_props, remove_all

logger = logging.getLogger(__name__)

EXCLUDED = "excluded"

# Bookkeeping fields that differ between master and exceptions by nature
_UNPATCHED_PROPERTIES = frozenset({EventProperty.CREATED.value, EventProperty.UPDATED.value})


def _local_key(value: Any, tzid: Optional[str]) -> str:
    """Render an occurrence start as a local date-time in the start zone."""
    if isinstance(value, datetime) and value.tzinfo is not None and tzid:
        tz = get_timezone_service().resolve(tzid)
        if tz is not None:
            value = value.astimezone(tz)
    return format_local(value)


def _period(value: Any) -> Optional[tuple]:
    if isinstance(value, tuple) and len(value) == 2:
        return value
    return None


def _dates(prop: Any) -> List[Any]:
    dts = getattr(prop, "dts", None)
    if dts is None:
        value = getattr(prop, "dt", None)
        return [value] if value is not None else []
    return [item.dt for item in dts]


def _exceptions(ctx: ConversionContext, comp: Any) -> List[Any]:
    if ctx.calendar is None:
        return []
    return [sub for sub in ctx.calendar.subcomponents if sub.name == "VEVENT" and sub is not comp]


def overrides_from_ical(ctx: ConversionContext, comp: Any, event: dict) -> Optional[dict]:
    """Collect the recurrence overrides of a master VEVENT.

    Args:
        ctx: Read context of the master event
        comp: Master VEVENT
        event: The master event object, with every other property converted

    Returns:
        Map of local recurrence id to patch, or None without overrides
    """
    from .reader import event_from_ical  # noqa: PLC0415

    overrides: Dict[str, Any] = {}

    for prop in get_props(comp, "RDATE"):
        for value in _dates(prop):
            period = _period(value)
            if period is None:
                overrides[_local_key(value, ctx.tzid_start)] = {}
                continue
            start, end = period
            duration = end if isinstance(end, timedelta) else end - start
            overrides[_local_key(start, ctx.tzid_start)] = {"duration": format_duration(duration)}

    for prop in get_props(comp, "EXDATE"):
        for value in _dates(prop):
            overrides[_local_key(value, ctx.tzid_start)] = {EXCLUDED: True}

    base = {
        key: value
        for key, value in event.items()
        if key not in EXCEPTION_SKIPPED_PROPERTIES and key not in _UNPATCHED_PROPERTIES
    }

    for excomp in _exceptions(ctx, comp):
        recurrence_id = get_prop(excomp, "RECURRENCE-ID")
        if recurrence_id is None:
            logger.debug("Skipping secondary VEVENT without RECURRENCE-ID")
            continue

        key = _local_key(recurrence_id.dt, ctx.tzid_start)
        nested = ctx.nested(mode=Mode.READ | Mode.EXCEPTION, master=comp)
        ex = event_from_ical(nested, excomp)
        for name in _UNPATCHED_PROPERTIES:
            ex.pop(name, None)

        exbase = base
        if ex.get(EventProperty.START.value) == key:
            del ex[EventProperty.START.value]
            exbase = {k: v for k, v in base.items() if k != EventProperty.START.value}

        overrides[key] = diff_patch(exbase, ex)

    return overrides or None


def _is_forbidden(patch: dict) -> bool:
    for pointer in patch:
        if pointer.split("/", 1)[0] in OVERRIDE_FORBIDDEN_PROPERTIES:
            return True
    return False


def _exception_component(comp: Any) -> Any:
    excomp = copy.deepcopy(comp)
    for name in ("RDATE", "EXDATE", "RRULE"):
        remove_all(excomp, name)
    return excomp


def _index_exceptions(ctx: ConversionContext, comp: Any) -> Dict[str, Any]:
    """Detach the exception VEVENTs from the calendar, keyed by recurrence id."""
    service = get_timezone_service()
    tzid = service.zone_id(ctx.tzstart)

    exceptions = _exceptions(ctx, comp)
    ctx.calendar.subcomponents = [
        sub for sub in ctx.calendar.subcomponents if sub.name != "VEVENT" or sub is comp
    ]

    index: Dict[str, Any] = {}
    for excomp in exceptions:
        recurrence_id = get_prop(excomp, "RECURRENCE-ID")
        if recurrence_id is not None:
            index[_local_key(recurrence_id.dt, tzid)] = excomp
    return index


def _read_master(ctx: ConversionContext, comp: Any) -> dict:
    from .reader import event_from_ical  # noqa: PLC0415

    wanted = [prop for prop in EventProperty if prop is not EventProperty.RECURRENCE_OVERRIDES]
    read_ctx = ConversionContext(
        Mode.READ, wanted=wanted, settings=ctx.settings, calendar=ctx.calendar
    )
    master = event_from_ical(read_ctx, comp)
    master.pop(EventProperty.RECURRENCE_RULE.value, None)
    master.pop(EventProperty.RECURRENCE_OVERRIDES.value, None)
    return master


def _override_to_ical(
    ctx: ConversionContext,
    comp: Any,
    master: dict,
    index: Dict[str, Any],
    key: str,
    start: Any,
    override: dict,
) -> None:
    from .writer import event_to_ical  # noqa: PLC0415

    if _is_forbidden(override):
        logger.debug(f"Ignoring override {key} patching a master-only property")
        return

    patch = dict(override)
    patch.setdefault(EventProperty.START.value, key)
    try:
        ex = apply_patch(master, patch)
    except PatchError as e:
        logger.debug(f"Cannot apply override {key}: {e}")
        ctx.invalid()
        return

    # Removed top-level members must be cleared on the exception component
    for pointer, value in patch.items():
        if value is None and "/" not in pointer:
            ex[pointer] = None

    excomp = index.pop(key, None)
    if excomp is None:
        excomp = _exception_component(comp)
    remove_all(excomp, "RECURRENCE-ID")
    excomp.add("RECURRENCE-ID", start)

    nested = ctx.nested(mode=ctx.mode | Mode.EXCEPTION, master=comp)
    event_to_ical(nested, excomp, ex)
    ctx.calendar.add_component(excomp)


def overrides_to_ical(ctx: ConversionContext, comp: Any, overrides: Any) -> None:
    """Replace the RDATEs, EXDATEs and exception VEVENTs of a master VEVENT.

    Must run after every other property of the master was written: modified
    occurrences are built by patching the master event read back from comp.

    Args:
        ctx: Write context of the master event
        comp: Master VEVENT, part of ``ctx.calendar``
        overrides: Map of local recurrence id to patch, or None
    """
    remove_all(comp, "RDATE")
    remove_all(comp, "EXDATE")
    index = _index_exceptions(ctx, comp)

    if overrides is None:
        return
    if not isinstance(overrides, dict):
        ctx.invalid(EventProperty.RECURRENCE_OVERRIDES.value)
        return

    master = _read_master(ctx, comp)

    for key, override in overrides.items():
        with ctx.prop(EventProperty.RECURRENCE_OVERRIDES.value, key):
            start = parse_local(key, ctx.tzstart, ctx.is_allday)
            if start is None or not isinstance(override, dict):
                ctx.invalid()
                continue

            if EXCLUDED in override:
                if override == {EXCLUDED: True}:
                    comp.add("EXDATE", start)
                else:
                    ctx.invalid(EXCLUDED)
            elif not override:
                comp.add("RDATE", start)
            else:
                _override_to_ical(ctx, comp, master, index, key, start, override)

    if index:
        logger.debug(f"Dropped {len(index)} exception(s) without override")
