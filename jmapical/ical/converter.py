"""Event converter facade: iCalendar data to event objects and back."""

import copy
import json
import logging
from typing import Any, Iterable, List, Optional, Union

from icalendar import Calendar, Event

from ..config.settings import ConverterSettings, get_settings
from ..timezone import now_utc
from .context import ConversionContext, Mode, PropertyName
from .exceptions import (
    ConversionResourceError,
    ICalStructureError,
    InvalidPropertiesError,
    MissingUIDError,
)
from .reader import event_from_ical
from .writer import event_to_ical
from .xparams import get_prop

logger = logging.getLogger(__name__)

CalendarInput = Union[Calendar, str, bytes]


def parse_calendar(data: CalendarInput) -> Calendar:
    """Parse iCalendar text into a Calendar, passing Calendar objects through.

    Raises:
        ICalStructureError: If the text is not a VCALENDAR
    """
    if isinstance(data, Calendar):
        return data
    try:
        calendar = Calendar.from_ical(data)
    except ValueError as e:
        raise ICalStructureError(f"Cannot parse iCalendar data: {e}") from e
    if not isinstance(calendar, Calendar):
        raise ICalStructureError("iCalendar data has no VCALENDAR")
    return calendar


def _events(calendar: Calendar) -> List[Event]:
    return [sub for sub in calendar.subcomponents if sub.name == "VEVENT"]


def find_master(calendar: Calendar, strict: bool = False) -> Event:
    """Return the master VEVENT of a calendar.

    The master is the first VEVENT without RECURRENCE-ID. Unless strict, a
    calendar holding only exceptions yields its first VEVENT.

    Raises:
        ICalStructureError: If there is no suitable VEVENT
    """
    events = _events(calendar)
    for event in events:
        if get_prop(event, "RECURRENCE-ID") is None:
            return event
    if events and not strict:
        return events[0]
    raise ICalStructureError("Calendar has no master VEVENT")


class EventConverter:
    """Convert between iCalendar VEVENTs and JMAP event objects.

    One converter may serve many calls; each call gets its own
    :class:`ConversionContext`.

    Example:
        >>> converter = EventConverter()
        >>> event = converter.to_event_object(ics_text, wanted=["title", "start"])
        >>> calendar = converter.to_component({"title": "Moved"}, existing=ics_text)
    """

    def __init__(self, settings: Optional[ConverterSettings] = None) -> None:
        self.settings = settings or get_settings()

    def to_event_object(
        self,
        calendar: CalendarInput,
        wanted: Optional[Iterable[PropertyName]] = None,
    ) -> dict:
        """Convert the master VEVENT of a calendar to an event object.

        Args:
            calendar: Parsed Calendar, or iCalendar text
            wanted: Event properties to return, None for all

        Returns:
            Event object

        Raises:
            ICalStructureError: If the calendar has no VEVENT
            ConversionResourceError: If the conversion ran out of memory
        """
        calendar = parse_calendar(calendar)
        master = find_master(calendar)

        ctx = ConversionContext(Mode.READ, wanted=wanted, settings=self.settings, calendar=calendar)
        try:
            event = event_from_ical(ctx, master)
        except MemoryError as e:
            raise ConversionResourceError() from e

        logger.debug(f"Converted VEVENT {event.get('uid')} to event object")
        return event

    def _new_calendar(self) -> Calendar:
        calendar = Calendar()
        calendar.add("PRODID", self.settings.prod_id)
        calendar.add("VERSION", "2.0")
        calendar.add("CALSCALE", "GREGORIAN")

        comp = Event()
        now = now_utc()
        comp.add("SEQUENCE", 0)
        comp.add("DTSTAMP", now)
        comp.add("CREATED", now)
        calendar.add_component(comp)
        return calendar

    def to_component(self, event: dict, existing: Optional[CalendarInput] = None) -> Calendar:
        """Convert an event object to a calendar.

        Without existing, creates a new calendar from a complete event
        object. With existing, applies the (partial) event object as an
        update; the existing calendar is left untouched.

        Args:
            event: Event object
            existing: Current calendar of the event, for updates

        Returns:
            Calendar with the master VEVENT and its exceptions

        Raises:
            InvalidPropertiesError: If the event object has invalid properties
            MissingUIDError: If neither event nor existing has a UID
            ICalStructureError: If existing has no master VEVENT
            ConversionResourceError: If the conversion ran out of memory
        """
        if not isinstance(event, dict):
            raise InvalidPropertiesError([], "Event object must be a JSON object")

        if existing is not None:
            mode = Mode.WRITE | Mode.UPDATE
            calendar = copy.deepcopy(parse_calendar(existing))
            comp = find_master(calendar, strict=True)
        else:
            mode = Mode.WRITE
            calendar = self._new_calendar()
            comp = find_master(calendar, strict=True)

        ctx = ConversionContext(mode, settings=self.settings, calendar=calendar)
        ctx.uid = event.get("uid") if isinstance(event.get("uid"), str) else None
        if not ctx.uid:
            uid = get_prop(comp, "UID")
            ctx.uid = str(uid) if uid is not None else None
        if not ctx.uid:
            raise MissingUIDError()

        try:
            event_to_ical(ctx, comp, event)
        except MemoryError as e:
            raise ConversionResourceError() from e

        if ctx.has_invalid():
            invalid = ctx.invalid_properties
            logger.warning(f"Event {ctx.uid} has invalid properties: {', '.join(invalid)}")
            raise InvalidPropertiesError(invalid)

        if self.settings.add_timezones:
            calendar.add_missing_timezones()

        logger.debug(f"Converted event object {ctx.uid} to VEVENT")
        return calendar

    def calendar_to_json(self, calendar: CalendarInput, pretty: Optional[bool] = None) -> str:
        """Convert a calendar to the JSON text of its event object."""
        event = self.to_event_object(calendar)
        if pretty is None:
            pretty = self.settings.pretty_json
        return json.dumps(event, indent=2 if pretty else None, ensure_ascii=False)

    def json_to_calendar(self, text: Union[str, bytes]) -> Optional[Calendar]:
        """Convert the JSON text of an event object to a new calendar.

        Returns:
            Calendar, or None if text is not valid JSON

        Raises:
            InvalidPropertiesError: If the event object has invalid properties
            MissingUIDError: If the event object has no UID
        """
        try:
            event = json.loads(text)
        except ValueError as e:
            logger.warning(f"Cannot parse event object JSON: {e}")
            return None
        return self.to_component(event)


# Global converter instance
_converter: Optional[EventConverter] = None


def get_converter() -> EventConverter:
    """Get global converter instance.

    Returns:
        Singleton EventConverter instance using the global settings.
    """
    if globals()["_converter"] is None:
        globals()["_converter"] = EventConverter()
    return globals()["_converter"]


def _converter_for(settings: Optional[ConverterSettings]) -> EventConverter:
    return EventConverter(settings) if settings is not None else get_converter()


# Convenience functions for direct use
def to_event_object(
    calendar: CalendarInput,
    wanted: Optional[Iterable[PropertyName]] = None,
    settings: Optional[ConverterSettings] = None,
) -> dict:
    """Convert the master VEVENT of a calendar to an event object."""
    return _converter_for(settings).to_event_object(calendar, wanted)


def to_component(
    event: dict,
    existing: Optional[CalendarInput] = None,
    settings: Optional[ConverterSettings] = None,
) -> Calendar:
    """Convert an event object to a calendar."""
    return _converter_for(settings).to_component(event, existing)


def calendar_to_json(
    calendar: CalendarInput,
    pretty: Optional[bool] = None,
    settings: Optional[ConverterSettings] = None,
) -> str:
    return _converter_for(settings).calendar_to_json(calendar, pretty)


def json_to_calendar(
    text: Union[str, bytes], settings: Optional[ConverterSettings] = None
) -> Optional[Calendar]:
    return _converter_for(settings).json_to_calendar(text)
