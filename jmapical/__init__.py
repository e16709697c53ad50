"""jmapical - convert between iCalendar VEVENTs and JMAP calendar event objects."""

from .ical import (
    EventConverter,
    EventProperty,
    ICalStructureError,
    InvalidPropertiesError,
    JMAPICalError,
    MissingUIDError,
    calendar_to_json,
    json_to_calendar,
    to_component,
    to_event_object,
)

__version__ = "1.0.0"
__author__ = "jmapical Team"
__description__ = "Bidirectional converter between iCalendar VEVENTs and JMAP event objects"

__all__ = [
    "EventConverter",
    "EventProperty",
    "ICalStructureError",
    "InvalidPropertiesError",
    "JMAPICalError",
    "MissingUIDError",
    "__author__",
    "__description__",
    "__version__",
    "calendar_to_json",
    "json_to_calendar",
    "to_component",
    "to_event_object",
]
