"""iCalendar VEVENT to JMAP event object conversion."""

from .context import ConversionContext, Mode, PropStatus
from .converter import (
    EventConverter,
    calendar_to_json,
    find_master,
    get_converter,
    json_to_calendar,
    parse_calendar,
    to_component,
    to_event_object,
)
from .exceptions import (
    ConversionResourceError,
    ICalStructureError,
    InvalidPropertiesError,
    JMAPICalError,
    MissingUIDError,
    PatchError,
    strerror,
)
from .models import EventProperty

__all__ = [
    "ConversionContext",
    "ConversionResourceError",
    "EventConverter",
    "EventProperty",
    "ICalStructureError",
    "InvalidPropertiesError",
    "JMAPICalError",
    "MissingUIDError",
    "Mode",
    "PatchError",
    "PropStatus",
    "calendar_to_json",
    "find_master",
    "get_converter",
    "json_to_calendar",
    "parse_calendar",
    "strerror",
    "to_component",
    "to_event_object",
]
