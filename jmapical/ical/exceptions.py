"""Conversion-specific exceptions for error handling."""

from typing import Iterable, Optional

# Error codes, one per failure kind
ERROR_MEMORY = "MEMORY"
ERROR_ICAL = "ICAL"
ERROR_PROPS = "PROPS"
ERROR_UID = "UID"
ERROR_UNKNOWN = "UNKNOWN"

_MESSAGES = {
    ERROR_MEMORY: "jmapical: no memory",
    ERROR_ICAL: "jmapical: iCalendar error",
    ERROR_PROPS: "jmapical: property error",
    ERROR_UID: "jmapical: iCalendar uid error",
    ERROR_UNKNOWN: "jmapical: unknown error",
}


def strerror(code: Optional[str]) -> str:
    """Return the human readable message for an error code."""
    if code is None:
        return "jmapical: success"
    return _MESSAGES.get(code, _MESSAGES[ERROR_UNKNOWN])


class JMAPICalError(Exception):
    """Base exception for conversion errors."""

    code = ERROR_UNKNOWN

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        if code is not None:
            self.code = code
        message = message or strerror(self.code)
        super().__init__(message)
        self.message = message


class InvalidPropertiesError(JMAPICalError):
    """Exception raised when an event object has invalid properties.

    The ``properties`` attribute lists every offending property path, in the
    order they were discovered.
    """

    code = ERROR_PROPS

    def __init__(self, properties: Iterable[str], message: Optional[str] = None):
        self.properties = list(properties)
        super().__init__(message or f"{strerror(ERROR_PROPS)}: {', '.join(self.properties)}")


class ICalStructureError(JMAPICalError):
    """Exception raised when a calendar component tree cannot be converted."""

    code = ERROR_ICAL


class MissingUIDError(JMAPICalError):
    """Exception raised when no UID can be determined for a new component."""

    code = ERROR_UID


class ConversionResourceError(JMAPICalError):
    """Exception raised when a conversion runs out of resources."""

    code = ERROR_MEMORY


class PatchError(JMAPICalError):
    """Exception raised when a patch object cannot be applied."""

