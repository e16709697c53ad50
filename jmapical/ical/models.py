"""Known event object fields and enumerated values."""

from enum import Enum


class EventProperty(str, Enum):
    """Top-level properties of an event object."""

    TYPE = "@type"
    UID = "uid"
    RELATED_TO = "relatedTo"
    PROD_ID = "prodId"
    CREATED = "created"
    UPDATED = "updated"
    SEQUENCE = "sequence"
    PRIORITY = "priority"
    TITLE = "title"
    DESCRIPTION = "description"
    HTML_DESCRIPTION = "htmlDescription"
    COLOR = "color"
    KEYWORDS = "keywords"
    LINKS = "links"
    LOCALE = "locale"
    LOCATIONS = "locations"
    IS_ALL_DAY = "isAllDay"
    START = "start"
    TIME_ZONE = "timeZone"
    DURATION = "duration"
    RECURRENCE_RULE = "recurrenceRule"
    RECURRENCE_OVERRIDES = "recurrenceOverrides"
    STATUS = "status"
    FREE_BUSY_STATUS = "freeBusyStatus"
    PRIVACY = "privacy"
    REPLY_TO = "replyTo"
    PARTICIPANTS = "participants"
    USE_DEFAULT_ALERTS = "useDefaultAlerts"
    ALERTS = "alerts"


class EventStatus(str, Enum):
    """Event status values and their STATUS counterparts."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    TENTATIVE = "tentative"


class FreeBusyStatus(str, Enum):
    """Free/busy values and their TRANSP counterparts."""

    FREE = "free"
    BUSY = "busy"


class Privacy(str, Enum):
    """Privacy values and their CLASS counterparts."""

    PUBLIC = "public"
    PRIVATE = "private"
    SECRET = "secret"


class RelativeTo(str, Enum):
    """Alert anchors, carrying the sign of the offset."""

    BEFORE_START = "before-start"
    AFTER_START = "after-start"
    BEFORE_END = "before-end"
    AFTER_END = "after-end"


class RsvpResponse(str, Enum):
    """Participant replies."""

    NEEDS_ACTION = "needs-action"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    TENTATIVE = "tentative"


JSEVENT_TYPE = "jsevent"

# Fields inherited from the master event that exceptions cannot carry
EXCEPTION_SKIPPED_PROPERTIES = frozenset(
    {
        EventProperty.IS_ALL_DAY.value,
        EventProperty.UID.value,
        EventProperty.RELATED_TO.value,
        EventProperty.PROD_ID.value,
        EventProperty.RECURRENCE_RULE.value,
        EventProperty.REPLY_TO.value,
        EventProperty.RECURRENCE_OVERRIDES.value,
    }
)

# Fields a recurrence override must not patch
OVERRIDE_FORBIDDEN_PROPERTIES = frozenset(
    {
        EventProperty.UID.value,
        EventProperty.RELATED_TO.value,
        EventProperty.PROD_ID.value,
        EventProperty.IS_ALL_DAY.value,
        EventProperty.RECURRENCE_RULE.value,
        EventProperty.RECURRENCE_OVERRIDES.value,
        EventProperty.REPLY_TO.value,
        "participantId",
    }
)

# iCalendar STATUS <-> status
STATUS_FROM_ICAL = {
    "TENTATIVE": EventStatus.TENTATIVE.value,
    "CONFIRMED": EventStatus.CONFIRMED.value,
    "CANCELLED": EventStatus.CANCELLED.value,
}
STATUS_TO_ICAL = {value: key for key, value in STATUS_FROM_ICAL.items()}

# iCalendar CLASS <-> privacy
PRIVACY_FROM_ICAL = {
    "CONFIDENTIAL": Privacy.SECRET.value,
    "PRIVATE": Privacy.PRIVATE.value,
}
PRIVACY_TO_ICAL = {
    Privacy.PUBLIC.value: "PUBLIC",
    Privacy.PRIVATE.value: "PRIVATE",
    Privacy.SECRET.value: "CONFIDENTIAL",
}
