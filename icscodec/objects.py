"""
The structured side of the codec: calendar events with their alarms and
attendees.  The parser populates these, the encoder consumes them.
"""
from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from datetime import date
from datetime import datetime
from datetime import timedelta
from enum import Enum
from typing import Dict
from typing import Optional
from typing import Union

from icscodec.recurrence import RecurrenceRule

TimeStamp = Union[date, datetime]

_PARTSTAT_MAP = {
    "NEEDS-ACTION": "pending",
    "ACCEPTED": "accepted",
    "DECLINED": "declined",
    "TENTATIVE": "tentative",
    "DELEGATED": "delegated",
    "COMPLETED": "completed",
    "IN-PROCESS": "in-process",
}
_STATUS_TO_PARTSTAT = {v: k for k, v in _PARTSTAT_MAP.items()}


class Availability(Enum):
    BUSY = "busy"
    FREE = "free"
    TENTATIVE = "tentative"
    UNAVAILABLE = "unavailable"

    @classmethod
    def from_ical(cls, status: Optional[str], transp: Optional[str]) -> Availability:
        """Derives the availability from the STATUS and TRANSP property values"""
        status = (status or "").upper()
        if status == "CANCELLED":
            return cls.UNAVAILABLE
        if status == "TENTATIVE":
            return cls.TENTATIVE
        if (transp or "").upper() == "TRANSPARENT":
            return cls.FREE
        return cls.BUSY

    def to_ical(self) -> Dict[str, str]:
        """The STATUS and TRANSP properties representing this availability"""
        return {
            Availability.BUSY: {"STATUS": "CONFIRMED", "TRANSP": "OPAQUE"},
            Availability.FREE: {"STATUS": "CONFIRMED", "TRANSP": "TRANSPARENT"},
            Availability.TENTATIVE: {"STATUS": "TENTATIVE", "TRANSP": "OPAQUE"},
            Availability.UNAVAILABLE: {"STATUS": "CANCELLED"},
        }[self]


@dataclass
class EventAlarm:
    """A time based reminder.

    Attributes:
        trigger_minutes: How many minutes before the start of the event
            the alarm goes off.  Negative for alarms after the start.
        type: ``"display"`` or ``"audio"``.
    """

    trigger_minutes: int = 0
    type: str = "display"

    @classmethod
    def from_trigger(
        cls, trigger: Union[timedelta, datetime], start: TimeStamp, type: str = "display"
    ) -> EventAlarm:
        """
        Builds an alarm from a TRIGGER value, either relative to the start
        (a timedelta, negative meaning before) or absolute (a datetime).
        """
        if isinstance(trigger, datetime):
            if not isinstance(start, datetime):
                start = datetime(start.year, start.month, start.day)
            if (trigger.tzinfo is None) != (start.tzinfo is None):
                trigger = trigger.replace(tzinfo=start.tzinfo)
            trigger = trigger - start
        ## truncated towards zero, so 30 seconds before and after both give 0
        return cls(trigger_minutes=int(-trigger.total_seconds() / 60), type=type)

    @property
    def trigger(self) -> timedelta:
        return timedelta(minutes=-self.trigger_minutes)

    def describe(self) -> str:
        minutes = self.trigger_minutes
        if minutes == 0:
            return "At time of event"
        when = "before" if minutes > 0 else "after"
        minutes = abs(minutes)
        if minutes < 60:
            amount, unit = minutes, "minute"
        elif minutes < 1440:
            amount, unit = minutes // 60, "hour"
        else:
            amount, unit = minutes // 1440, "day"
        return f"{amount} {unit}{'' if amount == 1 else 's'} {when}"


@dataclass
class EventAttendee:
    """
    Attributes:
        name: Display name (the CN parameter).
        email: Address without the ``mailto:`` scheme.
        status: One of accepted, declined, tentative, pending,
            delegated, completed, in-process or unknown.
        is_organizer: True for the ORGANIZER of the event.
    """

    name: Optional[str] = None
    email: Optional[str] = None
    status: str = "pending"
    is_organizer: bool = False

    @staticmethod
    def status_from_partstat(partstat: Optional[str]) -> str:
        if not partstat:
            return "pending"
        return _PARTSTAT_MAP.get(partstat.upper(), "unknown")

    @property
    def partstat(self) -> Optional[str]:
        return _STATUS_TO_PARTSTAT.get(self.status)


@dataclass
class CalendarEvent:
    """A calendar event.

    ``start`` and ``end`` are dates for all-day events and datetimes
    otherwise.  Naive datetimes are floating time.  If ``end`` is not
    given it defaults the way RFC 5545 does: one day after the start for
    all-day events, the start itself otherwise.

    Attributes:
        title: Short summary, SUMMARY.
        start: DTSTART.
        end: DTEND (exclusive).
        uid: UID.  The encoder makes one up if missing.
        calendar_name: Name of the calendar the event belongs to, taken
            from X-WR-CALNAME when parsing.
        location: LOCATION.
        notes: DESCRIPTION.
        url: URL.
        availability: From STATUS and TRANSP.
        recurrence_rule: The (first) RRULE.
        attendees: ATTENDEE and ORGANIZER.
        alarms: VALARM subcomponents.
        organizer_name: CN of the ORGANIZER.
        created: CREATED.
        last_modified: LAST-MODIFIED.
    """

    title: str
    start: TimeStamp
    end: Optional[TimeStamp] = None
    uid: Optional[str] = None
    calendar_name: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    url: Optional[str] = None
    availability: Availability = Availability.BUSY
    recurrence_rule: Optional[RecurrenceRule] = None
    attendees: list = field(default_factory=list)
    alarms: list = field(default_factory=list)
    organizer_name: Optional[str] = None
    created: Optional[datetime] = None
    last_modified: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.end is None:
            if self.all_day:
                self.end = self.start + timedelta(days=1)
            else:
                self.end = self.start

    @property
    def all_day(self) -> bool:
        return not isinstance(self.start, datetime)

    @property
    def has_recurrence(self) -> bool:
        return self.recurrence_rule is not None

    @property
    def duration(self) -> timedelta:
        return self.end - self.start
