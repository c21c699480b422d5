#!/usr/bin/env python
import logging

__version__ = "1.0.0"

from .encoder import encode
from .objects import Availability
from .objects import CalendarEvent
from .objects import EventAlarm
from .objects import EventAttendee
from .occurrences import occurrences
from .occurrences import to_icalendar
from .parser import parse
from .parser import ParseResult
from .recurrence import Frequency
from .recurrence import RecurrenceRule

# Silence notification of no default logging handler
log = logging.getLogger("icscodec")


class NullHandler(logging.Handler):
    def emit(self, record) -> None:
        pass


log.addHandler(NullHandler())

__all__ = [
    "__version__",
    "parse",
    "encode",
    "occurrences",
    "to_icalendar",
    "ParseResult",
    "CalendarEvent",
    "EventAlarm",
    "EventAttendee",
    "Availability",
    "RecurrenceRule",
    "Frequency",
]
