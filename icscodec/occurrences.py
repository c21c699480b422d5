"""
Expansion of (possibly recurring) events into single occurrences.

This hands the encoded event to the icalendar and recurring_ical_events
libraries, which know the full RFC 5545 recurrence semantics.
"""
from datetime import date
from datetime import datetime
from typing import Iterable
from typing import List
from typing import Tuple
from typing import Union

import icalendar
import recurring_ical_events

from icscodec.encoder import encode
from icscodec.lib import error
from icscodec.objects import CalendarEvent

TimeStamp = Union[date, datetime]


def to_icalendar(
    events: Union[CalendarEvent, Iterable[CalendarEvent]], **kwargs
) -> icalendar.Calendar:
    """
    Returns an ``icalendar.Calendar`` holding the events.  Keyword
    arguments are passed on to :func:`~icscodec.encoder.encode`.
    """
    return icalendar.Calendar.from_ical(encode(events, **kwargs))


def occurrences(
    event: CalendarEvent, start: TimeStamp, end: TimeStamp
) -> List[Tuple[TimeStamp, TimeStamp]]:
    """Lists the (start, end) pairs of all occurrences of ``event``
    overlapping the window from ``start`` to ``end``, in chronological order.

    Aware date-times are written in UTC by the encoder, so occurrences of
    such events come back in UTC.  Floating events give naive date-times.
    """
    recurrings = recurring_ical_events.of(
        to_icalendar(event), components=["VEVENT"]
    ).between(start, end)

    recurrence_properties = {"EXDATE", "EXRULE", "RDATE", "RRULE"}
    error.assert_(
        not any(x for x in recurrings if not recurrence_properties.isdisjoint(x.keys()))
    )

    ret = []
    for occurrence in recurrings:
        occurrence_start = occurrence["DTSTART"].dt
        if "DTEND" in occurrence:
            occurrence_end = occurrence["DTEND"].dt
        else:
            occurrence_end = occurrence_start + event.duration
        ret.append((occurrence_start, occurrence_end))
    ret.sort(key=lambda pair: pair[0])
    return ret
