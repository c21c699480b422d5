"""
:class:`~icscodec.objects.CalendarEvent` → ics text
"""
from __future__ import annotations

import uuid
from datetime import date
from datetime import datetime
from datetime import timezone
from typing import Iterable
from typing import List
from typing import Optional
from typing import TYPE_CHECKING
from typing import Union

from icscodec.lib.error import log
from icscodec.lib.lines import fold_lines
from icscodec.lib.tokenizer import format_property
from icscodec.lib.values import escape_text
from icscodec.lib.values import format_date_time
from icscodec.lib.values import format_duration
from icscodec.objects import CalendarEvent
from icscodec.objects import EventAttendee

if TYPE_CHECKING:
    from icscodec.config import CodecConfig

DEFAULT_PRODID = "-//icscodec//icscodec//EN"


def _date_line(name: str, value: Union[date, datetime]) -> str:
    text, params = format_date_time(value)
    return format_property(name, text, params)


def _text_line(name: str, value: str) -> str:
    return format_property(name, escape_text(value))


def _address_line(name: str, attendee: EventAttendee) -> str:
    params = {}
    if attendee.name:
        params["CN"] = attendee.name
    if attendee.partstat:
        params["PARTSTAT"] = attendee.partstat
    return format_property(name, f"mailto:{attendee.email}", params)


def encode_event(event: CalendarEvent, now: Optional[datetime] = None) -> List[str]:
    """Returns the (unfolded) content lines of one VEVENT, BEGIN and END included"""
    if now is None:
        now = datetime.now(tz=timezone.utc)
    elif now.tzinfo is None:
        ## DTSTAMP has to be in UTC
        now = now.replace(tzinfo=timezone.utc)

    lines = ["BEGIN:VEVENT"]
    lines.append(_text_line("UID", event.uid or str(uuid.uuid4())))
    lines.append(_date_line("DTSTAMP", now))
    lines.append(_date_line("DTSTART", event.start))
    if event.end is not None:
        lines.append(_date_line("DTEND", event.end))
    if event.title:
        lines.append(_text_line("SUMMARY", event.title))
    if event.location is not None:
        lines.append(_text_line("LOCATION", event.location))
    if event.notes is not None:
        lines.append(_text_line("DESCRIPTION", event.notes))
    if event.url:
        lines.append(format_property("URL", event.url))
    for name, value in event.availability.to_ical().items():
        lines.append(format_property(name, value))
    if event.created is not None:
        lines.append(_date_line("CREATED", event.created))
    if event.last_modified is not None:
        lines.append(_date_line("LAST-MODIFIED", event.last_modified))
    if event.recurrence_rule is not None:
        lines.append(format_property("RRULE", event.recurrence_rule.to_rrule()))

    attendees = []
    for attendee in event.attendees:
        if attendee.email:
            attendees.append(attendee)
        else:
            log.info(f"attendee {attendee.name} has no address, not exported")
    ## the organizer is listed as an attendee as well; the parser
    ## merges the two lines back into one attendee
    for attendee in attendees:
        if attendee.is_organizer:
            lines.append(_address_line("ORGANIZER", attendee))
            break
    for attendee in attendees:
        lines.append(_address_line("ATTENDEE", attendee))

    for alarm in event.alarms:
        lines.append("BEGIN:VALARM")
        lines.append(format_property("ACTION", alarm.type.upper()))
        lines.append(format_property("TRIGGER", format_duration(alarm.trigger)))
        if alarm.type != "audio":
            lines.append(_text_line("DESCRIPTION", event.title or "Reminder"))
        lines.append("END:VALARM")

    lines.append("END:VEVENT")
    return lines


def encode(
    events: Union[CalendarEvent, Iterable[CalendarEvent]],
    calendar_name: Optional[str] = None,
    prodid: Optional[str] = None,
    now: Optional[datetime] = None,
    config: Optional[CodecConfig] = None,
) -> str:
    """Serializes events into one VCALENDAR.

    Lines are folded at 75 octets and terminated with CRLF.

    :param calendar_name: written as X-WR-CALNAME
    :param prodid: defaults to ``config.prodid``, then to DEFAULT_PRODID
    :param now: the DTSTAMP to use, defaults to the current time
    """
    if isinstance(events, CalendarEvent):
        events = [events]
    if config is not None:
        calendar_name = calendar_name or config.calendar_name
        prodid = prodid or config.prodid
    if now is None:
        now = datetime.now(tz=timezone.utc)

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        _text_line("PRODID", prodid or DEFAULT_PRODID),
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
    ]
    if calendar_name:
        lines.append(_text_line("X-WR-CALNAME", calendar_name))
    count = 0
    for event in events:
        lines.extend(encode_event(event, now))
        count += 1
    lines.append("END:VCALENDAR")
    log.debug(f"encoded {count} events")
    return fold_lines(lines)
