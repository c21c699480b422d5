"""
ics text → :class:`~icscodec.objects.CalendarEvent`

Structural problems (dangling continuation lines, unbalanced
BEGIN/END) abort the whole parse.  Problems with a single property are
recovered from: the property is dropped and a warning recorded.  A VEVENT
without a usable DTSTART is skipped and recorded in ``skipped``.
"""
from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from datetime import tzinfo
from typing import Any
from typing import Iterator
from typing import List
from typing import Optional
from typing import TYPE_CHECKING
from typing import Union

from icscodec.lib.components import assemble
from icscodec.lib.components import ComponentRecord
from icscodec.lib.error import ICSError
from icscodec.lib.error import InvalidValue
from icscodec.lib.error import log
from icscodec.lib.error import MissingRequiredProperty
from icscodec.lib.lines import unfold_lines
from icscodec.lib.tokenizer import Property
from icscodec.lib.values import as_tzinfo
from icscodec.lib.values import decode_value
from icscodec.lib.values import DecodeContext
from icscodec.objects import Availability
from icscodec.objects import CalendarEvent
from icscodec.objects import EventAlarm
from icscodec.objects import EventAttendee

if TYPE_CHECKING:
    from icscodec.config import CodecConfig


@dataclass
class ParseResult:
    """What came out of one ics file.

    Iterating over a ParseResult (or taking its ``len``) works on the
    events.
    """

    events: List[CalendarEvent] = field(default_factory=list)
    warnings: List[ICSError] = field(default_factory=list)
    skipped: List[MissingRequiredProperty] = field(default_factory=list)
    timezones: List[str] = field(default_factory=list)

    def __iter__(self) -> Iterator[CalendarEvent]:
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)

    def __getitem__(self, index: int) -> CalendarEvent:
        return self.events[index]


def _decode(
    component: ComponentRecord, key: str, context: DecodeContext
) -> Optional[Any]:
    """Decodes the first ``key`` property; a broken value is dropped with a warning"""
    prop = component.get(key)
    if prop is None:
        return None
    return _decode_property(prop, context)


def _decode_property(prop: Property, context: DecodeContext) -> Optional[Any]:
    try:
        return decode_value(prop, context)
    except ICSError as e:
        context.warn(e)
        return None


def _collect_timezones(toplevel: List[ComponentRecord], context: DecodeContext) -> List[str]:
    tzids = []
    for component in toplevel:
        for vtimezone in component.walk("VTIMEZONE"):
            tzid = _decode(vtimezone, "TZID", context)
            if not tzid:
                continue
            tzids.append(tzid)
            location = _decode(vtimezone, "X-LIC-LOCATION", context)
            if location:
                context.timezone_hints[tzid] = location
    return tzids


def _attendees(vevent: ComponentRecord, context: DecodeContext) -> tuple:
    attendees = []
    for prop in vevent.get_all("ATTENDEE"):
        email = _decode_property(prop, context)
        if email is None:
            continue
        attendees.append(
            EventAttendee(
                name=prop.param("CN"),
                email=email,
                status=EventAttendee.status_from_partstat(prop.param("PARTSTAT")),
            )
        )

    organizer_name = None
    prop = vevent.get("ORGANIZER")
    email = _decode_property(prop, context) if prop is not None else None
    if email is not None:
        organizer_name = prop.param("CN")
        for attendee in attendees:
            if attendee.email and attendee.email.lower() == email.lower():
                attendee.is_organizer = True
                break
        else:
            attendees.append(
                EventAttendee(
                    name=organizer_name,
                    email=email,
                    status=EventAttendee.status_from_partstat(prop.param("PARTSTAT")),
                    is_organizer=True,
                )
            )
    return attendees, organizer_name


def _alarms(vevent: ComponentRecord, event: CalendarEvent, context: DecodeContext):
    alarms = []
    for valarm in vevent.components:
        if valarm.kind != "VALARM":
            continue
        prop = valarm.get("TRIGGER")
        trigger = _decode_property(prop, context) if prop is not None else None
        if trigger is None:
            context.warn(MissingRequiredProperty(property="TRIGGER", reason="VALARM dropped"))
            continue
        if not isinstance(trigger, datetime) and (prop.param("RELATED") or "").upper() == "END":
            trigger = trigger + event.duration
        action = _decode(valarm, "ACTION", context)
        alarms.append(
            EventAlarm.from_trigger(
                trigger, event.start, type="audio" if action == "AUDIO" else "display"
            )
        )
    return alarms


def _build_event(
    vevent: ComponentRecord,
    context: DecodeContext,
    calendar_name: Optional[str],
    skipped: List[MissingRequiredProperty],
) -> Optional[CalendarEvent]:
    uid = _decode(vevent, "UID", context)
    dtstart = vevent.get("DTSTART")
    if dtstart is None:
        skip = MissingRequiredProperty(property="DTSTART", raw=uid, reason="VEVENT has no DTSTART")
        log.warning(str(skip))
        skipped.append(skip)
        return None
    try:
        start = decode_value(dtstart, context)
    except ICSError as e:
        skip = MissingRequiredProperty(
            property="DTSTART", raw=dtstart.value, reason=f"VEVENT {uid} skipped, {e.reason}"
        )
        log.warning(str(skip))
        skipped.append(skip)
        return None

    end = _decode(vevent, "DTEND", context)
    if end is not None and isinstance(end, datetime) != isinstance(start, datetime):
        context.warn(
            InvalidValue("DTEND", vevent.get("DTEND").value, "DTEND and DTSTART differ in type")
        )
        end = None
    if end is None:
        duration = _decode(vevent, "DURATION", context)
        if duration is not None:
            end = start + duration

    rrule = _decode(vevent, "RRULE", context)
    if len(vevent.get_all("RRULE")) > 1:
        log.info(f"VEVENT {uid} has several RRULEs, only the first one is kept")

    attendees, organizer_name = _attendees(vevent, context)
    event = CalendarEvent(
        title=_decode(vevent, "SUMMARY", context) or "",
        start=start,
        end=end,
        uid=uid,
        calendar_name=calendar_name,
        location=_decode(vevent, "LOCATION", context),
        notes=_decode(vevent, "DESCRIPTION", context),
        url=_decode(vevent, "URL", context),
        availability=Availability.from_ical(
            _decode(vevent, "STATUS", context), _decode(vevent, "TRANSP", context)
        ),
        recurrence_rule=rrule,
        attendees=attendees,
        organizer_name=organizer_name,
        created=_decode(vevent, "CREATED", context),
        last_modified=_decode(vevent, "LAST-MODIFIED", context),
    )
    event.alarms = _alarms(vevent, event, context)
    return event


def parse(
    text: Union[str, bytes],
    default_timezone: Union[tzinfo, str, None] = None,
    config: Optional[CodecConfig] = None,
) -> ParseResult:
    """Parses ics data into calendar events, in file order.

    :param text: the ics data, str or UTF-8 bytes
    :param default_timezone: zone (tzinfo or IANA name) given to floating
        date-times.  Floating date-times stay naive if neither this nor
        ``config.default_timezone`` is set.
    :param config: a :class:`~icscodec.config.CodecConfig`
    :raises DanglingContinuation: see :func:`~icscodec.lib.lines.unfold_lines`
    :raises UnbalancedComponent: see :func:`~icscodec.lib.components.assemble`
    """
    if default_timezone is None and config is not None:
        default_timezone = config.default_timezone
    context = DecodeContext(default_timezone=as_tzinfo(default_timezone))
    toplevel = assemble(unfold_lines(text), warnings=context.warnings)

    result = ParseResult(warnings=context.warnings)
    result.timezones = _collect_timezones(toplevel, context)
    for component in toplevel:
        calendar_name = None
        if component.kind == "VCALENDAR":
            calendar_name = _decode(component, "X-WR-CALNAME", context)
        for vevent in component.walk("VEVENT"):
            event = _build_event(vevent, context, calendar_name, result.skipped)
            if event is not None:
                result.events.append(event)

    log.debug(
        f"parsed {len(result.events)} events, skipped {len(result.skipped)}, "
        f"{len(result.warnings)} warnings"
    )
    return result
