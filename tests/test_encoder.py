from datetime import date
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from zoneinfo import ZoneInfo

import icalendar
import vobject

from icscodec import Availability
from icscodec import CalendarEvent
from icscodec import encode
from icscodec import EventAlarm
from icscodec import EventAttendee
from icscodec import Frequency
from icscodec import parse
from icscodec import RecurrenceRule
from icscodec.config import CodecConfig
from icscodec.encoder import DEFAULT_PRODID
from icscodec.encoder import encode_event
from icscodec.lib.lines import unfold_lines

now = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


def verify_ical(text):
    """
    The encoded text should be accepted by both icalendar and vobject
    """
    cal = icalendar.Calendar.from_ical(text)
    vcal = vobject.readOne(text)
    assert vcal.name == "VCALENDAR"
    return cal


def full_event():
    return CalendarEvent(
        title="Quarterly review; budget, plans",
        start=datetime(2024, 1, 15, 10, tzinfo=timezone.utc),
        end=datetime(2024, 1, 15, 11, 30, tzinfo=timezone.utc),
        uid="review-2024q1@example.com",
        location="Room 4, 2nd floor",
        notes="Agenda:\n1. numbers\n2. C:\\new\\plans",
        url="https://example.com/review",
        availability=Availability.TENTATIVE,
        recurrence_rule=RecurrenceRule(
            frequency=Frequency.MONTHLY, interval=3, days_of_the_month=[15], occurrence_count=4
        ),
        attendees=[
            EventAttendee(name="Alice", email="alice@example.com", status="accepted"),
            EventAttendee(name="Boss, The", email="boss@example.com", is_organizer=True),
        ],
        alarms=[EventAlarm(trigger_minutes=15), EventAlarm(trigger_minutes=1440, type="audio")],
        created=datetime(2024, 1, 1, 8, tzinfo=timezone.utc),
    )


class TestEncode:
    def test_header(self):
        text = encode([], now=now)
        lines = unfold_lines(text)
        assert lines == [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            f"PRODID:{DEFAULT_PRODID}",
            "CALSCALE:GREGORIAN",
            "METHOD:PUBLISH",
            "END:VCALENDAR",
        ]

    def test_calendar_name_and_prodid(self):
        text = encode([], calendar_name="Team, Platform", prodid="-//Acme//Cal//EN", now=now)
        lines = unfold_lines(text)
        assert "PRODID:-//Acme//Cal//EN" in lines
        assert "X-WR-CALNAME:Team\\, Platform" in lines

    def test_config(self):
        config = CodecConfig(prodid="-//Configured//EN", calendar_name="Configured")
        lines = unfold_lines(encode([], config=config, now=now))
        assert "PRODID:-//Configured//EN" in lines
        assert "X-WR-CALNAME:Configured" in lines
        lines = unfold_lines(encode([], config=config, calendar_name="Explicit", now=now))
        assert "X-WR-CALNAME:Explicit" in lines

    def test_crlf_and_folding(self):
        event = CalendarEvent(
            title="x" * 200, start=datetime(2024, 1, 15, 10), uid="long"
        )
        text = encode(event, now=now)
        assert text.endswith("\r\n")
        assert "\n" not in text.replace("\r\n", "")
        for line in text.split("\r\n"):
            assert len(line.encode("utf-8")) <= 75
        verify_ical(text)

    def test_event_property_order(self):
        lines = encode_event(full_event(), now)
        names = [line.split(":")[0].split(";")[0] for line in lines]
        assert names[:10] == [
            "BEGIN",
            "UID",
            "DTSTAMP",
            "DTSTART",
            "DTEND",
            "SUMMARY",
            "LOCATION",
            "DESCRIPTION",
            "URL",
            "STATUS",
        ]
        assert names.index("RRULE") < names.index("ORGANIZER") < names.index("ATTENDEE")
        assert names[-1] == "END"
        assert "DTSTAMP:20240110T120000Z" in lines
        assert "RRULE:FREQ=MONTHLY;INTERVAL=3;BYMONTHDAY=15;COUNT=4" in lines
        assert 'ORGANIZER;CN="Boss, The";PARTSTAT=NEEDS-ACTION:mailto:boss@example.com' in lines
        assert "ATTENDEE;CN=Alice;PARTSTAT=ACCEPTED:mailto:alice@example.com" in lines

    def test_escaping(self):
        lines = encode_event(full_event(), now)
        assert "SUMMARY:Quarterly review\\; budget\\, plans" in lines
        assert "DESCRIPTION:Agenda:\\n1. numbers\\n2. C:\\\\new\\\\plans" in lines

    def test_all_day(self):
        event = CalendarEvent(title="Holiday", start=date(2024, 3, 1), uid="h")
        lines = encode_event(event, now)
        assert "DTSTART;VALUE=DATE:20240301" in lines
        assert "DTEND;VALUE=DATE:20240302" in lines

    def test_aware_times_are_written_in_utc(self):
        event = CalendarEvent(
            title="x", start=datetime(2024, 7, 1, 10, tzinfo=ZoneInfo("Europe/Oslo")), uid="u"
        )
        assert "DTSTART:20240701T080000Z" in encode_event(event, now)

    def test_missing_uid_is_generated(self):
        event = CalendarEvent(title="x", start=datetime(2024, 1, 1, 10))
        uids = [line for line in encode_event(event, now) if line.startswith("UID:")]
        assert len(uids) == 1
        assert len(uids[0]) > len("UID:")

    def test_alarms(self):
        lines = encode_event(full_event(), now)
        start = lines.index("BEGIN:VALARM")
        assert lines[start : start + 5] == [
            "BEGIN:VALARM",
            "ACTION:DISPLAY",
            "TRIGGER:-PT15M",
            "DESCRIPTION:Quarterly review\\; budget\\, plans",
            "END:VALARM",
        ]
        assert "TRIGGER:-P1D" in lines
        assert "ACTION:AUDIO" in lines

    def test_valid_for_other_libraries(self):
        cal = verify_ical(encode([full_event()], calendar_name="Review", now=now))
        (vevent,) = cal.walk("VEVENT")
        assert str(vevent["SUMMARY"]) == "Quarterly review; budget, plans"
        assert vevent["DTSTART"].dt == datetime(2024, 1, 15, 10, tzinfo=timezone.utc)
        assert len(vevent.walk("VALARM")) == 2


class TestRoundTrip:
    def test_full_event(self):
        event = full_event()
        (parsed,) = parse(encode(event, calendar_name="Review", now=now))
        assert parsed.title == event.title
        assert parsed.start == event.start
        assert parsed.end == event.end
        assert parsed.uid == event.uid
        assert parsed.location == event.location
        assert parsed.notes == event.notes
        assert parsed.url == event.url
        assert parsed.availability == event.availability
        assert parsed.recurrence_rule == event.recurrence_rule
        assert parsed.alarms == event.alarms
        assert parsed.created == event.created
        assert parsed.calendar_name == "Review"
        assert parsed.organizer_name == "Boss, The"
        assert sorted(parsed.attendees, key=lambda a: a.email) == sorted(
            event.attendees, key=lambda a: a.email
        )

    def test_every_availability(self):
        for availability in Availability:
            event = CalendarEvent(
                title="x", start=datetime(2024, 1, 1, 10), uid="a", availability=availability
            )
            assert parse(encode(event, now=now))[0].availability == availability

    def test_floating_and_all_day(self):
        events = [
            CalendarEvent(title="floating", start=datetime(2024, 1, 1, 10), uid="f"),
            CalendarEvent(
                title="days",
                start=date(2024, 1, 1),
                end=date(2024, 1, 4),
                uid="d",
                recurrence_rule=RecurrenceRule(
                    frequency=Frequency.YEARLY, end_date=date(2030, 1, 1)
                ),
            ),
        ]
        parsed = parse(encode(events, now=now))
        assert [(e.start, e.end) for e in parsed] == [(e.start, e.end) for e in events]
        assert parsed[0].start.tzinfo is None
        assert parsed[1].recurrence_rule == events[1].recurrence_rule
        assert parsed[1].duration == timedelta(days=3)

    def test_text_survives(self):
        for text in ("\\n literally", "semi;colon,comma", "ø" * 80, "line\nbreak\\", " lead"):
            event = CalendarEvent(title=text, start=datetime(2024, 1, 1), uid="t", notes=text)
            (parsed,) = parse(encode(event, now=now))
            assert parsed.title == text
            assert parsed.notes == text

    def test_control_characters_are_dropped(self):
        event = CalendarEvent(
            title="bell\x07ring", location="a\x0bb", notes="tab\tcr\rend", start=datetime(2024, 1, 1), uid="c"
        )
        result = parse(encode(event, now=now))
        (parsed,) = result
        assert parsed.title == "bellring"
        assert parsed.location == "ab"
        assert parsed.notes == "tab\tcr\nend"
        assert not result.warnings

    def test_organizer_who_attends(self):
        event = full_event()
        lines = unfold_lines(encode(event, now=now))
        assert 'ATTENDEE;CN="Boss, The";PARTSTAT=NEEDS-ACTION:mailto:boss@example.com' in lines
        assert len([x for x in lines if x.startswith("ORGANIZER")]) == 1
        parsed = parse("\r\n".join(lines))[0]
        assert len(parsed.attendees) == 2
        assert [a.email for a in parsed.attendees if a.is_organizer] == ["boss@example.com"]
