"""
Value types of RFC 5545 section 3.3, decoding and encoding.

Property values are decoded through the ``DECODERS`` table, keyed on the
upper case property name.  Every decoder takes a
:class:`~icscodec.lib.tokenizer.Property` and a :class:`DecodeContext`
and raises :class:`~icscodec.lib.error.InvalidValue` when the raw text
does not fit the grammar.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from dataclasses import field
from datetime import date
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from datetime import tzinfo
from typing import Any
from typing import Callable
from typing import Dict
from typing import List
from typing import Optional
from typing import Tuple
from typing import Union
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError

from icscodec.lib.error import ICSError
from icscodec.lib.error import InvalidValue
from icscodec.lib.error import log
from icscodec.lib.error import UnknownTimezone
from icscodec.lib.tokenizer import Property

DATE_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
DATE_TIME_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})(Z?)$")
INTEGER_RE = re.compile(r"^[+-]?\d+$")
DURATION_RE = re.compile(
    r"^(?P<sign>[+-])?P(?:(?P<weeks>\d+)W)?(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$"
)

TEXT_ESCAPES = {"\\": "\\", ";": ";", ",": ",", "n": "\n", "N": "\n"}

## A TZID naming a directory of the tz database (like "Europe") gives
## IsADirectoryError rather than ZoneInfoNotFoundError
ZONE_LOOKUP_ERRORS = (ZoneInfoNotFoundError, ValueError, OSError)


def _is_control(char: str) -> bool:
    return (char < " " and char != "\t") or char == "\x7f"


def as_tzinfo(value: Union[tzinfo, str, None]) -> Optional[tzinfo]:
    """Accepts a tzinfo, an IANA zone name or None"""
    if value is None or isinstance(value, tzinfo):
        return value
    if value.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(value)


@dataclass
class DecodeContext:
    """State shared by the decoders while one file is parsed.

    ``default_timezone`` is applied to floating date-times,
    ``timezone_hints`` maps TZIDs found in VTIMEZONE components to
    IANA names (from ``X-LIC-LOCATION``) and ``warnings`` collects
    recoverable problems.
    """

    default_timezone: Optional[tzinfo] = None
    timezone_hints: Dict[str, str] = field(default_factory=dict)
    warnings: List[ICSError] = field(default_factory=list)
    _resolved: Dict[str, Optional[tzinfo]] = field(default_factory=dict, repr=False)

    def warn(self, warning: ICSError) -> None:
        log.warning(str(warning))
        self.warnings.append(warning)

    def resolve_timezone(self, tzid: str) -> Optional[tzinfo]:
        """Returns None (after recording a warning) for unknown TZIDs"""
        if tzid in self._resolved:
            return self._resolved[tzid]
        resolved = None
        for candidate in (tzid.lstrip("/"), self.timezone_hints.get(tzid)):
            if not candidate:
                continue
            try:
                resolved = as_tzinfo(candidate)
                break
            except ZONE_LOOKUP_ERRORS:
                continue
        if resolved is None:
            self.warn(UnknownTimezone(raw=tzid))
        self._resolved[tzid] = resolved
        return resolved


## TEXT


def unescape_text(value: str, property: str = "TEXT") -> str:
    """Decodes an escaped TEXT value in one forward scan.

    ``\\\\n`` thus becomes a backslash followed by ``n``, not a newline.
    Unknown escapes are passed through unchanged.
    """
    out = []
    i = 0
    while i < len(value):
        char = value[i]
        if char == "\\":
            if i + 1 == len(value):
                raise InvalidValue(property, value, "dangling backslash")
            following = value[i + 1]
            out.append(TEXT_ESCAPES.get(following, char + following))
            i += 2
            continue
        if _is_control(char):
            raise InvalidValue(property, value, "control character in text")
        out.append(char)
        i += 1
    return "".join(out)


def escape_text(text: str) -> str:
    """Inverse of :func:`unescape_text`.

    Not lossless for control characters: CRLF and a lone CR become a
    newline, and other control characters except TAB are dropped, as TEXT
    can not carry them.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    out = []
    for char in text:
        if char in "\\;,":
            out.append("\\" + char)
        elif char == "\n":
            out.append("\\n")
        elif _is_control(char):
            continue
        else:
            out.append(char)
    return "".join(out)


## DATE and DATE-TIME


def parse_date_time(
    raw: str,
    property: str = "DATE-TIME",
    value_type: Optional[str] = None,
    tzid: Optional[str] = None,
    context: Optional[DecodeContext] = None,
) -> Union[date, datetime]:
    """
    Parses ``YYYYMMDD``, ``YYYYMMDDTHHMMSS`` or ``YYYYMMDDTHHMMSSZ``.

    A date-time with neither ``Z`` nor a resolvable ``tzid`` is floating;
    it gets the default zone of ``context`` if there is one and is
    returned naive otherwise.
    """
    raw = raw.strip()
    value_type = (value_type or "").upper()
    match = DATE_RE.match(raw)
    if match:
        if value_type == "DATE-TIME":
            raise InvalidValue(property, raw, "VALUE=DATE-TIME given for a date")
        try:
            return date(*(int(x) for x in match.groups()))
        except ValueError as e:
            raise InvalidValue(property, raw, str(e)) from e
    match = DATE_TIME_RE.match(raw)
    if not match or value_type == "DATE":
        raise InvalidValue(property, raw)
    fields = [int(x) for x in match.groups()[:6]]
    ## leap seconds are legal in ical, but not in python
    fields[5] = min(fields[5], 59)
    try:
        ret = datetime(*fields)
    except ValueError as e:
        raise InvalidValue(property, raw, str(e)) from e
    if match.group(7):
        return ret.replace(tzinfo=timezone.utc)
    zone = None
    if tzid and context is not None:
        zone = context.resolve_timezone(tzid)
    elif tzid:
        try:
            zone = as_tzinfo(tzid.lstrip("/"))
        except ZONE_LOOKUP_ERRORS:
            log.warning(str(UnknownTimezone(raw=tzid)))
    if zone is None and context is not None:
        zone = context.default_timezone
    if zone is not None:
        ret = ret.replace(tzinfo=zone)
    return ret


def format_date_time(value: Union[date, datetime]) -> Tuple[str, Dict[str, str]]:
    """Returns the value text and the parameters it needs.

    Aware date-times are written in UTC, naive ones as floating time.
    """
    day = f"{value.year:04d}{value.month:02d}{value.day:02d}"
    if not isinstance(value, datetime):
        return day, {"VALUE": "DATE"}
    if value.tzinfo is not None and value.utcoffset() is not None:
        return format_date_time(value.astimezone(timezone.utc).replace(tzinfo=None))[0] + "Z", {}
    return f"{day}T{value.hour:02d}{value.minute:02d}{value.second:02d}", {}


## INTEGER and lists of them


def parse_integer(raw: str, property: str = "INTEGER") -> int:
    if not INTEGER_RE.match(raw.strip()):
        raise InvalidValue(property, raw)
    return int(raw)


def parse_integer_list(raw: str, property: str = "INTEGER") -> List[int]:
    return [parse_integer(x, property) for x in raw.split(",")]


## DURATION


def parse_duration(raw: str, property: str = "DURATION") -> timedelta:
    """Parses ``[+-]P[nW][nD][T[nH][nM][nS]]`` into a timedelta"""
    match = DURATION_RE.match(raw.strip())
    if not match:
        raise InvalidValue(property, raw)
    parts = {k: int(v) for k, v in match.groupdict().items() if v and k != "sign"}
    if not parts:
        raise InvalidValue(property, raw)
    ret = timedelta(**parts)
    return -ret if match.group("sign") == "-" else ret


def format_duration(td: timedelta) -> str:
    """
    Examples:
        timedelta(hours=1, minutes=30) → "PT1H30M"
        timedelta(days=1, hours=2)     → "P1DT2H"
        timedelta(0)                   → "PT0S"
        timedelta(seconds=-900)        → "-PT15M"
    """
    total_seconds = int(td.total_seconds())
    sign = "-" if total_seconds < 0 else ""
    total_seconds = abs(total_seconds)

    days, rem = divmod(total_seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, seconds = divmod(rem, 60)

    day_part = f"{days}D" if days else ""
    time_parts = []
    if hours:
        time_parts.append(f"{hours}H")
    if minutes:
        time_parts.append(f"{minutes}M")
    if seconds:
        time_parts.append(f"{seconds}S")
    time_part = ("T" + "".join(time_parts)) if time_parts else ""

    body = day_part + time_part or "T0S"
    return f"{sign}P{body}"


## The decoder table


def decode_text(prop: Property, context: DecodeContext) -> str:
    return unescape_text(prop.value, prop.key)


def decode_date_time(prop: Property, context: DecodeContext) -> Union[date, datetime]:
    return parse_date_time(
        prop.value,
        property=prop.key,
        value_type=prop.param("VALUE"),
        tzid=prop.param("TZID"),
        context=context,
    )


def decode_duration(prop: Property, context: DecodeContext) -> timedelta:
    return parse_duration(prop.value, prop.key)


def decode_trigger(prop: Property, context: DecodeContext) -> Union[timedelta, datetime]:
    """Relative triggers become a timedelta, absolute ones a datetime"""
    if (prop.param("VALUE") or "").upper() == "DATE-TIME":
        return decode_date_time(prop, context)
    return decode_duration(prop, context)


def decode_integer(prop: Property, context: DecodeContext) -> int:
    return parse_integer(prop.value, prop.key)


def decode_token(prop: Property, context: DecodeContext) -> str:
    value = prop.value.strip().upper()
    if not re.match(r"^[A-Z0-9-]+$", value):
        raise InvalidValue(prop.key, prop.value)
    return value


def decode_uri(prop: Property, context: DecodeContext) -> str:
    value = prop.value.strip()
    if not value or re.search(r"\s", value):
        raise InvalidValue(prop.key, prop.value)
    return value


def decode_cal_address(prop: Property, context: DecodeContext) -> str:
    """Returns the address without its ``mailto:`` scheme"""
    value = decode_uri(prop, context)
    if value.lower().startswith("mailto:"):
        value = value[len("mailto:") :]
    return value


def decode_rrule(prop: Property, context: DecodeContext):
    from icscodec.recurrence import RecurrenceRule

    return RecurrenceRule.from_rrule(prop.value, warnings=context.warnings)


def decode_raw(prop: Property, context: DecodeContext) -> str:
    return prop.value


DECODERS: Dict[str, Callable[[Property, DecodeContext], Any]] = {
    "SUMMARY": decode_text,
    "DESCRIPTION": decode_text,
    "LOCATION": decode_text,
    "COMMENT": decode_text,
    "UID": decode_text,
    "X-WR-CALNAME": decode_text,
    "X-LIC-LOCATION": decode_text,
    "TZID": decode_text,
    "DTSTART": decode_date_time,
    "DTEND": decode_date_time,
    "DUE": decode_date_time,
    "DTSTAMP": decode_date_time,
    "CREATED": decode_date_time,
    "LAST-MODIFIED": decode_date_time,
    "RECURRENCE-ID": decode_date_time,
    "DURATION": decode_duration,
    "TRIGGER": decode_trigger,
    "SEQUENCE": decode_integer,
    "PRIORITY": decode_integer,
    "STATUS": decode_token,
    "TRANSP": decode_token,
    "ACTION": decode_token,
    "CLASS": decode_token,
    "URL": decode_uri,
    "ATTENDEE": decode_cal_address,
    "ORGANIZER": decode_cal_address,
    "RRULE": decode_rrule,
}


def decode_value(prop: Property, context: DecodeContext) -> Any:
    """Looks up the decoder for ``prop`` and applies it; unknown properties come back raw"""
    return DECODERS.get(prop.key, decode_raw)(prop, context)
