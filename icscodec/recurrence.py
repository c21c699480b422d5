"""
Recurrence rules: RRULE text (RFC 5545 section 3.3.10) to and from
:class:`RecurrenceRule`, plus an English description of a rule, like
"Every 2 weeks on Monday and Wednesday until Jan 1, 2025".
"""
import re
import sys
from dataclasses import dataclass
from datetime import date
from datetime import datetime
from enum import Enum
from typing import Iterable
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import Union

if sys.version_info < (3, 11):
    from typing_extensions import Self
else:
    from typing import Self

from icscodec.lib.error import ConflictingRecurrenceTerminator
from icscodec.lib.error import ICSError
from icscodec.lib.error import InvalidValue
from icscodec.lib.error import log
from icscodec.lib.error import UnknownFrequency
from icscodec.lib.values import format_date_time
from icscodec.lib.values import parse_date_time
from icscodec.lib.values import parse_integer
from icscodec.lib.values import parse_integer_list

## Day numbers follow the convention 1 = Sunday ... 7 = Saturday
WEEKDAYS = ("SU", "MO", "TU", "WE", "TH", "FR", "SA")
WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)
MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
POSITION_WORDS = (
    "first",
    "second",
    "third",
    "fourth",
    "fifth",
    "sixth",
    "seventh",
    "eighth",
    "ninth",
    "tenth",
)

BYDAY_RE = re.compile(r"^([+-]?\d{1,2})?(SU|MO|TU|WE|TH|FR|SA)$")

## field name -> (RRULE key, highest allowed value, negative values allowed)
_LIMITS = {
    "days_of_week": ("BYDAY", 7, False),
    "days_of_the_month": ("BYMONTHDAY", 31, True),
    "months_of_the_year": ("BYMONTH", 12, False),
    "weeks_of_the_year": ("BYWEEKNO", 53, True),
    "days_of_the_year": ("BYYEARDAY", 366, True),
    "set_positions": ("BYSETPOS", 366, True),
}


class Frequency(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def unit(self) -> str:
        return {"daily": "day", "weekly": "week", "monthly": "month", "yearly": "year"}[
            self.value
        ]

    @classmethod
    def from_ical(cls, value: str) -> "Frequency":
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"unsupported frequency {value!r}") from None


def ordinal_suffix(number: int) -> str:
    """st, nd, rd or th - 11, 12 and 13 always take th"""
    number = abs(number)
    if 11 <= number % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


def ordinal(number: int) -> str:
    return f"{number}{ordinal_suffix(number)}"


def _join(words: Sequence[str]) -> str:
    if len(words) <= 1:
        return "".join(words)
    return ", ".join(words[:-1]) + " and " + words[-1]


def _position_word(position: int) -> str:
    if position == -1:
        return "last"
    if position < 0:
        return f"{_position_word(-position)} to last"
    if position <= len(POSITION_WORDS):
        return POSITION_WORDS[position - 1]
    return ordinal(position)


def _day_of_month(day: int) -> str:
    if day == -1:
        return "last day"
    if day < 0:
        return f"{ordinal(-day)} to last day"
    return ordinal(day)


def _format_date(value: Union[date, datetime]) -> str:
    return f"{MONTH_NAMES[value.month - 1][:3]} {value.day}, {value.year}"


def _signed_order(number: int) -> Tuple[bool, int]:
    ## positive values ascending, then negative ones, -1 (the last) at the end
    return (number < 0, number)


@dataclass(frozen=True)
class RecurrenceRule:
    """An immutable recurrence rule.

    The set valued fields (``days_of_week`` and the other ``..._of_...``
    fields plus ``set_positions``) accept any iterable of ints and are
    stored as sorted tuples without duplicates, or ``None`` when empty.
    Weekdays are numbered 1 (Sunday) to 7 (Saturday).

    ``end_date`` and ``occurrence_count`` are mutually exclusive.
    """

    frequency: Frequency
    interval: int = 1
    days_of_week: Optional[Tuple[int, ...]] = None
    days_of_the_month: Optional[Tuple[int, ...]] = None
    months_of_the_year: Optional[Tuple[int, ...]] = None
    weeks_of_the_year: Optional[Tuple[int, ...]] = None
    days_of_the_year: Optional[Tuple[int, ...]] = None
    set_positions: Optional[Tuple[int, ...]] = None
    end_date: Optional[Union[date, datetime]] = None
    occurrence_count: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.frequency, Frequency):
            try:
                object.__setattr__(self, "frequency", Frequency.from_ical(self.frequency))
            except (ValueError, AttributeError):
                raise UnknownFrequency(raw=str(self.frequency)) from None
        if not isinstance(self.interval, int) or self.interval < 1:
            raise InvalidValue("INTERVAL", str(self.interval), "must be at least 1")
        for name, (key, highest, signed) in _LIMITS.items():
            object.__setattr__(
                self, name, self._normalize(key, getattr(self, name), highest, signed)
            )
        if self.occurrence_count is not None and self.occurrence_count < 0:
            raise InvalidValue("COUNT", str(self.occurrence_count), "must not be negative")
        if self.end_date is not None and self.occurrence_count is not None:
            raise ConflictingRecurrenceTerminator(
                raw=f"{self.end_date} / {self.occurrence_count}",
                reason="end_date and occurrence_count are mutually exclusive",
            )

    @staticmethod
    def _normalize(
        key: str, values: Optional[Iterable[int]], highest: int, signed: bool
    ) -> Optional[Tuple[int, ...]]:
        if values is None:
            return None
        values = set(values)
        for value in values:
            lowest_ok = -highest if signed else 1
            if not lowest_ok <= value <= highest or value == 0:
                raise InvalidValue(key, str(value), "out of range")
        if not values:
            return None
        return tuple(sorted(values, key=_signed_order))

    @property
    def bounded(self) -> bool:
        """True if the rule ends, by date or by count"""
        return self.end_date is not None or self.occurrence_count is not None

    @classmethod
    def from_rrule(cls, text: str, warnings: Optional[List[ICSError]] = None) -> Self:
        """Decodes RRULE text, with or without the ``RRULE:`` prefix.

        Unknown keys are ignored.  If both UNTIL and COUNT are given,
        UNTIL is kept and a ConflictingRecurrenceTerminator is logged
        and appended to ``warnings``.

        :raises UnknownFrequency: FREQ missing or not daily/weekly/monthly/yearly
        :raises InvalidValue: any other grammar violation
        """
        raw = text
        text = text.strip()
        if text.upper().startswith("RRULE:"):
            text = text[len("RRULE:") :]

        parts = {}
        for segment in text.split(";"):
            if not segment.strip():
                continue
            key, sep, value = segment.partition("=")
            if not sep or not key.strip():
                raise InvalidValue("RRULE", raw, f"malformed part {segment!r}")
            parts[key.strip().upper()] = value.strip()

        if not parts.get("FREQ"):
            raise UnknownFrequency(raw=raw, reason="FREQ is missing")
        try:
            frequency = Frequency.from_ical(parts["FREQ"])
        except ValueError:
            raise UnknownFrequency(raw=raw) from None

        rule: dict = {"frequency": frequency}
        if "INTERVAL" in parts:
            rule["interval"] = parse_integer(parts["INTERVAL"], "RRULE")

        positions = []
        if "BYDAY" in parts:
            days = []
            for token in parts["BYDAY"].split(","):
                match = BYDAY_RE.match(token.strip().upper())
                if not match:
                    raise InvalidValue("RRULE", raw, f"bad BYDAY entry {token!r}")
                days.append(WEEKDAYS.index(match.group(2)) + 1)
                if match.group(1):
                    positions.append(int(match.group(1)))
            rule["days_of_week"] = days
        if "BYSETPOS" in parts:
            positions.extend(parse_integer_list(parts["BYSETPOS"], "RRULE"))
        if positions:
            rule["set_positions"] = positions

        for field_name, (key, _, _) in _LIMITS.items():
            if key in parts and field_name not in ("days_of_week", "set_positions"):
                rule[field_name] = parse_integer_list(parts[key], "RRULE")

        if "UNTIL" in parts:
            rule["end_date"] = parse_date_time(parts["UNTIL"], "RRULE")
        if "COUNT" in parts:
            count = parse_integer(parts["COUNT"], "RRULE")
            if "end_date" in rule:
                warning = ConflictingRecurrenceTerminator(raw=raw)
                log.warning(str(warning))
                if warnings is not None:
                    warnings.append(warning)
            else:
                rule["occurrence_count"] = count

        return cls(**rule)

    def to_rrule(self) -> str:
        """Encodes the rule as RRULE value text (without the ``RRULE:`` prefix)"""
        parts = [f"FREQ={self.frequency.name}"]
        if self.interval != 1:
            parts.append(f"INTERVAL={self.interval}")
        if self.days_of_week:
            parts.append("BYDAY=" + ",".join(WEEKDAYS[d - 1] for d in self.days_of_week))
        for field_name, (key, _, _) in _LIMITS.items():
            values = getattr(self, field_name)
            if values and field_name != "days_of_week":
                parts.append(f"{key}=" + ",".join(str(v) for v in values))
        if self.end_date is not None:
            parts.append("UNTIL=" + format_date_time(self.end_date)[0])
        elif self.occurrence_count is not None:
            parts.append(f"COUNT={self.occurrence_count}")
        return ";".join(parts)

    def describe(self) -> str:
        unit = self.frequency.unit
        if self.interval == 1:
            desc = f"Every {unit}"
        else:
            desc = f"Every {self.interval} {unit}s"
        if self.days_of_week:
            desc += " on " + _join([WEEKDAY_NAMES[d - 1] for d in self.days_of_week])
        if self.days_of_the_month:
            desc += " on the " + _join([_day_of_month(d) for d in self.days_of_the_month])
        if self.months_of_the_year:
            desc += " in " + _join([MONTH_NAMES[m - 1] for m in self.months_of_the_year])
        if self.set_positions:
            desc += " (" + _join([_position_word(p) for p in self.set_positions]) + ")"
        if self.occurrence_count is not None:
            times = "time" if self.occurrence_count == 1 else "times"
            desc += f", {self.occurrence_count} {times}"
        elif self.end_date is not None:
            desc += " until " + _format_date(self.end_date)
        return desc

    __str__ = describe
