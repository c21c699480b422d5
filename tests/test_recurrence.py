from datetime import date
from datetime import datetime
from datetime import timezone

import pytest

from icscodec.lib.error import ConflictingRecurrenceTerminator
from icscodec.lib.error import InvalidValue
from icscodec.lib.error import UnknownFrequency
from icscodec.recurrence import Frequency
from icscodec.recurrence import ordinal
from icscodec.recurrence import ordinal_suffix
from icscodec.recurrence import RecurrenceRule


@pytest.mark.parametrize(
    "number,suffix",
    [(1, "st"), (2, "nd"), (3, "rd"), (4, "th"), (11, "th"), (12, "th"), (13, "th"),
     (21, "st"), (22, "nd"), (23, "rd"), (101, "st"), (111, "th"), (112, "th")],
)
def test_ordinal_suffix(number, suffix):
    assert ordinal_suffix(number) == suffix


def test_ordinal():
    assert ordinal(15) == "15th"
    assert ordinal(31) == "31st"


class TestFromRRule:
    def test_weekly(self):
        rule = RecurrenceRule.from_rrule("FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE")
        assert rule.frequency == Frequency.WEEKLY
        assert rule.interval == 2
        assert rule.days_of_week == (2, 4)
        assert not rule.bounded

    def test_prefix_and_case(self):
        rule = RecurrenceRule.from_rrule("RRULE:freq=daily;count=3")
        assert rule.frequency == Frequency.DAILY
        assert rule.occurrence_count == 3

    def test_monthly_count(self):
        rule = RecurrenceRule.from_rrule("FREQ=MONTHLY;BYMONTHDAY=15;COUNT=6")
        assert rule.days_of_the_month == (15,)
        assert rule.occurrence_count == 6
        assert rule.end_date is None

    def test_until(self):
        rule = RecurrenceRule.from_rrule("FREQ=DAILY;UNTIL=20250101T000000Z")
        assert rule.end_date == datetime(2025, 1, 1, tzinfo=timezone.utc)
        rule = RecurrenceRule.from_rrule("FREQ=DAILY;UNTIL=20250101")
        assert rule.end_date == date(2025, 1, 1)

    def test_until_and_count_keeps_until(self):
        warnings = []
        rule = RecurrenceRule.from_rrule(
            "FREQ=DAILY;UNTIL=20250101T000000Z;COUNT=5", warnings=warnings
        )
        assert rule.end_date == datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert rule.occurrence_count is None
        assert len(warnings) == 1
        assert isinstance(warnings[0], ConflictingRecurrenceTerminator)

    def test_byday_ordinals_become_set_positions(self):
        rule = RecurrenceRule.from_rrule("FREQ=MONTHLY;BYDAY=-1FR")
        assert rule.days_of_week == (6,)
        assert rule.set_positions == (-1,)
        rule = RecurrenceRule.from_rrule("FREQ=MONTHLY;BYDAY=MO,TU;BYSETPOS=1,-1")
        assert rule.set_positions == (1, -1)

    def test_year_fields(self):
        rule = RecurrenceRule.from_rrule(
            "FREQ=YEARLY;BYMONTH=3,1,3;BYWEEKNO=20,-1;BYYEARDAY=100"
        )
        assert rule.months_of_the_year == (1, 3)
        assert rule.weeks_of_the_year == (20, -1)
        assert rule.days_of_the_year == (100,)

    def test_unknown_keys_are_ignored(self):
        rule = RecurrenceRule.from_rrule("FREQ=WEEKLY;WKST=SU;X-FOO=bar")
        assert rule == RecurrenceRule(frequency=Frequency.WEEKLY)

    @pytest.mark.parametrize("text", ["FREQ=HOURLY", "FREQ=FORTNIGHTLY", "INTERVAL=2", ""])
    def test_unknown_frequency(self, text):
        with pytest.raises(UnknownFrequency):
            RecurrenceRule.from_rrule(text)

    @pytest.mark.parametrize(
        "text",
        [
            "FREQ=DAILY;INTERVAL=0",
            "FREQ=DAILY;INTERVAL=x",
            "FREQ=WEEKLY;BYDAY=XX",
            "FREQ=MONTHLY;BYMONTHDAY=32",
            "FREQ=MONTHLY;BYMONTHDAY=0",
            "FREQ=YEARLY;BYMONTH=13",
            "FREQ=DAILY;UNTIL=someday",
            "FREQ=DAILY;COUNT",
        ],
    )
    def test_invalid(self, text):
        with pytest.raises(InvalidValue):
            RecurrenceRule.from_rrule(text)


class TestConstruction:
    def test_sets_are_normalized(self):
        rule = RecurrenceRule(
            frequency=Frequency.WEEKLY, days_of_week=[6, 2, 2], days_of_the_month=[]
        )
        assert rule.days_of_week == (2, 6)
        assert rule.days_of_the_month is None

    def test_frequency_from_string(self):
        assert RecurrenceRule(frequency="monthly").frequency == Frequency.MONTHLY
        with pytest.raises(UnknownFrequency):
            RecurrenceRule(frequency="secondly")

    def test_conflicting_terminators(self):
        with pytest.raises(ConflictingRecurrenceTerminator):
            RecurrenceRule(
                frequency=Frequency.DAILY,
                end_date=date(2025, 1, 1),
                occurrence_count=3,
            )

    def test_interval(self):
        with pytest.raises(InvalidValue):
            RecurrenceRule(frequency=Frequency.DAILY, interval=0)

    def test_weekday_range(self):
        with pytest.raises(InvalidValue):
            RecurrenceRule(frequency=Frequency.WEEKLY, days_of_week=[8])

    def test_immutable(self):
        rule = RecurrenceRule(frequency=Frequency.DAILY)
        with pytest.raises(AttributeError):
            rule.interval = 3


class TestToRRule:
    def test_minimal(self):
        assert RecurrenceRule(frequency=Frequency.DAILY).to_rrule() == "FREQ=DAILY"

    def test_full(self):
        rule = RecurrenceRule(
            frequency=Frequency.MONTHLY,
            interval=3,
            days_of_week=[2, 6],
            set_positions=[-1],
            end_date=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
        assert rule.to_rrule() == "FREQ=MONTHLY;INTERVAL=3;BYDAY=MO,FR;BYSETPOS=-1;UNTIL=20250101T000000Z"

    def test_round_trip(self):
        for text in (
            "FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE",
            "FREQ=MONTHLY;BYMONTHDAY=1,15,-1;COUNT=6",
            "FREQ=YEARLY;BYMONTHDAY=29;BYMONTH=2;UNTIL=20400101",
            "FREQ=YEARLY;BYWEEKNO=1;BYYEARDAY=1,-1",
        ):
            rule = RecurrenceRule.from_rrule(text)
            assert rule.to_rrule() == text
            assert RecurrenceRule.from_rrule(rule.to_rrule()) == rule


class TestDescribe:
    @pytest.mark.parametrize(
        "text,description",
        [
            ("FREQ=DAILY", "Every day"),
            ("FREQ=DAILY;INTERVAL=3", "Every 3 days"),
            ("FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE", "Every 2 weeks on Monday and Wednesday"),
            ("FREQ=WEEKLY;BYDAY=MO,WE,FR", "Every week on Monday, Wednesday and Friday"),
            ("FREQ=MONTHLY;BYMONTHDAY=15;COUNT=6", "Every month on the 15th, 6 times"),
            ("FREQ=MONTHLY;BYMONTHDAY=-1", "Every month on the last day"),
            ("FREQ=MONTHLY;BYMONTHDAY=-2", "Every month on the 2nd to last day"),
            ("FREQ=MONTHLY;BYDAY=-1FR", "Every month on Friday (last)"),
            ("FREQ=MONTHLY;BYDAY=MO;BYSETPOS=1,-2", "Every month on Monday (first and second to last)"),
            ("FREQ=YEARLY;BYMONTH=1,7", "Every year in January and July"),
            ("FREQ=DAILY;COUNT=1", "Every day, 1 time"),
            ("FREQ=WEEKLY;UNTIL=20250101T000000Z", "Every week until Jan 1, 2025"),
        ],
    )
    def test_describe(self, text, description):
        rule = RecurrenceRule.from_rrule(text)
        assert rule.describe() == description
        assert str(rule) == description
