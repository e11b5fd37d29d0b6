from datetime import date, datetime, time
from itertools import islice

import pytest
import pytz
from dateutil.rrule import MONTHLY, TU, WEEKLY

from screcord import timezone_utils
from screcord.errors import OccurrenceNotFoundError
from screcord.occurrence import ConditionMatcher, Occurrence, OccurrenceEnumerator, to_rrules
from screcord.property_value import (
    RecurrenceCondition, new_date_list, new_date_range, new_time_range
)


def _enumerator(dates="", exceptions="", cond="", duration="", time_range=""):
    return OccurrenceEnumerator(
        new_date_list().parse(dates),
        new_date_list("!").parse(exceptions),
        RecurrenceCondition().parse(cond),
        new_date_range().parse(duration),
        new_time_range().parse(time_range),
    )


def _matcher(cond: str) -> ConditionMatcher:
    return ConditionMatcher.from_condition(RecurrenceCondition().parse(cond))


def _first_days(occurrences):
    return [oc.first_date for oc in occurrences]


@pytest.mark.parametrize("cond, day, expected", [
    ("Tue", date(2023, 6, 6), True),
    ("Tue", date(2023, 6, 7), False),
    ("1st Mon", date(2023, 6, 5), True),
    ("1st Mon", date(2023, 6, 12), False),
    ("Last Fri", date(2023, 6, 30), True),
    ("Last Fri", date(2023, 6, 23), False),
    ("Jan 15", date(2024, 1, 15), True),
    ("Jan 15", date(2024, 2, 15), False),
    ("15 Sat", date(2023, 6, 15), True),
    ("15 Sat", date(2023, 6, 17), True),
    ("Aug", date(2023, 8, 10), True),
    ("Aug", date(2023, 9, 10), False),
    ("2nd Sat Jan", date(2024, 1, 13), True),
    ("Holiday", date(2024, 1, 13), False),
    ("1 Tue", date(2023, 7, 1), True),
    ("1 Tue", date(2023, 7, 4), True),
    ("1 Tue", date(2023, 7, 5), False),
    ("5th Fri", date(2023, 6, 30), True),
    ("5th Fri", date(2023, 7, 28), False),
])
def test_condition_matching(cond, day, expected):
    matched = _enumerator(cond=cond).between(day, day)

    assert bool(matched) is expected


def test_rule_parts_of_mixed_condition():
    parts = _matcher("1 Tue Jan").rule_parts()

    assert [part['freq'] for part in parts] == [WEEKLY, MONTHLY]
    assert parts[0]['byweekday'] == [TU]
    assert parts[1]['bymonthday'] == [1]
    assert all(part['bymonth'] == [1] for part in parts)


def test_ordinals_without_weekdays_select_nothing():
    assert _matcher("2nd Jan").rule_parts() == []


def test_unknown_tokens_are_kept_aside():
    assert _matcher("Tue Holiday").unknown == ("Holiday",)


def test_literal_dates_are_sorted_and_ranges_span_days():
    occurrences = list(_enumerator(dates="20230620 20230601-20230603"))

    assert occurrences == [
        Occurrence(date(2023, 6, 1), date(2023, 6, 3)),
        Occurrence(date(2023, 6, 20), date(2023, 6, 20)),
    ]


def test_condition_within_duration():
    occurrences = list(_enumerator(cond="Tue", duration="20230601-20230630"))

    assert _first_days(occurrences) == [date(2023, 6, d) for d in (6, 13, 20, 27)]


def test_dates_and_condition_merge_without_duplicates_and_exceptions_apply():
    enumerator = _enumerator(
        dates="20230613 20230610",
        exceptions="!20230620",
        cond="Tue",
        duration="20230601-20230630",
    )

    assert _first_days(enumerator) == [date(2023, 6, d) for d in (6, 10, 13, 27)]


def test_exception_range_removes_every_day_inside():
    enumerator = _enumerator(cond="Tue", duration="20230601-20230630", exceptions="!20230610-20230625")

    assert _first_days(enumerator) == [date(2023, 6, 6), date(2023, 6, 27)]


def test_open_ended_exception_range_removes_the_rest():
    enumerator = _enumerator(
        dates="20230630", cond="Tue", duration="20230601-20230630", exceptions="!20230615-"
    )

    assert _first_days(enumerator) == [date(2023, 6, 6), date(2023, 6, 13)]


def test_unbounded_condition_is_lazy():
    first_three = list(islice(_enumerator(cond="Mon"), 3))

    # 1970-01-01 was a Thursday
    assert _first_days(first_three) == [date(1970, 1, 5), date(1970, 1, 12), date(1970, 1, 19)]


def test_between_bounds_an_unbounded_condition():
    occurrences = _enumerator(cond="Tue").between(date(2023, 6, 1), date(2023, 6, 30))

    assert _first_days(occurrences) == [date(2023, 6, d) for d in (6, 13, 20, 27)]


def test_between_includes_literal_ranges_overlapping_the_bound():
    occurrences = _enumerator(dates="20230530-20230602 20230610").between(date(2023, 6, 1), date(2023, 6, 5))

    assert _first_days(occurrences) == [date(2023, 5, 30)]


def test_first_of_empty_sequence_fails():
    with pytest.raises(OccurrenceNotFoundError):
        _enumerator().first()


def test_first_of_unsatisfiable_condition_fails_instead_of_looping():
    with pytest.raises(OccurrenceNotFoundError):
        _enumerator(cond="Feb 30").first()


def test_allday_occurrence_uses_exclusive_end_date():
    occurrence = _enumerator(dates="20230615-20230617").first()

    assert occurrence.is_allday
    assert occurrence.dtstart == date(2023, 6, 15)
    assert occurrence.dtend == date(2023, 6, 18)


def test_timed_occurrence_is_utc():
    occurrence = _enumerator(dates="20230615", time_range="10:00-11:30").first()

    assert occurrence.dtstart == datetime(2023, 6, 15, 10, 0, tzinfo=pytz.UTC)
    assert occurrence.dtend == datetime(2023, 6, 15, 11, 30, tzinfo=pytz.UTC)


def test_timed_occurrence_converts_from_local_zone():
    timezone_utils.set_timezone("Asia/Tokyo")

    occurrence = _enumerator(dates="20230615", time_range="10:00").first()

    assert occurrence.start_time == time(10, 0)
    assert occurrence.dtstart == datetime(2023, 6, 15, 1, 0, tzinfo=pytz.UTC)
    assert occurrence.dtend == occurrence.dtstart


@pytest.mark.parametrize("cond, expected", [
    ("Tue Thu", [{"freq": "WEEKLY", "byday": ["TU", "TH"]}]),
    ("2nd Sat Jan", [{"freq": "MONTHLY", "byday": ["2SA"], "bymonth": [1]}]),
    ("Last Fri", [{"freq": "MONTHLY", "byday": ["-1FR"]}]),
    ("15", [{"freq": "MONTHLY", "bymonthday": [15]}]),
    ("Jan 15", [{"freq": "MONTHLY", "bymonthday": [15], "bymonth": [1]}]),
    ("Aug", [{"freq": "DAILY", "bymonth": [8]}]),
    ("1 Tue", [{"freq": "WEEKLY", "byday": ["TU"]}, {"freq": "MONTHLY", "bymonthday": [1]}]),
])
def test_to_rrules(cond, expected):
    assert to_rrules(RecurrenceCondition().parse(cond), date(2023, 1, 1)) == expected


def test_to_rrules_until_follows_dtstart_type():
    cond = RecurrenceCondition().parse("Tue")

    allday, = to_rrules(cond, date(2023, 6, 6), date(2023, 6, 30))
    timed, = to_rrules(cond, datetime(2023, 6, 6, 10, tzinfo=pytz.UTC), date(2023, 6, 30))

    assert allday["until"] == date(2023, 6, 30)
    assert timed["until"] == datetime(2023, 6, 30, 23, 59, 59, tzinfo=pytz.UTC)


def test_to_rrules_without_expressible_tokens():
    assert to_rrules(RecurrenceCondition().parse("Holiday"), date(2023, 1, 1)) == []
