"""
Occurrence expansion for X-SC records.

Turns a date list, an exception list, a recurrence condition and a
duration into a chronologically ordered, lazily generated sequence of
Occurrence objects. Also translates a condition into iCalendar RRULEs.

Condition vocabulary (case-insensitive):

- weekdays: Sun Mon Tue Wed Thu Fri Sat
- week-of-month ordinals: 1st 2nd 3rd 4th 5th Last
- months: Jan ... Dec
- day numbers: 1 ... 31

A day matches when the month filter passes (no months means every month)
and either its day number is listed, or its weekday is listed and its
week-of-month ordinal is listed (no ordinals means every week). Months
without any day or weekday select every day of those months.

Each of these parts becomes one dateutil rrule. The rules of a condition
are combined in an rruleset, and the exported event carries the same
rules as RRULE properties, so both sides expand to the same days.
"""

import calendar
import heapq
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional, Union

from dateutil.rrule import DAILY, FREQNAMES, MONTHLY, WEEKLY, rrule, rruleset, weekdays as RRULE_WEEKDAYS

from .debug import debug_print
from .errors import OccurrenceNotFoundError
from .property_value import List, Range, RecurrenceCondition
from .timezone_utils import local_naive_to_utc


# Start of condition expansion when the duration has no first day
DEFAULT_ORIGIN = date(1970, 1, 1)

WEEKDAYS = {'mon': 0, 'tue': 1, 'wed': 2, 'thu': 3, 'fri': 4, 'sat': 5, 'sun': 6}
ORDINALS = {'1st': 1, '2nd': 2, '3rd': 3, '4th': 4, '5th': 5, 'last': -1}
MONTHS = {name.lower(): i for i, name in enumerate(calendar.month_abbr) if name}

ICAL_WEEKDAYS = ['MO', 'TU', 'WE', 'TH', 'FR', 'SA', 'SU']


def _midnight(day: date) -> datetime:
    return datetime.combine(day, time())


@dataclass(frozen=True)
class ConditionMatcher:
    """Parsed form of an X-SC-Cond token list."""
    weekdays: frozenset = frozenset()
    ordinals: frozenset = frozenset()
    months: frozenset = frozenset()
    days: frozenset = frozenset()
    unknown: tuple = ()

    @classmethod
    def from_condition(cls, condition: RecurrenceCondition) -> 'ConditionMatcher':
        weekdays, ordinals, months, days, unknown = set(), set(), set(), set(), []
        for token in condition:
            key = token.lower()
            if key in WEEKDAYS:
                weekdays.add(WEEKDAYS[key])
            elif key in ORDINALS:
                ordinals.add(ORDINALS[key])
            elif key in MONTHS:
                months.add(MONTHS[key])
            elif key.isdigit() and 1 <= int(key) <= 31:
                days.add(int(key))
            else:
                unknown.append(token)

        if unknown:
            debug_print("OCCURRENCE", f"Ignoring unknown condition tokens: {' '.join(unknown)}")

        return cls(
            weekdays=frozenset(weekdays),
            ordinals=frozenset(ordinals),
            months=frozenset(months),
            days=frozenset(days),
            unknown=tuple(unknown),
        )

    def rule_parts(self) -> list[dict]:
        """
        The condition as a list of dateutil rrule keyword arguments.

        A day matching any of the parts matches the condition. An empty
        list means the condition selects no day at all.
        """
        parts = []
        if self.weekdays:
            if self.ordinals:
                byweekday = [
                    RRULE_WEEKDAYS[wd](ordinal)
                    for ordinal in sorted(self.ordinals) for wd in sorted(self.weekdays)
                ]
                parts.append({'freq': MONTHLY, 'byweekday': byweekday})
            else:
                parts.append({'freq': WEEKLY, 'byweekday': [RRULE_WEEKDAYS[wd] for wd in sorted(self.weekdays)]})
        if self.days:
            parts.append({'freq': MONTHLY, 'bymonthday': sorted(self.days)})
        if self.months and not parts and not self.ordinals:
            # Months alone select whole months
            parts.append({'freq': DAILY})

        if self.months:
            for part in parts:
                part['bymonth'] = sorted(self.months)
        return parts


def condition_ruleset(
    condition: RecurrenceCondition,
    first_day: date,
    last_day: Optional[date] = None
) -> rruleset:
    """Build the rruleset of a condition, limited to first_day..last_day."""
    rules = rruleset()
    until = _midnight(last_day) if last_day else None
    for part in ConditionMatcher.from_condition(condition).rule_parts():
        rules.rrule(rrule(dtstart=_midnight(first_day), until=until, **part))
    return rules


@dataclass(frozen=True)
class Occurrence:
    """
    One concrete instance of a record.

    All-day occurrences (no start time) report dates, with dtend on the
    day after the last day. Timed occurrences report UTC datetimes.
    """
    first_date: date
    last_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    @property
    def is_allday(self) -> bool:
        return self.start_time is None

    @property
    def dtstart(self) -> Union[date, datetime]:
        if self.is_allday:
            return self.first_date
        return local_naive_to_utc(datetime.combine(self.first_date, self.start_time))

    @property
    def dtend(self) -> Union[date, datetime]:
        if self.is_allday:
            return self.last_date + timedelta(days=1)
        return local_naive_to_utc(datetime.combine(self.last_date, self.end_time or self.start_time))

    @property
    def start(self) -> Union[date, datetime]:
        """Alias for dtstart."""
        return self.dtstart

    @property
    def end(self) -> Union[date, datetime]:
        """Alias for dtend."""
        return self.dtend

    def sort_key(self) -> tuple[date, date]:
        return (self.first_date, self.last_date)


class OccurrenceEnumerator:
    """
    Lazy, ordered sequence of occurrences.

    Iterating an enumerator with a non-empty condition and no end (neither
    a duration end nor date_range) may be unbounded; use first() or
    between() rather than materializing it.
    """

    def __init__(
        self,
        dates: List,
        exceptions: List,
        condition: RecurrenceCondition,
        duration: Range,
        time_range: Optional[Range] = None,
        date_range: Optional[tuple[date, date]] = None,
    ):
        """
        Args:
            dates: Literal dates (List of Range of Date)
            exceptions: Excluded dates (List of Range of Date)
            condition: Recurrence condition, may be empty
            duration: Range of Date bounding condition matches
            time_range: Range of Time applied to every occurrence
            date_range: Optional (first_day, last_day) bound, inclusive
        """
        self.dates = dates
        self.exceptions = exceptions
        self.condition = condition
        self.duration = duration
        self.time_range = time_range
        self.date_range = date_range

        self._start_time = None
        self._end_time = None
        if time_range is not None and not time_range.first.is_empty():
            self._start_time = time_range.first.value
            self._end_time = time_range.last.value

    def __iter__(self) -> Iterator[Occurrence]:
        return self._generate()

    def first(self) -> Occurrence:
        """
        Get the first occurrence.

        Raises:
            OccurrenceNotFoundError: if the sequence is empty.
        """
        for occurrence in self:
            return occurrence
        raise OccurrenceNotFoundError(
            f"No occurrence for dates={self.dates} cond={self.condition} duration={self.duration}"
        )

    def between(self, start: date, end: date) -> list[Occurrence]:
        """Get all occurrences overlapping the inclusive day range start..end."""
        if isinstance(start, datetime):
            start = start.date()
        if isinstance(end, datetime):
            end = end.date()
        bounded = OccurrenceEnumerator(
            self.dates, self.exceptions, self.condition, self.duration,
            self.time_range, (start, end)
        )
        return list(bounded)

    # ==================== Generation ====================

    def _generate(self) -> Iterator[Occurrence]:
        merged = heapq.merge(
            self._literal_occurrences(),
            self._condition_occurrences(),
            key=Occurrence.sort_key,
        )
        previous = None
        for occurrence in merged:
            if self.date_range and occurrence.first_date > self.date_range[1]:
                return
            if occurrence == previous:
                continue
            previous = occurrence
            yield occurrence

    def _make(self, first_day: date, last_day: date) -> Occurrence:
        return Occurrence(first_day, last_day, self._start_time, self._end_time)

    def _literal_occurrences(self) -> Iterator[Occurrence]:
        occurrences = []
        for item in self.dates:
            if item.is_empty():
                continue
            first_day = item.first.value or item.last.value
            last_day = item.last.value or first_day
            if self._in_date_range(first_day, last_day) and not self._is_excluded(first_day):
                occurrences.append(self._make(first_day, last_day))
        occurrences.sort(key=Occurrence.sort_key)
        return iter(occurrences)

    def _condition_occurrences(self) -> Iterator[Occurrence]:
        if self.condition.is_empty():
            return iter(())

        first_day = self.duration.first.value or DEFAULT_ORIGIN
        last_day = self.duration.last.value
        rules = condition_ruleset(self.condition, first_day, last_day)
        self._exclude_exceptions(rules, first_day)

        if self.date_range:
            low = max(first_day, self.date_range[0])
            high = min(last_day, self.date_range[1]) if last_day else self.date_range[1]
            days = rules.between(_midnight(low), _midnight(high), inc=True)
        else:
            days = rules
        return (self._make(day.date(), day.date()) for day in days)

    def _exclude_exceptions(self, rules: rruleset, first_day: date) -> None:
        """Single exception days become exdates, exception spans daily exrules."""
        for item in self.exceptions:
            if item.is_empty():
                continue
            if item.is_single():
                rules.exdate(_midnight(item.first.value))
                continue
            low = item.first.value or first_day
            high = item.last.value
            rules.exrule(rrule(DAILY, dtstart=_midnight(low), until=_midnight(high) if high else None))

    def _in_date_range(self, first_day: date, last_day: date) -> bool:
        if not self.date_range:
            return True
        return last_day >= self.date_range[0] and first_day <= self.date_range[1]

    def _is_excluded(self, day: date) -> bool:
        for item in self.exceptions:
            if item.is_empty():
                continue
            low = item.first.value or date.min
            high = item.last.value or date.max
            if low <= day <= high:
                return True
        return False


# ==================== iCalendar translation ====================

def _ical_weekday(wd) -> str:
    return f"{wd.n or ''}{ICAL_WEEKDAYS[wd.weekday]}"


def to_rrules(
    condition: RecurrenceCondition,
    dtstart: Union[date, datetime],
    until: Optional[date] = None
) -> list[dict]:
    """
    Build RRULE dicts (icalendar vRecur keys) from a condition.

    One dict per rule part; an event carrying all of them as RRULE
    properties recurs on the same days as the condition.

    Args:
        condition: The recurrence condition
        dtstart: DTSTART of the exported event, decides the UNTIL type
        until: Last day of the recurrence (duration end), if any
    """
    rules = []
    for part in ConditionMatcher.from_condition(condition).rule_parts():
        rule: dict = {'freq': FREQNAMES[part['freq']]}
        if 'byweekday' in part:
            rule['byday'] = [_ical_weekday(wd) for wd in part['byweekday']]
        if 'bymonthday' in part:
            rule['bymonthday'] = part['bymonthday']
        if 'bymonth' in part:
            rule['bymonth'] = part['bymonth']
        if until:
            if isinstance(dtstart, datetime):
                rule['until'] = local_naive_to_utc(datetime.combine(until, time(23, 59, 59)))
            else:
                rule['until'] = until
        rules.append(rule)
    return rules
