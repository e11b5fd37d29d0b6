"""
Typed values of X-SC header fields.

Every variant offers the same three operations:

- parse(string) replaces the current content and returns the value itself
- to_canonical_string() gives the spelling used when dumping a record
  (str() of a value is the same thing)
- is_empty() tells whether anything is set

The set of variants is closed: Text, Integer, Date, Time, Period,
Range, List and RecurrenceCondition. They share no base class; code that
handles "any property value" uses the PropertyValue alias below.

A parse that fails raises PropertyParseError and leaves the value as it
was. Parsing the canonical string of a parsed value gives an equal value.
"""

import re
from dataclasses import dataclass, field
from datetime import date, time, timedelta
from functools import partial
from typing import Any, Callable, Optional, Union

from .errors import PropertyParseError


EXCEPTION_MARKER = "!"
RANGE_DELIMITER = "-"


@dataclass
class Text:
    """Opaque string, surrounding whitespace trimmed."""
    value: str = ""

    def parse(self, string: Optional[str]) -> 'Text':
        self.value = (string or "").strip()
        return self

    def to_canonical_string(self) -> str:
        return self.value

    def is_empty(self) -> bool:
        return self.value == ""

    def __str__(self):
        return self.to_canonical_string()


@dataclass
class Integer:
    value: Optional[int] = None

    def parse(self, string: Optional[str]) -> 'Integer':
        s = str(string).strip() if string is not None else ""
        if s == "":
            self.value = None
        elif re.fullmatch(r'[+-]?\d+', s):
            self.value = int(s)
        else:
            raise PropertyParseError(f"not an integer: {s!r}", raw=s)
        return self

    def to_int(self) -> int:
        return self.value if self.value is not None else 0

    def to_canonical_string(self) -> str:
        return "" if self.value is None else str(self.value)

    def is_empty(self) -> bool:
        return self.value is None

    def __str__(self):
        return self.to_canonical_string()


@dataclass
class Date:
    """Calendar day written as YYYYMMDD."""
    value: Optional[date] = None

    def parse(self, string: Optional[str]) -> 'Date':
        s = (string or "").strip()
        if s == "":
            self.value = None
            return self

        match = re.fullmatch(r'(\d{4})(\d{2})(\d{2})', s)
        if not match:
            raise PropertyParseError(f"not a YYYYMMDD date: {s!r}", raw=s)
        try:
            self.value = date(*(int(g) for g in match.groups()))
        except ValueError as e:
            raise PropertyParseError(f"invalid date {s!r}: {e}", raw=s) from e
        return self

    def to_canonical_string(self) -> str:
        return self.value.strftime("%Y%m%d") if self.value else ""

    def is_empty(self) -> bool:
        return self.value is None

    def __str__(self):
        return self.to_canonical_string()


@dataclass
class Time:
    """Wall-clock time of day written as HH:MM."""
    value: Optional[time] = None

    def parse(self, string: Optional[str]) -> 'Time':
        s = (string or "").strip()
        if s == "":
            self.value = None
            return self

        match = re.fullmatch(r'(\d{1,2}):(\d{2})', s)
        if not match:
            raise PropertyParseError(f"not a HH:MM time: {s!r}", raw=s)
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > 23 or minute > 59:
            raise PropertyParseError(f"time out of range: {s!r}", raw=s)
        self.value = time(hour, minute)
        return self

    def to_canonical_string(self) -> str:
        return self.value.strftime("%H:%M") if self.value else ""

    def is_empty(self) -> bool:
        return self.value is None

    def __str__(self):
        return self.to_canonical_string()


# Accepted spellings of alarm lead-time units
_PERIOD_UNITS = {
    'm': 'minute', 'min': 'minute', 'mins': 'minute',
    'minute': 'minute', 'minutes': 'minute',
    'h': 'hour', 'hour': 'hour', 'hours': 'hour',
    'd': 'day', 'day': 'day', 'days': 'day',
}


@dataclass
class Period:
    """
    Alarm lead time such as "10 minute", "1 hour" or "2 day".

    A bare number counts minutes.
    """
    amount: Optional[int] = None
    unit: str = "minute"

    def parse(self, string: Optional[str]) -> 'Period':
        s = (string or "").strip()
        if s == "":
            self.amount, self.unit = None, "minute"
            return self

        match = re.fullmatch(r'(\d+)\s*([A-Za-z]*)', s)
        if not match:
            raise PropertyParseError(f"not a period: {s!r}", raw=s)
        unit_text = match.group(2).lower() or 'minute'
        if unit_text not in _PERIOD_UNITS:
            raise PropertyParseError(f"unknown period unit: {match.group(2)!r}", raw=s)
        self.amount, self.unit = int(match.group(1)), _PERIOD_UNITS[unit_text]
        return self

    def to_timedelta(self) -> timedelta:
        if self.amount is None:
            return timedelta(0)
        return timedelta(**{self.unit + 's': self.amount})

    def to_canonical_string(self) -> str:
        return "" if self.amount is None else f"{self.amount} {self.unit}"

    def is_empty(self) -> bool:
        return self.amount is None

    def __str__(self):
        return self.to_canonical_string()


@dataclass
class Range:
    """
    One value or a first-last pair of values of the same scalar type.

    Spellings: "A", "A-B", "A-" (open end) and "-B" (open start). A single
    value is held as first == last. A date range written backwards is
    stored in calendar order. A marked range (used for exceptions)
    drops its marker on parse and writes it back on serialization.
    """
    item_type: Callable[[], Any] = field(compare=False, repr=False)
    marker: str = field(default="", compare=False, repr=False)
    first: Any = None
    last: Any = None

    def __post_init__(self):
        if self.first is None:
            self.first = self.item_type()
        if self.last is None:
            self.last = self.item_type()

    def parse(self, string: Optional[str]) -> 'Range':
        s = (string or "").strip()
        if self.marker and s.startswith(self.marker):
            s = s[len(self.marker):]

        if RANGE_DELIMITER in s:
            first_text, last_text = s.split(RANGE_DELIMITER, 1)
        else:
            first_text = last_text = s

        first = self.item_type().parse(first_text)
        last = self.item_type().parse(last_text)
        # Days run forward; times may wrap past midnight
        if isinstance(first, Date) and first.value and last.value and last.value < first.value:
            first, last = last, first
        self.first, self.last = first, last
        return self

    def is_single(self) -> bool:
        return self.first == self.last

    def to_canonical_string(self) -> str:
        if self.is_empty():
            return ""
        if self.is_single():
            return self.marker + str(self.first)
        return f"{self.marker}{self.first}{RANGE_DELIMITER}{self.last}"

    def is_empty(self) -> bool:
        return self.first.is_empty() and self.last.is_empty()

    def __str__(self):
        return self.to_canonical_string()


@dataclass
class List:
    """Whitespace separated tokens, each parsed by a fresh item."""
    item_factory: Callable[[], Any] = field(compare=False, repr=False)
    items: list = field(default_factory=list)

    def parse(self, string: Optional[str]) -> 'List':
        self.items = [self.item_factory().parse(token) for token in (string or "").split()]
        return self

    def to_list(self) -> list[str]:
        return [str(item) for item in self.items]

    def to_canonical_string(self) -> str:
        return " ".join(self.to_list())

    def is_empty(self) -> bool:
        return not self.items

    def __iter__(self):
        return iter(self.items)

    def __len__(self):
        return len(self.items)

    def __str__(self):
        return self.to_canonical_string()


@dataclass
class RecurrenceCondition:
    """
    X-SC-Cond rule text, e.g. "Tue Thu" or "2nd Sat Jan".

    Kept as whitespace-normalized tokens. Their meaning belongs to the
    occurrence engine (see occurrence.py).
    """
    tokens: list[str] = field(default_factory=list)

    def parse(self, string: Optional[str]) -> 'RecurrenceCondition':
        self.tokens = (string or "").split()
        return self

    def to_canonical_string(self) -> str:
        return " ".join(self.tokens)

    def is_empty(self) -> bool:
        return not self.tokens

    def __iter__(self):
        return iter(self.tokens)

    def __str__(self):
        return self.to_canonical_string()


PropertyValue = Union[Text, Integer, Date, Time, Period, Range, List, RecurrenceCondition]


# ==================== Empty values of the compound field types ====================

def new_date_list(marker: str = "") -> List:
    """List of (possibly marked) date ranges, as used by X-SC-Day."""
    return List(partial(Range, Date, marker))


def new_date_range() -> Range:
    return Range(Date)


def new_time_range() -> Range:
    return Range(Time)


def new_text_list() -> List:
    return List(Text)
