"""
EventRecord: one calendar event stored as an RFC822-like text record.

A record is a block of X-SC-* headers, optionally followed by other
headers that are carried along untouched, a blank line and a free-text
body:

    X-SC-Subject: Project meeting
    X-SC-Location: Room 2
    X-SC-Day: 20230615 20230622 !20230629
    X-SC-Time: 10:00-11:30
    X-SC-Category: Work
    X-SC-Mission-Tag:
    X-SC-Recurrence-Tag:
    X-SC-Cond:
    X-SC-Duration:
    X-SC-Alarm: 10 minute
    X-SC-Record-Id: 0c1d6e30-4d6b-4f5e-9f3c-1b3a5f0b9c21
    X-SC-Sequence: 2

    Agenda goes here.

Every field reads as a typed value from property_value.py and is
assigned from a raw string. An unset field reads as that type's empty
value.
"""

import os
import re
from datetime import date, datetime
from functools import partial
from pathlib import Path
from typing import Optional, Union
import pytz

from .date_resolver import DateResolver
from .debug import debug_print
from .errors import PropertyParseError
from .header import separate_header
from .occurrence import OccurrenceEnumerator
from .property_value import (
    EXCEPTION_MARKER, Integer, Period, RecurrenceCondition, Text,
    new_date_list, new_date_range, new_text_list, new_time_range
)


# created/last_modified of records that have no backing file
DEFAULT_TIMESTAMP = datetime(2014, 1, 1, tzinfo=pytz.UTC)

# Legacy X-SC-Date value, e.g. "Tue, 15 Jun 1999 10:00:00 +0900"
OBSOLETE_DATE_RE = re.compile(r'(\d+)\s+([A-Z][a-z][a-z])\s+(\d+)(?:\s+(\d\d:\d\d))?')
MONTH_ABBREVIATIONS = "JanFebMarAprMayJunJulAugSepOctNovDec"


_FIELD_TYPES = {
    'subject': Text,
    'location': Text,
    'dates': new_date_list,
    'exceptions': partial(new_date_list, EXCEPTION_MARKER),
    'time_range': new_time_range,
    'duration': new_date_range,
    'categories': new_text_list,
    'mission_tag': Text,
    'recurrence_tag': Text,
    'recurrence_condition': RecurrenceCondition,
    'alarm': Period,
    'record_id': Text,
    'sequence': lambda: Integer().parse("0"),
}

# X-SC header key -> attribute it is assigned to
_HEADER_FIELDS = {
    'subject': 'subject',
    'location': 'location',
    'day': 'day',
    'date': 'migrate_obsolete_date',
    'time': 'time_range',
    'duration': 'duration',
    'category': 'categories',
    'mission-tag': 'mission_tag',
    'recurrence-tag': 'recurrence_tag',
    'cond': 'recurrence_condition',
    'alarm': 'alarm',
    'record-id': 'record_id',
    'sequence': 'sequence',
}


def _field(name: str, doc: str) -> property:
    """Property reading the typed value and assigning from a raw string."""
    def getter(self):
        return self._get(name)

    def setter(self, string):
        self._assign(name, string)

    return property(getter, setter, doc=doc)


def _as_utc(value: Union[date, datetime, None]) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.combine(value, datetime.min.time())
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def _read_header(file) -> str:
    """Read lines up to the first blank line; the blank line is consumed."""
    lines = []
    while True:
        line = file.readline()
        if line == "" or line.rstrip("\r\n") == "":
            break
        lines.append(line.rstrip("\r\n"))
    return "\n".join(lines)


class EventRecord:
    """
    In-memory form of one X-SC record.

    Build one with EventRecord.from_string() or EventRecord.from_file().
    A record read lazily from a file loads its body on first access.
    """

    def __init__(self):
        self.clear()

    @classmethod
    def from_string(cls, string: str) -> 'EventRecord':
        return cls().parse(string)

    @classmethod
    def from_file(cls, path: Union[str, Path], lazy: bool = True) -> 'EventRecord':
        return cls().parse_file(path, lazy)

    # ==================== Parsing ====================

    def clear(self) -> 'EventRecord':
        """Reset every field to unset and forget the backing file."""
        self._values: dict = {}
        self._body: Optional[Text] = None
        self._non_xsc_header: Optional[str] = None
        self._path: Optional[Path] = None
        self._created: Optional[datetime] = None
        self._last_modified: Optional[datetime] = None
        self.parse_errors: dict[str, str] = {}
        return self

    def parse(self, string: str) -> 'EventRecord':
        """Parse a complete record (header, blank line, body)."""
        self.clear()
        string = (string or "").replace("\r\n", "\n")
        header, _, body = string.partition("\n\n")

        self._parse_header(header)
        self.body = body
        return self

    def parse_file(self, path: Union[str, Path], lazy: bool = True) -> 'EventRecord':
        """
        Parse a record stored in a file.

        Args:
            path: The record file
            lazy: If True, only the header is read now and the body is
                read on first access
        """
        self.clear()
        path = Path(path)
        body = None

        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            header = _read_header(f)
            if not lazy:
                body = f.read()

        self._path = path
        self._parse_header(header)
        if body is not None:
            self.body = body
        return self

    def _parse_header(self, string: str) -> None:
        fields, self._non_xsc_header = separate_header(string)

        for key, value in fields.items():
            attribute = _HEADER_FIELDS.get(key)
            if attribute is None:
                debug_print("RECORD", f"Dropping unknown header X-SC-{key.capitalize()}")
                continue
            try:
                if key == 'date':
                    self.migrate_obsolete_date(value)
                else:
                    setattr(self, attribute, value)
            except PropertyParseError as e:
                e.key = key
                self.parse_errors[key] = str(e)
                debug_print("RECORD", f"Ignoring bad X-SC-{key.capitalize()}: {e}")

    # ==================== Field access ====================

    def _get(self, name: str):
        value = self._values.get(name)
        if value is None:
            value = self._values[name] = _FIELD_TYPES[name]()
        return value

    def _assign(self, name: str, string) -> None:
        if string is not None and not isinstance(string, str):
            string = str(string)
        self._values[name] = self._get(name).parse(string)

    subject = _field('subject', "X-SC-Subject, Text.")
    location = _field('location', "X-SC-Location, Text.")
    time_range = _field('time_range', "X-SC-Time, Range of Time; empty for all-day events.")
    duration = _field('duration', "X-SC-Duration, Range of Date bounding the recurrence.")
    categories = _field('categories', "X-SC-Category, List of Text.")
    mission_tag = _field('mission_tag', "X-SC-Mission-Tag, Text.")
    recurrence_tag = _field('recurrence_tag', "X-SC-Recurrence-Tag, Text.")
    recurrence_condition = _field('recurrence_condition', "X-SC-Cond, RecurrenceCondition.")
    alarm = _field('alarm', "X-SC-Alarm, Period.")
    record_id = _field('record_id', "X-SC-Record-Id, Text.")

    @property
    def dates(self):
        """Unmarked X-SC-Day entries, List of Range of Date."""
        return self._get('dates')

    @dates.setter
    def dates(self, string):
        tokens = (string or "").split()
        self._assign('dates', " ".join(t for t in tokens if not t.startswith(EXCEPTION_MARKER)))

    @property
    def exceptions(self):
        """Marked (!) X-SC-Day entries, List of marked Range of Date."""
        return self._get('exceptions')

    @exceptions.setter
    def exceptions(self, string):
        tokens = (string or "").split()
        self._assign('exceptions', " ".join(t for t in tokens if t.startswith(EXCEPTION_MARKER)))

    @property
    def day(self) -> str:
        """X-SC-Day as written: dates followed by marked exceptions."""
        return f"{self.dates} {self.exceptions}".strip()

    @day.setter
    def day(self, string):
        self.dates = string
        self.exceptions = string

    def migrate_obsolete_date(self, string: str) -> None:
        """Migrate a legacy X-SC-Date value into dates and time_range."""
        match = OBSOLETE_DATE_RE.search(string or "")
        if not match:
            debug_print("RECORD", f"Unrecognized X-SC-Date value: {string!r}")
            return

        day, month_name, year, hhmm = match.groups()
        month_index = MONTH_ABBREVIATIONS.find(month_name)
        if month_index < 0 or month_index % 3:
            raise PropertyParseError(f"unknown month name {month_name!r}", raw=string)
        year = int(year)
        if year < 100:
            year += 1900

        debug_print("RECORD", f"Migrating obsolete X-SC-Date: {string!r}")
        self.dates = "%04d%02d%02d" % (year, month_index // 3 + 1, int(day))
        if hhmm and hhmm != '00:00':
            self.time_range = hhmm

    @property
    def sequence(self) -> Integer:
        """X-SC-Sequence, revision counter, 0 by default."""
        return self._get('sequence')

    @sequence.setter
    def sequence(self, value):
        value = "" if value is None else str(value).strip()
        new = Integer().parse(value or "0")
        current = self._values.get('sequence')
        if current is not None and new.to_int() < current.to_int():
            raise ValueError(f"sequence may not decrease ({current} -> {new})")
        self._assign('sequence', new.to_canonical_string())

    def bump_sequence(self) -> int:
        """Increment the sequence by one and return the new value."""
        self.sequence = self.sequence.to_int() + 1
        return self.sequence.to_int()

    @property
    def body(self) -> Text:
        """
        The free-text body.

        A lazily parsed record reads it from its file on first access,
        skipping the header. A missing file gives an empty body.
        """
        if self._body is None:
            body = Text()
            if self._path is not None and os.path.isfile(self._path):
                with open(self._path, 'r', encoding='utf-8', errors='replace') as f:
                    _read_header(f)
                    body.parse(f.read())
                debug_print("RECORD", f"Loaded body of {self._path}")
            self._body = body
        return self._body

    @body.setter
    def body(self, string):
        if self._body is None:
            self._body = Text()
        self._body.parse(string)

    description = body

    @property
    def non_recognized_header(self) -> str:
        return self._non_xsc_header or ""

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def uid(self) -> str:
        return str(self.record_id)

    @uid.setter
    def uid(self, string):
        self.record_id = string

    @property
    def etag(self) -> str:
        return f"{self.uid}-{self.sequence}"

    @property
    def is_recurring(self) -> bool:
        return not self.recurrence_condition.is_empty()

    @property
    def is_allday(self) -> bool:
        return self.time_range.is_empty()

    def properties(self) -> dict:
        """All typed fields by name, body included."""
        values = {name: self._get(name) for name in _FIELD_TYPES}
        values['body'] = self.body
        return values

    # ==================== Timestamps ====================

    @property
    def created(self) -> datetime:
        if self._created is not None:
            return self._created
        if self._path is not None and self._path.exists():
            return datetime.fromtimestamp(os.path.getctime(self._path), pytz.UTC)
        return DEFAULT_TIMESTAMP

    @created.setter
    def created(self, value):
        self._created = _as_utc(value)

    @property
    def last_modified(self) -> datetime:
        if self._last_modified is not None:
            return self._last_modified
        if self._path is not None and self._path.exists():
            return datetime.fromtimestamp(os.path.getmtime(self._path), pytz.UTC)
        return DEFAULT_TIMESTAMP

    @last_modified.setter
    def last_modified(self, value):
        self._last_modified = _as_utc(value)

    # ==================== Dates ====================

    def occurrences(self, date_range: Optional[tuple[date, date]] = None) -> OccurrenceEnumerator:
        """All occurrences of this record, optionally bounded by (first_day, last_day)."""
        return OccurrenceEnumerator(
            self.dates, self.exceptions, self.recurrence_condition,
            self.duration, self.time_range, date_range
        )

    @property
    def dtstart(self):
        return DateResolver(self).dtstart

    @property
    def dtend(self):
        return DateResolver(self).dtend

    @property
    def rdates(self):
        return DateResolver(self).rdates

    @property
    def exdates(self):
        return DateResolver(self).exdates

    # ==================== Dump ====================

    def dump_header(self) -> str:
        return (
            f"X-SC-Subject: {self.subject}\n"
            f"X-SC-Location: {self.location}\n"
            f"X-SC-Day: {self.day}\n"
            f"X-SC-Time: {self.time_range}\n"
            f"X-SC-Category: {self.categories}\n"
            f"X-SC-Mission-Tag: {self.mission_tag}\n"
            f"X-SC-Recurrence-Tag: {self.recurrence_tag}\n"
            f"X-SC-Cond: {self.recurrence_condition}\n"
            f"X-SC-Duration: {self.duration}\n"
            f"X-SC-Alarm: {self.alarm}\n"
            f"X-SC-Record-Id: {self.record_id}\n"
            f"X-SC-Sequence: {self.sequence}\n"
        )

    def dump(self) -> str:
        """Canonical text of the record."""
        non_xsc_header = re.sub(r'\n+\Z', '', self.non_recognized_header)
        if non_xsc_header:
            non_xsc_header += "\n"

        body = self.body.to_canonical_string()
        if body and not body.endswith("\n"):
            body += "\n"

        return self.dump_header() + non_xsc_header + "\n" + body

    def __str__(self):
        return self.dump()

    # ==================== iCalendar ====================

    def to_icalendar(self):
        from .interchange import to_icalendar
        return to_icalendar(self)

    def to_ics(self) -> str:
        from .interchange import to_ics
        return to_ics(self)

    def to_ics_string(self, prodid: Optional[str] = None) -> str:
        from .interchange import to_ics_string
        return to_ics_string(self, prodid)

    @classmethod
    def from_ics(cls, ics: str) -> Optional['EventRecord']:
        from .interchange import from_ics
        return from_ics(ics)

    def __repr__(self):
        return f"EventRecord(uid={self.uid!r}, subject={str(self.subject)!r}, day={self.day!r})"
