"""
Mapping between EventRecord and icalendar.Event.

Export covers dates (DTSTART, DTEND, RRULE, RDATE, EXDATE), text
fields, categories, sequence, timestamps and the alarm. Import covers
uid, timestamps, sequence, text fields, categories and the start/end
of the first VEVENT. Recurrence rules are not imported.
"""

from datetime import date, datetime, timedelta
from typing import Optional
import pytz
from icalendar import Alarm as ICalAlarm, Calendar as ICalCalendar, Event as ICalEvent
from recurring_ical_events import of as recurring_events_of

from .config import DEFAULT_PRODID
from .debug import debug_print
from .event import EventRecord
from .occurrence import to_rrules
from .timezone_utils import utc_to_local_naive


def parse_icalendar(ical_text: str) -> ICalCalendar:
    """
    Parse iCalendar text into an icalendar.Calendar object.

    Args:
        ical_text: Raw iCalendar text (VCALENDAR)

    Returns:
        Parsed Calendar object
    """
    return ICalCalendar.from_ical(ical_text)


# ==================== Export ====================

def to_icalendar(record: EventRecord) -> ICalEvent:
    """
    Build an icalendar.Event from a record.

    Raises:
        OccurrenceNotFoundError: if the record has no first occurrence.
    """
    event = ICalEvent()
    dtstart = record.dtstart

    event.add('uid', record.uid)
    event.add('dtstamp', datetime.now(pytz.UTC))
    event.add('created', record.created)
    event.add('last-modified', record.last_modified)
    event.add('sequence', record.sequence.to_int())
    event.add('summary', str(record.subject))
    event.add('dtstart', dtstart)
    event.add('dtend', record.dtend)

    if record.is_recurring:
        rrules = to_rrules(record.recurrence_condition, dtstart, record.duration.last.value)
        for rrule in rrules:
            event.add('rrule', rrule)
        if not rrules:
            debug_print("ICS", f"Condition '{record.recurrence_condition}' has no RRULE form")

    rdates = record.rdates
    if rdates:
        event.add('rdate', rdates)

    exdates = record.exdates
    if exdates:
        event.add('exdate', exdates)

    if not record.categories.is_empty():
        event.add('categories', record.categories.to_list())

    location = str(record.location)
    if location:
        event.add('location', location)

    event.add('description', record.body.to_canonical_string())

    if not record.alarm.is_empty():
        alarm = ICalAlarm()
        alarm.add('action', 'DISPLAY')
        alarm.add('description', str(record.subject))
        alarm.add('trigger', -record.alarm.to_timedelta())
        event.add_component(alarm)

    return event


def to_ics(record: EventRecord) -> str:
    """The VEVENT of a record as iCalendar text."""
    return to_icalendar(record).to_ical().decode('utf-8')


def to_ics_calendar(record: EventRecord, prodid: Optional[str] = None) -> ICalCalendar:
    """Wrap the VEVENT of a record in a VCALENDAR."""
    vcal = ICalCalendar()
    vcal.add('prodid', prodid or DEFAULT_PRODID)
    vcal.add('version', '2.0')
    vcal.add_component(to_icalendar(record))
    return vcal


def to_ics_string(record: EventRecord, prodid: Optional[str] = None) -> str:
    """A complete VCALENDAR holding the record, as text."""
    return to_ics_calendar(record, prodid).to_ical().decode('utf-8')


def ics_instances_between(record: EventRecord, start: datetime, end: datetime) -> list:
    """
    Start values of the exported event as an iCalendar consumer expands them.

    Uses recurring_ical_events on the VCALENDAR built by to_ics_calendar,
    so RRULE, RDATE and EXDATE are all taken into account.
    """
    expanded = recurring_events_of(to_ics_calendar(record)).between(start, end)
    return sorted(
        (component.get('DTSTART').dt for component in expanded),
        key=lambda dt: dt if isinstance(dt, datetime) else datetime.combine(dt, datetime.min.time())
    )


# ==================== Import ====================

def _categories_of(event: ICalEvent) -> list[str]:
    categories = event.get('CATEGORIES')
    if categories is None:
        return []
    if not isinstance(categories, list):
        categories = [categories]
    names = []
    for category in categories:
        names.extend(str(c) for c in getattr(category, 'cats', [category]))
    return names


def from_ics(ics: str) -> Optional[EventRecord]:
    """
    Create a record from the first VEVENT of a VCALENDAR text.

    Returns:
        The new EventRecord, or None if there is no VEVENT.
    """
    vcal = parse_icalendar(ics)
    events = vcal.walk('VEVENT')
    if not events:
        return None

    event = events[0]
    record = EventRecord()

    record.uid = str(event.get('UID', ''))
    if event.get('CREATED') is not None:
        record.created = event.decoded('CREATED')
    if event.get('LAST-MODIFIED') is not None:
        record.last_modified = event.decoded('LAST-MODIFIED')
    record.sequence = int(event.get('SEQUENCE', 0))

    record.subject = str(event.get('SUMMARY', ''))
    record.location = str(event.get('LOCATION', ''))
    record.body = str(event.get('DESCRIPTION', ''))
    record.categories = " ".join(_categories_of(event))

    dtstart = event.get('DTSTART')
    if dtstart is None:
        return record
    start = dtstart.dt
    dtend = event.get('DTEND')
    end = dtend.dt if dtend is not None else None

    if not isinstance(start, datetime):
        # All-day: DTEND is exclusive
        last_day = end - timedelta(days=1) if end is not None else start
        _set_days(record, start, max(last_day, start))
    else:
        start = utc_to_local_naive(start)
        end = utc_to_local_naive(end) if isinstance(end, datetime) else start
        _set_days(record, start.date(), end.date())
        record.time_range = f"{start:%H:%M}-{end:%H:%M}"

    return record


def _set_days(record: EventRecord, first_day: date, last_day: date) -> None:
    if first_day == last_day:
        record.dates = f"{first_day:%Y%m%d}"
    else:
        record.dates = f"{first_day:%Y%m%d}-{last_day:%Y%m%d}"
