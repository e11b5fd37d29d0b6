"""
screcord - X-SC calendar event records

This package provides:
- Header splitting with RFC822 folding (header.py)
- Typed header field values (property_value.py)
- The event record itself: parse, lazy body, dump (event.py)
- Occurrence expansion of dates and conditions (occurrence.py)
- DTSTART/DTEND/RDATE/EXDATE derivation (date_resolver.py)
- Conversion to and from iCalendar (interchange.py)
- Configuration (config.py)
"""

from .config import Config
from .errors import ScRecordError, PropertyParseError, OccurrenceNotFoundError
from .event import EventRecord
from .occurrence import Occurrence, OccurrenceEnumerator
from .date_resolver import DateResolver
from .interchange import from_ics, to_icalendar, to_ics, to_ics_string

__all__ = [
    'Config',
    'ScRecordError',
    'PropertyParseError',
    'OccurrenceNotFoundError',
    'EventRecord',
    'Occurrence',
    'OccurrenceEnumerator',
    'DateResolver',
    'from_ics',
    'to_icalendar',
    'to_ics',
    'to_ics_string',
]
