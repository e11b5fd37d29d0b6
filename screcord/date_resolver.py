"""
Derivation of DTSTART, DTEND, RDATE and EXDATE from an event record.

DTSTART has two meanings in iCalendar: the first occurrence of a
recurring event, or the start of a single-shot event. For X-SC records:

- with an X-SC-Cond, DTSTART/DTEND come from Cond and Duration alone,
  and every X-SC-Day entry is an additional RDATE;
- without one, DTSTART/DTEND come from the first X-SC-Day entry, and
  the remaining entries are RDATEs.

X-SC-Day exceptions become EXDATEs in both cases.
"""

from datetime import date, datetime
from typing import TYPE_CHECKING, Optional, Union

from .occurrence import Occurrence, OccurrenceEnumerator
from .property_value import (
    RecurrenceCondition, new_date_list, new_date_range
)

if TYPE_CHECKING:
    from .event import EventRecord


DateOrDateTime = Union[date, datetime]


class DateResolver:
    """Computes derived dates from the current state of one EventRecord."""

    def __init__(self, record: 'EventRecord'):
        self.record = record

    def _enumerate(self, dates, exceptions, condition, duration) -> OccurrenceEnumerator:
        return OccurrenceEnumerator(
            dates, exceptions, condition, duration, self.record.time_range
        )

    def _enumerate_list(self, dates) -> OccurrenceEnumerator:
        """Expand a literal date list on its own."""
        return self._enumerate(dates, new_date_list(), RecurrenceCondition(), new_date_range())

    def anchor(self) -> Occurrence:
        """
        The occurrence DTSTART and DTEND are taken from.

        Raises:
            OccurrenceNotFoundError: if there is no such occurrence.
        """
        record = self.record
        if record.is_recurring:
            enumerator = self._enumerate(
                new_date_list(), new_date_list(), record.recurrence_condition, record.duration
            )
        else:
            enumerator = self._enumerate_list(record.dates)
        return enumerator.first()

    @property
    def dtstart(self) -> DateOrDateTime:
        return self.anchor().dtstart

    @property
    def dtend(self) -> DateOrDateTime:
        return self.anchor().dtend

    @property
    def rdates(self) -> Optional[list[DateOrDateTime]]:
        record = self.record
        if record.dates.is_empty():
            return None

        starts = [oc.dtstart for oc in self._enumerate_list(record.dates)]
        if record.is_recurring:
            return starts

        # The first one is already DTSTART
        starts = starts[1:]
        return starts or None

    @property
    def exdates(self) -> Optional[list[DateOrDateTime]]:
        if self.record.exceptions.is_empty():
            return None
        return [oc.dtstart for oc in self._enumerate_list(self.record.exceptions)]
