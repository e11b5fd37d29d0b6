from datetime import date, datetime, timedelta

import pytz
from icalendar import Calendar

from screcord import timezone_utils
from screcord.event import DEFAULT_TIMESTAMP, EventRecord
from screcord.interchange import (
    from_ics, ics_instances_between, to_icalendar, to_ics, to_ics_string
)


RECURRING = (
    "X-SC-Subject: Team sync\n"
    "X-SC-Location: Room 2\n"
    "X-SC-Day: 20230610 !20230613\n"
    "X-SC-Category: Work Weekly\n"
    "X-SC-Cond: Tue\n"
    "X-SC-Duration: 20230601-20230630\n"
    "X-SC-Alarm: 10 minute\n"
    "X-SC-Record-Id: sync-1\n"
    "X-SC-Sequence: 4\n"
    "\n"
    "Standing agenda.\n"
)

SINGLE = (
    "X-SC-Subject: Dentist\n"
    "X-SC-Day: 20230615\n"
    "X-SC-Time: 10:00-11:30\n"
    "X-SC-Record-Id: dentist-1\n"
    "\n"
)


def _ics(vevent: str) -> str:
    return (
        "BEGIN:VCALENDAR\r\n"
        "VERSION:2.0\r\n"
        "PRODID:-//test//test//EN\r\n"
        + vevent +
        "END:VCALENDAR\r\n"
    )


def test_export_of_single_timed_event():
    event = to_icalendar(EventRecord.from_string(SINGLE))

    assert str(event['UID']) == "dentist-1"
    assert str(event['SUMMARY']) == "Dentist"
    assert event['DTSTART'].dt == datetime(2023, 6, 15, 10, 0, tzinfo=pytz.UTC)
    assert event['DTEND'].dt == datetime(2023, 6, 15, 11, 30, tzinfo=pytz.UTC)
    assert event['SEQUENCE'] == 0
    assert event.decoded('CREATED') == DEFAULT_TIMESTAMP
    assert 'RRULE' not in event
    assert 'RDATE' not in event
    assert 'LOCATION' not in event
    assert not event.subcomponents


def test_export_of_recurring_event():
    event = to_icalendar(EventRecord.from_string(RECURRING))

    assert event['DTSTART'].dt == date(2023, 6, 6)
    assert event['DTEND'].dt == date(2023, 6, 7)
    assert event['RRULE']['FREQ'] == ['WEEKLY']
    assert event['RRULE']['BYDAY'] == ['TU']
    assert event['RRULE']['UNTIL'] == [date(2023, 6, 30)]
    assert [d.dt for d in event['RDATE'].dts] == [date(2023, 6, 10)]
    assert [d.dt for d in event['EXDATE'].dts] == [date(2023, 6, 13)]
    assert str(event['LOCATION']) == "Room 2"
    assert event['SEQUENCE'] == 4
    assert "Standing agenda." in str(event['DESCRIPTION'])


def test_export_adds_display_alarm():
    event = to_icalendar(EventRecord.from_string(RECURRING))

    alarm = event.subcomponents[0]
    assert alarm.name == 'VALARM'
    assert str(alarm['ACTION']) == 'DISPLAY'
    assert alarm.decoded('TRIGGER') == -timedelta(minutes=10)


def test_ics_texts():
    record = EventRecord.from_string(SINGLE)

    assert to_ics(record).startswith("BEGIN:VEVENT")
    calendar_text = to_ics_string(record, "-//acme//sc//EN")
    assert calendar_text.startswith("BEGIN:VCALENDAR")
    assert "PRODID:-//acme//sc//EN" in calendar_text
    assert len(Calendar.from_ical(calendar_text).walk('VEVENT')) == 1


def test_ical_consumers_see_the_same_instances():
    record = EventRecord.from_string(RECURRING.replace("X-SC-Day: 20230610 !20230613", "X-SC-Day: !20230613"))

    instances = ics_instances_between(record, date(2023, 6, 1), date(2023, 7, 1))

    assert instances == [date(2023, 6, 6), date(2023, 6, 20), date(2023, 6, 27)]
    assert [oc.dtstart for oc in record.occurrences().between(date(2023, 6, 1), date(2023, 6, 30))] == instances


def test_mixed_condition_exports_one_rrule_per_part():
    record = EventRecord.from_string(
        "X-SC-Cond: 1 Tue\n"
        "X-SC-Duration: 20230601-20230731\n"
        "X-SC-Record-Id: mixed-1\n"
    )

    event = to_icalendar(record)

    rules = event['RRULE']
    assert [rule['FREQ'] for rule in rules] == [['WEEKLY'], ['MONTHLY']]
    assert rules[0]['BYDAY'] == ['TU']
    assert rules[1]['BYMONTHDAY'] == [1]


def test_mixed_condition_instances_agree_with_ical_consumers():
    record = EventRecord.from_string(
        "X-SC-Cond: 1 Tue\n"
        "X-SC-Duration: 20230601-20230731\n"
        "X-SC-Record-Id: mixed-1\n"
    )

    own = [oc.dtstart for oc in record.occurrences().between(date(2023, 6, 1), date(2023, 7, 31))]
    consumer = ics_instances_between(record, date(2023, 6, 1), date(2023, 8, 1))

    assert own[:7] == [date(2023, 6, d) for d in (1, 6, 13, 20, 27)] + [date(2023, 7, 1), date(2023, 7, 4)]
    assert consumer == own


def test_import_allday_event_corrects_exclusive_end():
    record = from_ics(_ics(
        "BEGIN:VEVENT\r\n"
        "UID:trip-1\r\n"
        "SUMMARY:Trip\r\n"
        "LOCATION:Kyoto\r\n"
        "DESCRIPTION:Bring camera\r\n"
        "SEQUENCE:3\r\n"
        "CATEGORIES:Travel,Private\r\n"
        "CREATED:20230101T120000Z\r\n"
        "DTSTART;VALUE=DATE:20230615\r\n"
        "DTEND;VALUE=DATE:20230618\r\n"
        "END:VEVENT\r\n"
    ))

    assert record.uid == "trip-1"
    assert str(record.subject) == "Trip"
    assert str(record.location) == "Kyoto"
    assert str(record.body) == "Bring camera"
    assert record.sequence.to_int() == 3
    assert record.categories.to_list() == ["Travel", "Private"]
    assert record.created == datetime(2023, 1, 1, 12, 0, tzinfo=pytz.UTC)
    assert record.dates.to_list() == ["20230615-20230617"]
    assert record.is_allday


def test_import_single_allday_event():
    record = from_ics(_ics(
        "BEGIN:VEVENT\r\n"
        "UID:day-1\r\n"
        "DTSTART;VALUE=DATE:20230615\r\n"
        "DTEND;VALUE=DATE:20230616\r\n"
        "END:VEVENT\r\n"
    ))

    assert record.dates.to_list() == ["20230615"]
    assert record.dtstart == date(2023, 6, 15)


def test_import_timed_event_uses_local_wall_time():
    timezone_utils.set_timezone("Asia/Tokyo")

    record = from_ics(_ics(
        "BEGIN:VEVENT\r\n"
        "UID:call-1\r\n"
        "DTSTART:20230615T010000Z\r\n"
        "DTEND:20230615T023000Z\r\n"
        "END:VEVENT\r\n"
    ))

    assert record.dates.to_list() == ["20230615"]
    assert str(record.time_range) == "10:00-11:30"
    assert record.dtstart == datetime(2023, 6, 15, 1, 0, tzinfo=pytz.UTC)


def test_reimport_does_not_restore_recurrence():
    original = EventRecord.from_string(RECURRING)

    record = from_ics(to_ics_string(original))

    assert record.uid == original.uid
    assert record.sequence == original.sequence
    assert record.subject == original.subject
    assert record.recurrence_condition.is_empty()
    assert record.dates.to_list() == ["20230606"]


def test_single_event_survives_export_and_import():
    original = EventRecord.from_string(SINGLE)

    record = EventRecord.from_ics(original.to_ics_string())

    assert record.dates == original.dates
    assert record.time_range == original.time_range
    assert record.created == original.created


def test_import_without_vevent():
    assert from_ics(_ics("")) is None
