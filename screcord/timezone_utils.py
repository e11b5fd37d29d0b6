"""
Timezone utilities for screcord.

Record times (X-SC-Time) are wall-clock times in one configured local
zone. Everything handed to iCalendar is normalized to UTC; imported
UTC values are turned back into naive local wall time.
"""

from datetime import datetime
import pytz


# Default timezone - can be overridden by config
_local_timezone_name: str = "UTC"


def set_timezone(timezone_name: str):
    """
    Set the local timezone used for record wall-clock times.

    Raises:
        pytz.UnknownTimeZoneError: if the name is not a known zone.
    """
    global _local_timezone_name
    pytz.timezone(timezone_name)
    _local_timezone_name = timezone_name


def get_timezone_name() -> str:
    return _local_timezone_name


def get_local_timezone():
    """
    Get the local timezone as a pytz timezone object.

    Returns:
        pytz timezone object for the configured local timezone.
    """
    return pytz.timezone(_local_timezone_name)


def to_local_datetime(dt: datetime) -> datetime:
    """
    Convert an aware datetime to the local timezone.

    A naive datetime is returned unchanged.
    """
    if dt.tzinfo is not None:
        return dt.astimezone(get_local_timezone())
    return dt


def utc_to_local_naive(dt: datetime) -> datetime:
    """
    Convert an aware datetime to a naive local wall-clock datetime.

    Used when importing iCalendar values into X-SC-Day / X-SC-Time.
    Naive input is taken to be local already.
    """
    if dt.tzinfo is not None:
        return to_local_datetime(dt).replace(tzinfo=None)
    return dt


def local_naive_to_utc(dt: datetime) -> datetime:
    """
    Convert a naive local datetime to UTC.

    Args:
        dt: A naive datetime representing local wall-clock time.

    Returns:
        A timezone-aware datetime in UTC.
    """
    if dt.tzinfo is None:
        local_dt = get_local_timezone().localize(dt)
        return local_dt.astimezone(pytz.UTC)
    return dt.astimezone(pytz.UTC)
