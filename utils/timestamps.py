"""Conversions between calendar datetimes and stored event timestamps.

Event timestamps are integer seconds since the epoch. Datetimes coming from
query parameters are converted explicitly through milliseconds (the unit of
the callers' date APIs) and then down to seconds, flooring at each step.
Label and event ``created_at`` columns hold naive UTC datetimes.
"""

from datetime import date, datetime, time, timedelta, timezone

import dateutil.parser
import dateutil.tz

from config import config

MILLISECONDS_PER_SECOND = 1000

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Current time as a naive UTC datetime, the storage format of ``created_at`` columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_timezone(name: str | None = None):
    """Resolve an IANA timezone name, defaulting to the configured application timezone."""
    name = name or config.app.timezone
    tz = dateutil.tz.gettz(name)
    if tz is None:
        raise ValueError(f"Unknown timezone: {name}")
    return tz


def parse_datetime(value, tz=None) -> datetime:
    """Parse an ISO 8601 string (or date/datetime) into an aware datetime.

    Naive values are interpreted in ``tz`` (the application timezone by default).
    """
    if isinstance(value, str):
        value = dateutil.parser.isoparse(value.strip())
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if not isinstance(value, datetime):
        raise ValueError(f"Cannot interpret {value!r} as a datetime")
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz or get_timezone())
    return value


def to_aware_utc(value: datetime) -> datetime:
    """Attach UTC to a naive (stored) datetime, or convert an aware one to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso_utc(value: datetime) -> str:
    """ISO 8601 text of a stored or aware datetime in UTC, with a ``Z`` suffix."""
    return to_aware_utc(value).isoformat().replace('+00:00', 'Z')


def to_naive_utc(value: datetime) -> datetime:
    """Convert a datetime to the naive UTC form stored in ``created_at`` columns."""
    return to_aware_utc(value).replace(tzinfo=None)


def to_milliseconds(value: datetime) -> int:
    """Milliseconds since the epoch, floored."""
    return (to_aware_utc(value) - EPOCH) // timedelta(milliseconds=1)


def milliseconds_to_seconds(milliseconds: int) -> int:
    return milliseconds // MILLISECONDS_PER_SECOND


def seconds_to_milliseconds(seconds: int) -> int:
    return seconds * MILLISECONDS_PER_SECOND


def datetime_to_timestamp(value: datetime) -> int:
    """Convert a datetime into the integer-second unit of ``events.timestamp``."""
    return milliseconds_to_seconds(to_milliseconds(value))


def timestamp_to_datetime(timestamp: int) -> datetime:
    """Convert an event timestamp (seconds) into an aware UTC datetime."""
    return EPOCH + timedelta(milliseconds=seconds_to_milliseconds(timestamp))


def epoch_seconds(value: datetime) -> float:
    """Seconds since the epoch for a stored or aware datetime, keeping sub-second precision."""
    return (to_aware_utc(value) - EPOCH).total_seconds()


def local_day_bounds(day: date | datetime, tz=None) -> tuple[datetime, datetime]:
    """First and last instant (00:00:00 to 23:59:59.999999) of a calendar day in ``tz``.

    When ``day`` is an aware datetime, the calendar day is taken in ``tz``.
    """
    tz = tz or get_timezone()
    if isinstance(day, datetime):
        if day.tzinfo is not None:
            day = day.astimezone(tz)
        day = day.date()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day, time(23, 59, 59, 999999), tzinfo=tz)
    return start, end
