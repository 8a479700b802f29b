"""
Calendar Keys -- integer day keys and Sunday-first week arithmetic.

Responsibility:
    Convert calendar dates to comparable integer keys (milliseconds since the
    Unix epoch of the day's local midnight), compute week-start anchors,
    weekday codes and calendar-correct day arithmetic.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Two instants on the same calendar day always produce the same key.
    - ``to_key`` is idempotent: ``to_key(to_key(d)) == to_key(d)``.
    - ``week_start(k)`` is always a Sunday and ``week_start`` is idempotent.
    - Day arithmetic is done on calendar dates, never by adding milliseconds,
      so daylight-saving transitions cannot shift a key off midnight.

Every function takes an optional ``tz``.  ``None`` means the process local
timezone, which is what persisted keys were historically computed in.

Failure modes:
    - TypeError if ``to_key`` receives something that is not a date,
      datetime or int key.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, tzinfo

from supplier_kernel.domain.visit import VisitDayCode

MS_PER_DAY = 24 * 60 * 60 * 1000
MS_PER_WEEK = 7 * MS_PER_DAY

_ISO_DATE = re.compile(r"^([0-9]{4})-([0-9]{2})-([0-9]{2})$")


def _date_to_key(d: date, tz: tzinfo | None) -> int:
    midnight = datetime(d.year, d.month, d.day, tzinfo=tz)
    return int(round(midnight.timestamp() * 1000))


def key_to_datetime(key: int, tz: tzinfo | None = None) -> datetime:
    """Instant of ``key`` in ``tz`` (naive local time when tz is None)."""
    return datetime.fromtimestamp(key / 1000, tz)


def key_to_date(key: int, tz: tzinfo | None = None) -> date:
    return key_to_datetime(key, tz).date()


def to_key(value: date | datetime | int, tz: tzinfo | None = None) -> int:
    """Truncate a date, datetime or existing key to its local-midnight key."""
    if isinstance(value, bool):
        raise TypeError(f"Cannot build a calendar key from {value!r}")
    if isinstance(value, int):
        return _date_to_key(key_to_date(value, tz), tz)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        return _date_to_key(value.date(), tz)
    if isinstance(value, date):
        return _date_to_key(value, tz)
    raise TypeError(f"Cannot build a calendar key from {value!r}")


def is_well_formed_key(value: object, tz: tzinfo | None = None) -> bool:
    """True for an int key that already sits on a local midnight."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    try:
        return to_key(value, tz) == value
    except (OverflowError, OSError, ValueError):
        return False


def weekday_index(key: int, tz: tzinfo | None = None) -> int:
    """Sunday=0 ... Saturday=6."""
    return (key_to_date(key, tz).weekday() + 1) % 7


def visit_day_code(key: int, tz: tzinfo | None = None) -> VisitDayCode:
    return VisitDayCode.from_index(weekday_index(key, tz))


def add_days(key: int, days: int, tz: tzinfo | None = None) -> int:
    return _date_to_key(key_to_date(key, tz) + timedelta(days=days), tz)


def week_start(key: int, tz: tzinfo | None = None) -> int:
    """Key of the Sunday that starts the week containing ``key``."""
    d = key_to_date(key, tz)
    return _date_to_key(d - timedelta(days=(d.weekday() + 1) % 7), tz)


def week_diff(later_key: int, earlier_key: int) -> int:
    # Rounded so a 23h / 25h DST day does not break whole-week counts.
    return round((later_key - earlier_key) / MS_PER_WEEK)


def is_within_week(key: int, week_start_key: int, tz: tzinfo | None = None) -> bool:
    return week_start_key <= key <= add_days(week_start_key, 6, tz)


def is_weekend(key: int, tz: tzinfo | None = None) -> bool:
    return weekday_index(key, tz) in (0, 6)


def next_business_day(key: int, tz: tzinfo | None = None) -> int:
    """First Monday-to-Friday day strictly after ``key``."""
    candidate = add_days(key, 1, tz)
    while is_weekend(candidate, tz):
        candidate = add_days(candidate, 1, tz)
    return candidate


def key_to_iso(key: int, tz: tzinfo | None = None) -> str:
    return key_to_date(key, tz).isoformat()


def iso_to_key(text: object, tz: tzinfo | None = None) -> int | None:
    """Parse a strict ``YYYY-MM-DD`` string; None when it is not one."""
    if not isinstance(text, str):
        return None
    match = _ISO_DATE.match(text.strip())
    if not match:
        return None
    try:
        d = date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None
    return _date_to_key(d, tz)
