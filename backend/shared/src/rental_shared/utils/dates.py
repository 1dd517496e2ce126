"""Calendar-date helpers.

Rental dates are plain calendar dates with no time of day. All arithmetic is
done on ``datetime.date`` so no timezone conversion can shift a day.
"""

import datetime as dt
import re

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: str | dt.date) -> dt.date:
    """Parse a ``YYYY-MM-DD`` string.

    Raises:
        ValueError: If the value is not a valid ISO calendar date.
    """
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str) or not _ISO_DATE.match(value):
        raise ValueError(f"Expected a YYYY-MM-DD date, got {value!r}")
    return dt.date.fromisoformat(value)


def add_days(date: dt.date, days: int) -> dt.date:
    return date + dt.timedelta(days=days)


def days_between(start: dt.date, end: dt.date) -> int:
    """Whole calendar days from ``start`` to ``end`` (negative if reversed)."""
    return (end - start).days


def ranges_overlap(
    start_a: dt.date | None,
    end_a: dt.date | None,
    start_b: dt.date | None,
    end_b: dt.date | None,
) -> bool:
    """Inclusive overlap test; a ``None`` bound is unbounded in that direction.

    Two ranges that share a single day overlap.
    """
    if end_b is not None and start_a is not None and start_a > end_b:
        return False
    if end_a is not None and start_b is not None and start_b > end_a:
        return False
    return True
