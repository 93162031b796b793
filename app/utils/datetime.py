"""Datetime utilities for timezone-aware timestamps and share-link expiry."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation

MILLISECONDS_PER_HOUR = 60 * 60 * 1000


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(dt: datetime | None) -> datetime | None:
    """
    Convert naive datetime to aware UTC datetime.

    Datetimes read back from SQLite (and from PostgreSQL columns declared
    without time zone) are naive but represent UTC. Adding the tzinfo makes
    them safe to compare with utcnow().

    Examples:
        >>> ensure_aware(datetime(2025, 1, 1, 12, 0)).tzinfo
        datetime.timezone.utc
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        # Assume naive datetimes from DB are in UTC
        return dt.replace(tzinfo=timezone.utc)
    return dt


def hours_to_timedelta(hours: int | float | Decimal) -> timedelta:
    """
    Convert a number of hours into a timedelta with millisecond precision.

    The conversion goes through Decimal using the number's shortest decimal
    representation, then a single exact multiplication by 3,600,000, so
    values such as 0.1 hours become exactly 360000 ms instead of drifting
    through binary floating point.

    Raises:
        ValueError: If hours is not a finite number or is too large for a
            timedelta.

    Examples:
        >>> hours_to_timedelta(1)
        datetime.timedelta(seconds=3600)
        >>> hours_to_timedelta(0.1)
        datetime.timedelta(seconds=360)
    """
    if isinstance(hours, bool):
        raise ValueError("hours must be a number")
    try:
        value = hours if isinstance(hours, Decimal) else Decimal(str(hours))
    except InvalidOperation as e:
        raise ValueError(f"hours must be a number, got {hours!r}") from e
    if not value.is_finite():
        raise ValueError("hours must be finite")

    milliseconds = int((value * MILLISECONDS_PER_HOUR).to_integral_value())
    try:
        return timedelta(milliseconds=milliseconds)
    except OverflowError as e:
        raise ValueError("hours is too large") from e
