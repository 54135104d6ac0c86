"""UTC-everywhere time handling. Eliminates timezone bugs at the source."""

from datetime import datetime, timedelta, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def hours_from_now(hours: int) -> datetime:
    """Expiry timestamp for something valid for the given number of hours."""
    return now_utc() + timedelta(hours=hours)


def minutes_ago(minutes: int) -> datetime:
    """Cutoff timestamp: anything created before this is older than `minutes`."""
    return now_utc() - timedelta(minutes=minutes)
