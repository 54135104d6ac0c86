"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, hours_from_now, minutes_ago
