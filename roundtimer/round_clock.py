"""Round clock arithmetic shared by the timer authority and its clients.

Remaining time is always derived from the authoritative round start
timestamp, never from an elapsed counter kept by whoever is asking.
"""

import math
from datetime import datetime, timedelta

import pytz


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Return ``value`` as an aware UTC datetime.

    SQLite hands back naive datetimes even for timezone-aware columns; those
    are stored in UTC, so they are tagged rather than converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=pytz.UTC)
    return value.astimezone(pytz.UTC)


def remaining(now: datetime, round_start_time: datetime, round_duration: int) -> int:
    """Seconds left in a round: ``max(0, duration - floor(now - start))``."""
    elapsed = (ensure_utc(now) - ensure_utc(round_start_time)).total_seconds()
    return max(0, int(round_duration) - math.floor(elapsed))


def start_time_for_remaining(now: datetime, round_duration: int, seconds_remaining: int) -> datetime:
    """The start time at which ``remaining(now, ...)`` equals ``seconds_remaining``."""
    elapsed = int(round_duration) - int(seconds_remaining)
    return ensure_utc(now) - timedelta(seconds=elapsed)


def format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    return ensure_utc(value).isoformat()


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    # Python < 3.11 rejects a trailing "Z"
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(value))
