"""
Time parsing and timezone normalization.

Booking and review timestamps come back from the API as ISO-8601 strings, sometimes
with a trailing `Z`, sometimes naive. Everything is normalized to aware datetimes so
comparisons never mix naive and aware values.
"""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Asia/Hong_Kong"


def ensure_tz(dt: datetime, timezone: str = DEFAULT_TIMEZONE) -> datetime:
    """Ensure `dt` has tzinfo; attach `timezone` if naive."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=ZoneInfo(timezone))
    return dt


def parse_datetime(value: str, timezone: str = DEFAULT_TIMEZONE) -> datetime:
    """Parse an ISO-8601 datetime string and ensure tzinfo is present.

    Accepts a trailing `Z` (UTC). If the parsed value is naive, `timezone` is attached.
    """
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    return ensure_tz(dt, timezone)
