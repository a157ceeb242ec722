"""UTC helpers shared by the services.

SQLite hands back naive datetimes even for ``DateTime(timezone=True)``
columns, so every comparison goes through :func:`ensure_utc`.
"""
from datetime import datetime, timezone
from typing import Optional

import pytz


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive values, convert aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_local(value: datetime, tz_name: str) -> str:
    """Render a UTC timestamp in a profile's timezone, e.g. for notification text."""
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        tz = pytz.utc
    return ensure_utc(value).astimezone(tz).strftime("%Y-%m-%d %H:%M %Z")
