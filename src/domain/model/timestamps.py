"""Epoch-millisecond timestamps shared by every entry kind."""

import time
from datetime import datetime, timezone
from typing import Any


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def to_millis(value: Any, fallback: int | None = None) -> int:
    """Coerce a stored timestamp to epoch milliseconds.

    Resolution order:
    1. Backend-native timestamps (``datetime``, or anything exposing
       ``as_datetime()`` such as ``bson.Timestamp``) are converted.
    2. Numbers are used as-is.
    3. Anything else (missing, malformed legacy values) becomes ``fallback``,
       or the current time when no fallback is given.
    """
    if hasattr(value, 'as_datetime'):
        value = value.as_datetime()
    if isinstance(value, datetime):
        if value.tzinfo is None:
            # pymongo hands back naive UTC datetimes unless tz_aware is set
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    return now_millis() if fallback is None else fallback
