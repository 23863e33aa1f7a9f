"""
utils/time_utils.py

Purpose: Time helpers

- Timezone-aware "now" for stored timestamps and token claims
- Millisecond epoch stamps for transient upload file names
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Returns the current UTC time as an aware datetime.
    """
    return datetime.now(timezone.utc)


def epoch_millis(dt: Optional[datetime] = None) -> int:
    """
    Milliseconds since the Unix epoch for dt (defaults to now).
    """
    dt = dt or utc_now()
    return int(dt.timestamp() * 1000)
