from datetime import datetime, timezone as dt_timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from smartcalendar.core.config import settings


def get_zoneinfo(tz_name: Optional[str] = None) -> Optional[ZoneInfo]:
    tz_name = tz_name or settings.DEFAULT_TIMEZONE
    if not tz_name:
        return None
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def utc_now() -> datetime:
    """Current time as UTC-naive, the representation used for storage and comparison."""
    return datetime.now(dt_timezone.utc).replace(tzinfo=None)


def to_utc_naive(dt: datetime | None) -> datetime | None:
    """
    Normalize any datetime to UTC-naive (tzinfo=None) for consistent storage/comparison.
    - Aware datetimes are converted to UTC and tzinfo is stripped
    - Naive datetimes are returned as-is (assumed UTC)
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(dt_timezone.utc).replace(tzinfo=None)


def to_utc_aware(dt: datetime | None) -> datetime | None:
    """
    Normalize any datetime to UTC-aware (tzinfo=UTC) for API responses.
    - Aware datetimes are converted to UTC
    - Naive datetimes are assumed UTC and tz attached
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=dt_timezone.utc)
    return dt.astimezone(dt_timezone.utc)


def to_local(dt: datetime | None, tz_name: Optional[str] = None) -> datetime | None:
    """Convert a UTC-naive datetime to the display timezone (DEFAULT_TIMEZONE unless given)."""
    if dt is None:
        return None
    tz = get_zoneinfo(tz_name)
    aware = to_utc_aware(dt)
    return aware.astimezone(tz) if tz else aware


def format_local(dt: datetime | None, tz_name: Optional[str] = None) -> str:
    """Render e.g. 'Friday, 10 January 2025 10:00' in the display timezone."""
    local = to_local(dt, tz_name)
    if local is None:
        return ""
    return local.strftime("%A, %d %B %Y %H:%M")
