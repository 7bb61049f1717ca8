from datetime import datetime, timezone
from typing import Optional


def get_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes.
    Some backends (SQLite) hand back naive values for timezone-aware columns.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 string in UTC, e.g. '2026-01-12T15:45:00+00:00'."""
    if dt is None:
        return None
    return ensure_aware(dt).astimezone(timezone.utc).isoformat()
