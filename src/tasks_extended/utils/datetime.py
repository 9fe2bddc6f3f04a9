from datetime import datetime, timezone
from typing import Optional
import logging

import tzlocal

logger = logging.getLogger(__name__)


def convert_datetime_to_local_timezone(date_time: datetime) -> datetime:
    """
    Converts a given datetime object to a local-timezone-aware datetime.
    Naive datetimes are assumed to be UTC, which is what the Tasks API returns.

    Args:
        date_time: The datetime object to be converted.

    Returns:
        A datetime object in the local timezone.
    """
    if date_time.tzinfo is None:
        date_time = date_time.replace(tzinfo=timezone.utc)
    return date_time.astimezone(tzlocal.get_localzone())


def parse_rfc3339(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an RFC 3339 timestamp as returned by the Tasks API.

    Args:
        value: Timestamp string such as "2025-01-20T00:00:00.000Z"

    Returns:
        Timezone-aware datetime, or None if the value is empty or unparseable
    """
    if not value:
        return None

    try:
        if value.endswith('Z'):
            value = value[:-1] + '+00:00'
        dt = datetime.fromisoformat(value)
    except (ValueError, TypeError) as e:
        logger.warning("Failed to parse datetime: %s", e)
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def time_ago(then: datetime, now: Optional[datetime] = None) -> str:
    """
    Describe how long ago a moment was, in the coarsest unit that fits.

    Args:
        then: The past moment
        now: Reference time (default: current time)

    Returns:
        "just now", "5m ago", "2h ago" or "3d ago"
    """
    now = now or datetime.now(timezone.utc)
    seconds = int((now - then).total_seconds())
    if seconds < 60:
        return "just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def format_due(due: datetime) -> str:
    """Format a due date for display, e.g. "Mon, Jan 20, 9:00 AM"."""
    local = convert_datetime_to_local_timezone(due)
    hour = local.strftime("%I").lstrip("0") or "12"
    return f"{local.strftime('%a, %b')} {local.day}, {hour}:{local.strftime('%M %p')}"
