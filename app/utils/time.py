"""UTC day boundaries for dashboard counters."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def utc_day_window(now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return ``[start, end)`` of the UTC day containing ``now``.

    Order timestamps are stored in UTC, so day filters use UTC edges too.
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)
