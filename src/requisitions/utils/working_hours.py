"""Business-hours arithmetic used to schedule automatic order closure.

Working time runs from ``start_hour`` to ``end_hour`` on Monday to Friday in
the business timezone. Arithmetic happens in local wall-clock time and the
result is returned in UTC.
"""

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo


def _is_weekend(moment: datetime) -> bool:
    return moment.weekday() >= 5


def _next_business_morning(moment: datetime, start_hour: int) -> datetime:
    moment = (moment + timedelta(days=1)).replace(hour=start_hour, minute=0, second=0, microsecond=0)
    while _is_weekend(moment):
        moment += timedelta(days=1)
    return moment


def add_working_hours(
    start: datetime,
    hours: float,
    start_hour: int = 9,
    end_hour: int = 17,
    timezone: str = "UTC",
) -> datetime:
    """Return the moment ``hours`` of working time after ``start``.

    A start outside working time is first moved to the next opening:
    weekends and evenings roll to the next business morning, early mornings
    to the same day's opening.
    """
    zone = ZoneInfo(timezone)
    if start.tzinfo is None:
        start = start.replace(tzinfo=UTC)
    cursor = start.astimezone(zone)

    if _is_weekend(cursor) or cursor.hour >= end_hour:
        cursor = _next_business_morning(cursor, start_hour)
    elif cursor.hour < start_hour:
        cursor = cursor.replace(hour=start_hour, minute=0, second=0, microsecond=0)

    remaining = timedelta(hours=hours)
    while remaining > timedelta(0):
        closing = cursor.replace(hour=end_hour, minute=0, second=0, microsecond=0)
        available = closing - cursor
        if available >= remaining:
            cursor = cursor + remaining
            break
        remaining -= available
        cursor = _next_business_morning(cursor, start_hour)

    return cursor.astimezone(UTC)
