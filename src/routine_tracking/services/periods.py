from __future__ import annotations

from datetime import datetime, timedelta
import logging

from routine_tracking.domain.constants import (
    DAILY,
    FREQUENCIES,
    HOURLY,
    MONTHLY,
    WEEKLY,
    YEARLY,
)

LOGGER = logging.getLogger(__name__)


def is_known_frequency(value: str | None) -> bool:
    return value in FREQUENCIES


def _day_start(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _week_start(moment: datetime) -> datetime:
    # weeks start on Sunday; weekday() counts from Monday = 0
    days_since_sunday = (moment.weekday() + 1) % 7
    return _day_start(moment) - timedelta(days=days_since_sunday)


def period_start(frequency: str, now: datetime | None = None) -> datetime:
    """Start of the recurrence window containing ``now``.

    Unrecognized frequencies use the DAILY window.
    """
    moment = now or datetime.now()
    if frequency == HOURLY:
        return moment.replace(minute=0, second=0, microsecond=0)
    if frequency == DAILY:
        return _day_start(moment)
    if frequency == WEEKLY:
        return _week_start(moment)
    if frequency == MONTHLY:
        return _day_start(moment).replace(day=1)
    if frequency == YEARLY:
        return _day_start(moment).replace(month=1, day=1)
    LOGGER.debug("Unknown frequency %r, using DAILY period.", frequency)
    return _day_start(moment)


def period_bounds(frequency: str, now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return ``(start, end)``; ``end`` is the start of the following period."""
    start = period_start(frequency, now)
    if frequency == HOURLY:
        end = start + timedelta(hours=1)
    elif frequency == WEEKLY:
        end = start + timedelta(days=7)
    elif frequency == MONTHLY:
        if start.month == 12:
            end = start.replace(year=start.year + 1, month=1)
        else:
            end = start.replace(month=start.month + 1)
    elif frequency == YEARLY:
        end = start.replace(year=start.year + 1)
    else:
        end = start + timedelta(days=1)
    return start, end
