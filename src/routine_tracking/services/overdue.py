from __future__ import annotations

from datetime import datetime, time
import logging
import re

from routine_tracking.domain.models import Task

LOGGER = logging.getLogger(__name__)

_DUE_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def parse_due_time(value: str | None) -> time | None:
    if not value:
        return None
    match = _DUE_TIME_RE.match(value)
    if not match:
        LOGGER.warning("Ignoring malformed due time %r.", value)
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        LOGGER.warning("Ignoring out-of-range due time %r.", value)
        return None
    return time(hours, minutes)


def due_instant(task: Task, now: datetime | None = None) -> datetime | None:
    """Today's due moment for the task, whatever its frequency."""
    due_time = parse_due_time(task.due_time)
    if due_time is None:
        return None
    moment = now or datetime.now()
    return datetime.combine(moment.date(), due_time)


def is_overdue(task: Task, is_satisfied_now: bool, now: datetime | None = None) -> bool:
    if is_satisfied_now:
        return False
    moment = now or datetime.now()
    due_at = due_instant(task, moment)
    if due_at is None:
        return False
    return moment > due_at
