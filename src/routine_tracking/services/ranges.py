from __future__ import annotations

from routine_tracking.domain.constants import RANGE_HIGH, RANGE_LOW, RANGE_NORMAL
from routine_tracking.domain.models import Task, TaskCompletion


def classify(
    value: float,
    min_value: float | None = None,
    max_value: float | None = None,
) -> str:
    # min is checked first, so an inverted range reports LOW below min
    if min_value is not None and value < min_value:
        return RANGE_LOW
    if max_value is not None and value > max_value:
        return RANGE_HIGH
    return RANGE_NORMAL


def classify_completion(task: Task, completion: TaskCompletion | None) -> str | None:
    """Range status for a completion, or None when no range check applies."""
    if completion is None or not task.is_measurement:
        return None
    if completion.measured_value is None:
        return None
    return classify(completion.measured_value, task.min_value, task.max_value)


def _format_bound(value: float | None, fallback: str) -> str:
    if value is None:
        return fallback
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def format_range(task: Task) -> str | None:
    if not task.is_measurement:
        return None
    if task.min_value is None and task.max_value is None:
        return None
    label = f"{_format_bound(task.min_value, '-∞')} - {_format_bound(task.max_value, '+∞')}"
    if task.unit:
        label = f"{label} {task.unit}"
    return label
