from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import math
from typing import Any, Sequence
from uuid import uuid4

from routine_tracking.domain.constants import STATUS_COMPLETED
from routine_tracking.domain.models import Task, TaskCompletion
from routine_tracking.services.completion import find_period_completion
from routine_tracking.services.errors import InvalidMeasurementError
from routine_tracking.services.overdue import is_overdue
from routine_tracking.services.periods import period_bounds
from routine_tracking.services.ranges import classify_completion


@dataclass(frozen=True)
class RoutineItem:
    task: Task
    completion: TaskCompletion | None
    overdue: bool
    range_status: str | None
    period_end: datetime

    @property
    def satisfied(self) -> bool:
        return self.completion is not None


def parse_measurement(raw_value: Any) -> float | None:
    if raw_value is None:
        return None
    if isinstance(raw_value, (int, float)) and not isinstance(raw_value, bool):
        number = float(raw_value)
    else:
        text = str(raw_value).strip().replace(",", ".")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number


def build_completion(
    task: Task,
    user_id: str,
    raw_value: Any = None,
    notes: str | None = None,
    now: datetime | None = None,
) -> TaskCompletion:
    measured_value = parse_measurement(raw_value)
    if task.is_measurement and measured_value is None:
        raise InvalidMeasurementError(
            f"Task {task.title!r} needs a numeric value, got {raw_value!r}."
        )
    return TaskCompletion(
        id=str(uuid4()),
        task_id=task.id,
        user_id=user_id,
        completed_at=now or datetime.now(),
        status=STATUS_COMPLETED,
        measured_value=measured_value,
        notes=(notes or "").strip() or None,
    )


def build_work_list(
    tasks: Sequence[Task],
    user_id: str,
    completions: Sequence[TaskCompletion],
    now: datetime | None = None,
) -> list[RoutineItem]:
    moment = now or datetime.now()
    items: list[RoutineItem] = []
    for task in tasks:
        if not task.is_assigned_to(user_id):
            continue
        completion = find_period_completion(task, user_id, completions, moment)
        _, period_end = period_bounds(task.frequency, moment)
        items.append(
            RoutineItem(
                task=task,
                completion=completion,
                overdue=is_overdue(task, completion is not None, moment),
                range_status=classify_completion(task, completion),
                period_end=period_end,
            )
        )
    return items


def work_list_progress(items: Sequence[RoutineItem]) -> tuple[int, int]:
    return sum(1 for item in items if item.satisfied), len(items)
