from __future__ import annotations

from datetime import datetime
from typing import Iterable

from routine_tracking.domain.models import Task, TaskCompletion
from routine_tracking.services.periods import period_start


def _counts_for_period(
    completion: TaskCompletion,
    task: Task,
    user_id: str,
    start: datetime,
) -> bool:
    return (
        completion.task_id == task.id
        and completion.user_id == user_id
        and completion.completed_at >= start
    )


def is_satisfied(
    task: Task,
    user_id: str,
    completions: Iterable[TaskCompletion],
    now: datetime | None = None,
) -> bool:
    start = period_start(task.frequency, now)
    return any(_counts_for_period(completion, task, user_id, start) for completion in completions)


def find_period_completion(
    task: Task,
    user_id: str,
    completions: Iterable[TaskCompletion],
    now: datetime | None = None,
) -> TaskCompletion | None:
    """Most recent completion that satisfies the assignment in the current period."""
    start = period_start(task.frequency, now)
    matches = [
        completion
        for completion in completions
        if _counts_for_period(completion, task, user_id, start)
    ]
    if not matches:
        return None
    return max(matches, key=lambda completion: completion.completed_at)
