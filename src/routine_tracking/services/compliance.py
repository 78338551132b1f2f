from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

from routine_tracking.domain.constants import FILTER_ALL, LOG_PRODUCTION, LOG_SCRAP
from routine_tracking.domain.models import OperationalLog, Task, TaskCompletion, User
from routine_tracking.services.completion import is_satisfied

SERIES_DAYS = 7


@dataclass(frozen=True)
class ComplianceFilters:
    shift: str | None = FILTER_ALL
    department: str | None = FILTER_ALL


@dataclass(frozen=True)
class UserScore:
    user_id: str
    name: str
    first_name: str
    title: str
    shift: str
    department: str
    assigned: int
    satisfied: int
    score: int
    completed_total: int


@dataclass(frozen=True)
class DailyProduction:
    day: date
    production: float
    scrap: float


@dataclass(frozen=True)
class ComplianceSummary:
    user_scores: list[UserScore]
    overall_rate: int
    pending_count: int
    daily_series: list[DailyProduction]
    top_performer: UserScore | None = None
    filters: ComplianceFilters = field(default_factory=ComplianceFilters)


def round_half_up(value: float) -> int:
    return int(value + 0.5)


def _matches(selected: str | None, value: str) -> bool:
    if not selected or selected == FILTER_ALL:
        return True
    return value == selected


def filter_users(users: Iterable[User], filters: ComplianceFilters | None) -> list[User]:
    if filters is None:
        return list(users)
    return [
        user
        for user in users
        if _matches(filters.shift, user.shift) and _matches(filters.department, user.department)
    ]


def filter_options(users: Iterable[User]) -> tuple[list[str], list[str]]:
    """Distinct non-empty shift and department labels, sorted."""
    users = list(users)
    shifts = sorted({user.shift for user in users if user.shift})
    departments = sorted({user.department for user in users if user.department})
    return shifts, departments


def score_user(
    user: User,
    tasks: Sequence[Task],
    completions: Sequence[TaskCompletion],
    now: datetime,
) -> UserScore:
    assigned = 0
    satisfied = 0
    for task in tasks:
        if not task.is_assigned_to(user.id):
            continue
        assigned += 1
        if is_satisfied(task, user.id, completions, now):
            satisfied += 1
    score = round_half_up(satisfied / assigned * 100) if assigned else 0
    return UserScore(
        user_id=user.id,
        name=user.name,
        first_name=user.first_name,
        title=user.title,
        shift=user.shift,
        department=user.department,
        assigned=assigned,
        satisfied=satisfied,
        score=score,
        completed_total=sum(1 for completion in completions if completion.user_id == user.id),
    )


def ranking_labels(user_scores: Sequence[UserScore]) -> dict[str, str]:
    """Short chart label per user id: first name, full name when shared, rank as last resort."""
    first_counts = Counter(row.first_name for row in user_scores)
    labels = {
        row.user_id: row.first_name if first_counts[row.first_name] == 1 else row.name
        for row in user_scores
    }
    label_counts = Counter(labels.values())
    for rank, row in enumerate(user_scores, start=1):
        if label_counts[labels[row.user_id]] > 1:
            labels[row.user_id] = f"{labels[row.user_id]} (#{rank})"
    return labels


def count_pending(
    tasks: Sequence[Task],
    completions: Sequence[TaskCompletion],
    now: datetime,
) -> int:
    pending = 0
    for task in tasks:
        for user_id in task.assigned_user_ids:
            if not is_satisfied(task, user_id, completions, now):
                pending += 1
    return pending


def daily_series(
    logs: Iterable[OperationalLog],
    now: datetime,
    days: int = SERIES_DAYS,
) -> list[DailyProduction]:
    last_day = now.date()
    first_day = last_day - timedelta(days=days - 1)
    production_by_day = {first_day + timedelta(days=offset): 0.0 for offset in range(days)}
    scrap_by_day = dict(production_by_day)
    for log in logs:
        log_day = log.timestamp.date()
        if log_day not in production_by_day:
            continue
        if log.kind == LOG_PRODUCTION:
            production_by_day[log_day] += log.value
        elif log.kind == LOG_SCRAP:
            scrap_by_day[log_day] += log.value
    return [
        DailyProduction(day=day, production=production_by_day[day], scrap=scrap_by_day[day])
        for day in sorted(production_by_day)
    ]


def aggregate(
    users: Sequence[User],
    tasks: Sequence[Task],
    completions: Sequence[TaskCompletion],
    logs: Sequence[OperationalLog],
    filters: ComplianceFilters | None = None,
    now: datetime | None = None,
) -> ComplianceSummary:
    """Dashboard figures for one snapshot of the store.

    Scores and the overall rate follow the shift/department filters; the pending
    count always covers every task assignment.
    """
    moment = now or datetime.now()
    filters = filters or ComplianceFilters()

    scores = [score_user(user, tasks, completions, moment) for user in filter_users(users, filters)]
    scores.sort(key=lambda row: row.score, reverse=True)

    overall_rate = (
        round_half_up(sum(row.score for row in scores) / len(scores)) if scores else 0
    )
    top_performer = scores[0] if scores and scores[0].score > 0 else None

    return ComplianceSummary(
        user_scores=scores,
        overall_rate=overall_rate,
        pending_count=count_pending(tasks, completions, moment),
        daily_series=daily_series(logs, moment),
        top_performer=top_performer,
        filters=filters,
    )
