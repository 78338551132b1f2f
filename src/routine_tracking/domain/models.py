from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping

import pandas as pd

from routine_tracking.domain.constants import (
    DAILY,
    LOG_OCCURRENCE,
    ROLE_OPERATOR,
    STATUS_COMPLETED,
    TASK_CHECKLIST,
    TASK_MEASUREMENT,
)


def _to_local(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse stored instants into naive local datetimes.

    Values carrying a UTC offset are converted to the host's local time.

    Accepts datetimes, dates, ISO-8601 text and epoch milliseconds (the format
    exported by the first browser-based version of the tracker).
    """
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return _to_local(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000)
    text = str(value).strip()
    try:
        parsed_iso = datetime.fromisoformat(text)
    except ValueError:
        parsed_iso = None
    if parsed_iso is not None:
        return _to_local(parsed_iso)
    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (TypeError, ValueError):
        return None
    if pd.isna(parsed):
        return None
    return _to_local(parsed.to_pydatetime())


def to_float(value: Any) -> float | None:
    if value in (None, ""):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:
        return None
    return number


def _text(row: Mapping[str, Any], key: str, default: str = "") -> str:
    value = row.get(key)
    return default if value is None else str(value)


@dataclass(frozen=True)
class User:
    id: str
    name: str
    title: str = ""
    shift: str = ""
    department: str = ""
    role: str = ROLE_OPERATOR
    username: str = ""
    email: str = ""

    @property
    def first_name(self) -> str:
        parts = self.name.split()
        return parts[0] if parts else self.id

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "User":
        return cls(
            id=_text(row, "id"),
            name=_text(row, "name"),
            title=_text(row, "title"),
            shift=_text(row, "shift"),
            department=_text(row, "department"),
            role=_text(row, "role", ROLE_OPERATOR) or ROLE_OPERATOR,
            username=_text(row, "username"),
            email=_text(row, "email"),
        )


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    description: str = ""
    frequency: str = DAILY
    kind: str = TASK_CHECKLIST
    assigned_user_ids: tuple[str, ...] = field(default_factory=tuple)
    due_time: str | None = None
    unit: str | None = None
    min_value: float | None = None
    max_value: float | None = None
    created_at: datetime | None = None

    @property
    def is_measurement(self) -> bool:
        return self.kind == TASK_MEASUREMENT

    def is_assigned_to(self, user_id: str) -> bool:
        return user_id in self.assigned_user_ids

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Task":
        assigned = row.get("assigned_user_ids") or ()
        if isinstance(assigned, str):
            assigned = [token for token in assigned.split(",") if token]
        return cls(
            id=_text(row, "id"),
            title=_text(row, "title"),
            description=_text(row, "description"),
            frequency=_text(row, "frequency", DAILY) or DAILY,
            kind=_text(row, "kind", TASK_CHECKLIST) or TASK_CHECKLIST,
            assigned_user_ids=tuple(str(user_id) for user_id in assigned),
            due_time=(row.get("due_time") or None),
            unit=(row.get("unit") or None),
            min_value=to_float(row.get("min_value")),
            max_value=to_float(row.get("max_value")),
            created_at=parse_timestamp(row.get("created_at")),
        )


@dataclass(frozen=True)
class TaskCompletion:
    id: str
    task_id: str
    user_id: str
    completed_at: datetime
    status: str = STATUS_COMPLETED
    measured_value: float | None = None
    notes: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TaskCompletion":
        completed_at = parse_timestamp(row.get("completed_at"))
        if completed_at is None:
            raise ValueError(f"Completion {row.get('id')!r} has no valid completed_at.")
        return cls(
            id=_text(row, "id"),
            task_id=_text(row, "task_id"),
            user_id=_text(row, "user_id"),
            completed_at=completed_at,
            status=_text(row, "status", STATUS_COMPLETED) or STATUS_COMPLETED,
            measured_value=to_float(row.get("measured_value")),
            notes=row.get("notes") or None,
        )


@dataclass(frozen=True)
class OperationalLog:
    id: str
    user_id: str
    kind: str
    value: float
    description: str
    timestamp: datetime

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "OperationalLog":
        timestamp = parse_timestamp(row.get("timestamp"))
        if timestamp is None:
            raise ValueError(f"Log {row.get('id')!r} has no valid timestamp.")
        return cls(
            id=_text(row, "id"),
            user_id=_text(row, "user_id"),
            kind=_text(row, "kind", LOG_OCCURRENCE) or LOG_OCCURRENCE,
            value=to_float(row.get("value")) or 0.0,
            description=_text(row, "description"),
            timestamp=timestamp,
        )
