from __future__ import annotations

from collections import defaultdict
from datetime import datetime
import logging
import sqlite3
from typing import Any
from uuid import uuid4

from routine_tracking.data.passwords import hash_password, verify_password
from routine_tracking.domain.constants import LOG_KINDS, ROLES, TASK_KINDS, TASK_MEASUREMENT
from routine_tracking.domain.models import OperationalLog, Task, TaskCompletion, User
from routine_tracking.services.errors import InvalidRangeError, UnknownFrequencyError
from routine_tracking.services.overdue import parse_due_time
from routine_tracking.services.periods import is_known_frequency

LOGGER = logging.getLogger(__name__)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class UserRepository:
    def __init__(self, con: sqlite3.Connection) -> None:
        self.con = con

    def list_users(self) -> list[User]:
        cur = self.con.execute(
            """
            SELECT id, username, email, name, role, title, shift, department
            FROM users
            ORDER BY name, id
            """
        )
        return [User.from_row(dict(r)) for r in cur.fetchall()]

    def get_user(self, user_id: str) -> User | None:
        row = self.con.execute(
            """
            SELECT id, username, email, name, role, title, shift, department
            FROM users
            WHERE id = ?
            """,
            (user_id,),
        ).fetchone()
        return User.from_row(dict(row)) if row else None

    def save_user(self, payload: dict[str, Any], password: str | None = None) -> str:
        """Insert or update a user; fields missing from ``payload`` keep stored values."""
        user_id = str(payload.get("id") or uuid4())
        existing = self.con.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        merged = dict(existing) if existing else {}
        merged.update({key: value for key, value in payload.items() if value is not None})

        username = (merged.get("username") or "").strip()
        name = (merged.get("name") or "").strip()
        role = merged.get("role") or "OPERATOR"
        if not username:
            raise ValueError("Username is required.")
        if not name:
            raise ValueError("Name is required.")
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role}")
        if self._username_taken(username, exclude_id=user_id):
            raise ValueError("A user with this username already exists.")

        password_hash = merged.get("password_hash")
        if password:
            password_hash = hash_password(password)

        with self.con:
            self.con.execute(
                """
                INSERT INTO users (id, username, email, password_hash, name, role, title, shift, department)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    username = excluded.username,
                    email = excluded.email,
                    password_hash = excluded.password_hash,
                    name = excluded.name,
                    role = excluded.role,
                    title = excluded.title,
                    shift = excluded.shift,
                    department = excluded.department
                """,
                (
                    user_id,
                    username,
                    (merged.get("email") or "").strip() or None,
                    password_hash,
                    name,
                    role,
                    (merged.get("title") or "").strip(),
                    (merged.get("shift") or "").strip(),
                    (merged.get("department") or "").strip(),
                ),
            )
        return user_id

    def delete_user(self, user_id: str) -> None:
        with self.con:
            self.con.execute("DELETE FROM users WHERE id = ?", (user_id,))

    def authenticate(self, identifier: str, password: str) -> User | None:
        clean = (identifier or "").strip()
        if not clean or not password:
            return None
        row = self.con.execute(
            """
            SELECT *
            FROM users
            WHERE username = ? OR email = ?
            """,
            (clean, clean),
        ).fetchone()
        if row is None or not verify_password(password, row["password_hash"]):
            LOGGER.info("Failed login for %r.", clean)
            return None
        return User.from_row(dict(row))

    def _username_taken(self, username: str, exclude_id: str | None = None) -> bool:
        query = "SELECT 1 FROM users WHERE username = ?"
        params: list[Any] = [username]
        if exclude_id:
            query += " AND id != ?"
            params.append(exclude_id)
        return self.con.execute(query, params).fetchone() is not None


class TaskRepository:
    def __init__(self, con: sqlite3.Connection) -> None:
        self.con = con

    def list_tasks(self) -> list[Task]:
        assignments: dict[str, list[str]] = defaultdict(list)
        for row in self.con.execute(
            "SELECT task_id, user_id FROM task_assignments ORDER BY rowid"
        ).fetchall():
            assignments[row["task_id"]].append(row["user_id"])
        cur = self.con.execute(
            """
            SELECT id, title, description, frequency, kind, due_time, unit,
                   min_value, max_value, created_at
            FROM tasks
            ORDER BY created_at, id
            """
        )
        tasks = []
        for r in cur.fetchall():
            row = dict(r)
            row["assigned_user_ids"] = assignments.get(row["id"], [])
            tasks.append(Task.from_row(row))
        return tasks

    def get_task(self, task_id: str) -> Task | None:
        for task in self.list_tasks():
            if task.id == task_id:
                return task
        return None

    def save_task(self, task: Task) -> str:
        self._validate(task)
        task_id = task.id or str(uuid4())
        created_at = task.created_at or datetime.now()
        with self.con:
            self.con.execute(
                """
                INSERT INTO tasks (
                    id, title, description, frequency, kind, due_time, unit,
                    min_value, max_value, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title = excluded.title,
                    description = excluded.description,
                    frequency = excluded.frequency,
                    kind = excluded.kind,
                    due_time = excluded.due_time,
                    unit = excluded.unit,
                    min_value = excluded.min_value,
                    max_value = excluded.max_value
                """,
                (
                    task_id,
                    task.title.strip(),
                    task.description,
                    task.frequency,
                    task.kind,
                    task.due_time or None,
                    task.unit or None,
                    task.min_value if task.is_measurement else None,
                    task.max_value if task.is_measurement else None,
                    _iso(created_at),
                ),
            )
            self.con.execute("DELETE FROM task_assignments WHERE task_id = ?", (task_id,))
            self.con.executemany(
                "INSERT INTO task_assignments (task_id, user_id) VALUES (?, ?)",
                [(task_id, user_id) for user_id in dict.fromkeys(task.assigned_user_ids)],
            )
        return task_id

    def delete_task(self, task_id: str) -> None:
        with self.con:
            self.con.execute("DELETE FROM tasks WHERE id = ?", (task_id,))

    def _validate(self, task: Task) -> None:
        if not task.title.strip():
            raise ValueError("Task title is required.")
        if not is_known_frequency(task.frequency):
            raise UnknownFrequencyError(f"Unknown frequency: {task.frequency}")
        if task.kind not in TASK_KINDS:
            raise ValueError(f"Unknown task kind: {task.kind}")
        if not task.assigned_user_ids:
            raise ValueError("Select at least one assignee.")
        if task.due_time and parse_due_time(task.due_time) is None:
            raise ValueError(f"Due time must be HH:MM, got {task.due_time!r}.")
        if (
            task.kind == TASK_MEASUREMENT
            and task.min_value is not None
            and task.max_value is not None
            and task.min_value > task.max_value
        ):
            raise InvalidRangeError("Minimum value cannot be greater than maximum value.")


class CompletionRepository:
    def __init__(self, con: sqlite3.Connection) -> None:
        self.con = con

    def list_completions(self) -> list[TaskCompletion]:
        cur = self.con.execute(
            """
            SELECT id, task_id, user_id, completed_at, status, measured_value, notes
            FROM task_completions
            ORDER BY completed_at, id
            """
        )
        return self._parse_rows(cur.fetchall())

    def list_for_user(self, user_id: str) -> list[TaskCompletion]:
        cur = self.con.execute(
            """
            SELECT id, task_id, user_id, completed_at, status, measured_value, notes
            FROM task_completions
            WHERE user_id = ?
            ORDER BY completed_at, id
            """,
            (user_id,),
        )
        return self._parse_rows(cur.fetchall())

    def add_completion(self, completion: TaskCompletion) -> None:
        with self.con:
            self.con.execute(
                """
                INSERT INTO task_completions (
                    id, task_id, user_id, completed_at, status, measured_value, notes
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    completion.id,
                    completion.task_id,
                    completion.user_id,
                    _iso(completion.completed_at),
                    completion.status,
                    completion.measured_value,
                    completion.notes,
                ),
            )

    def _parse_rows(self, rows: list[sqlite3.Row]) -> list[TaskCompletion]:
        parsed: list[TaskCompletion] = []
        for row in rows:
            try:
                parsed.append(TaskCompletion.from_row(dict(row)))
            except ValueError as exc:
                LOGGER.warning("Skipping completion row: %s", exc)
        return parsed


class LogRepository:
    def __init__(self, con: sqlite3.Connection) -> None:
        self.con = con

    def list_logs(self) -> list[OperationalLog]:
        cur = self.con.execute(
            """
            SELECT id, user_id, kind, value, description, timestamp
            FROM operational_logs
            ORDER BY timestamp, id
            """
        )
        return self._parse_rows(cur.fetchall())

    def list_recent_for_user(self, user_id: str, limit: int = 5) -> list[OperationalLog]:
        cur = self.con.execute(
            """
            SELECT id, user_id, kind, value, description, timestamp
            FROM operational_logs
            WHERE user_id = ?
            ORDER BY timestamp DESC, id DESC
            LIMIT ?
            """,
            (user_id, limit),
        )
        return self._parse_rows(cur.fetchall())

    def add_log(self, log: OperationalLog) -> None:
        if log.kind not in LOG_KINDS:
            raise ValueError(f"Unknown log type: {log.kind}")
        with self.con:
            self.con.execute(
                """
                INSERT INTO operational_logs (id, user_id, kind, value, description, timestamp)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    log.id,
                    log.user_id,
                    log.kind,
                    float(log.value),
                    log.description,
                    _iso(log.timestamp),
                ),
            )

    def delete_log(self, log_id: str) -> None:
        with self.con:
            self.con.execute("DELETE FROM operational_logs WHERE id = ?", (log_id,))

    def _parse_rows(self, rows: list[sqlite3.Row]) -> list[OperationalLog]:
        parsed: list[OperationalLog] = []
        for row in rows:
            try:
                parsed.append(OperationalLog.from_row(dict(row)))
            except ValueError as exc:
                LOGGER.warning("Skipping log row: %s", exc)
        return parsed
