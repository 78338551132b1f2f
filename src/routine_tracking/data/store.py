from __future__ import annotations

from dataclasses import dataclass
import sqlite3
from typing import Protocol

from routine_tracking.data.repositories import (
    CompletionRepository,
    LogRepository,
    TaskRepository,
    UserRepository,
)
from routine_tracking.domain.models import OperationalLog, Task, TaskCompletion, User


class RecordStore(Protocol):
    def list_users(self) -> list[User]: ...

    def list_tasks(self) -> list[Task]: ...

    def list_completions(self) -> list[TaskCompletion]: ...

    def list_logs(self) -> list[OperationalLog]: ...


@dataclass(frozen=True)
class StoreSnapshot:
    users: list[User]
    tasks: list[Task]
    completions: list[TaskCompletion]
    logs: list[OperationalLog]


class SqliteRecordStore:
    def __init__(self, con: sqlite3.Connection) -> None:
        self.users = UserRepository(con)
        self.tasks = TaskRepository(con)
        self.completions = CompletionRepository(con)
        self.logs = LogRepository(con)

    def list_users(self) -> list[User]:
        return self.users.list_users()

    def list_tasks(self) -> list[Task]:
        return self.tasks.list_tasks()

    def list_completions(self) -> list[TaskCompletion]:
        return self.completions.list_completions()

    def list_logs(self) -> list[OperationalLog]:
        return self.logs.list_logs()


def load_snapshot(store: RecordStore) -> StoreSnapshot:
    return StoreSnapshot(
        users=store.list_users(),
        tasks=store.list_tasks(),
        completions=store.list_completions(),
        logs=store.list_logs(),
    )
