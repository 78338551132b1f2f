from __future__ import annotations

from datetime import datetime
import os
from pathlib import Path
import sqlite3

from routine_tracking.data.passwords import hash_password

SCHEMA_SQL = """
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS users (
  id TEXT PRIMARY KEY,
  username TEXT NOT NULL UNIQUE,
  email TEXT,
  password_hash TEXT,
  name TEXT NOT NULL,
  role TEXT NOT NULL DEFAULT 'OPERATOR',
  title TEXT NOT NULL DEFAULT '',
  shift TEXT NOT NULL DEFAULT '',
  department TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS tasks (
  id TEXT PRIMARY KEY,
  title TEXT NOT NULL,
  description TEXT NOT NULL DEFAULT '',
  frequency TEXT NOT NULL DEFAULT 'DAILY',
  kind TEXT NOT NULL DEFAULT 'CHECKLIST',
  due_time TEXT,
  unit TEXT,
  min_value REAL,
  max_value REAL,
  created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS task_assignments (
  task_id TEXT NOT NULL,
  user_id TEXT NOT NULL,
  PRIMARY KEY (task_id, user_id),
  FOREIGN KEY(task_id) REFERENCES tasks(id) ON DELETE CASCADE,
  FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS task_completions (
  id TEXT PRIMARY KEY,
  task_id TEXT NOT NULL,
  user_id TEXT NOT NULL,
  completed_at TEXT NOT NULL,
  status TEXT NOT NULL DEFAULT 'COMPLETED',
  measured_value REAL,
  notes TEXT
);

CREATE TABLE IF NOT EXISTS operational_logs (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL,
  kind TEXT NOT NULL,
  value REAL NOT NULL DEFAULT 0,
  description TEXT NOT NULL DEFAULT '',
  timestamp TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_task_completions_task_user_at
  ON task_completions (task_id, user_id, completed_at);

CREATE INDEX IF NOT EXISTS idx_operational_logs_timestamp
  ON operational_logs (timestamp);
"""

SCHEMA_VERSION = 1

DEMO_PASSWORD = "123"

DEMO_USERS = [
    ("1", "admin", "admin@empresa.com", "Carlos Gestor", "ADMIN", "Gerente Industrial", "Geral", "Gestão"),
    ("2", "tecnico", "tecnico@empresa.com", "João Silva", "OPERATOR", "Técnico de Processo", "Manhã", "Produção"),
    ("3", "mecanico", "mecanico@empresa.com", "Pedro Santos", "OPERATOR", "Mecânico Sr", "Tarde", "Manutenção"),
    ("4", "eletricista", "eletro@empresa.com", "Ana Costa", "OPERATOR", "Eletricista", "Noite", "Manutenção"),
]

DEMO_TASKS = [
    (
        "t1",
        "Verificar Pressão Hidráulica",
        "Conferir manômetros da linha 1. Deve estar entre 10 e 15 bar.",
        "DAILY",
        "MEASUREMENT",
        "08:00",
        "bar",
        10.0,
        15.0,
        ["2", "3"],
    ),
    (
        "t2",
        "Lubrificação de Eixos",
        "Aplicar graxa nos pontos vermelhos",
        "WEEKLY",
        "CHECKLIST",
        "10:00",
        None,
        None,
        None,
        ["3", "4"],
    ),
    (
        "t3",
        "Temperatura do Forno",
        "Registrar temperatura da zona 3",
        "HOURLY",
        "MEASUREMENT",
        None,
        "°C",
        180.0,
        220.0,
        ["2"],
    ),
]


def _parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def resolve_db_path() -> Path:
    data_dir = Path(os.getenv("ROUTINE_TRACKING_DATA_DIR", "./data"))
    return Path(os.getenv("ROUTINE_TRACKING_DB_PATH", data_dir / "routine.db"))


def connect(db_path: Path) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    con = sqlite3.connect(db_path.as_posix(), check_same_thread=False)
    con.row_factory = sqlite3.Row
    con.execute("PRAGMA foreign_keys=ON;")
    return con


def _get_user_version(con: sqlite3.Connection) -> int:
    row = con.execute("PRAGMA user_version;").fetchone()
    return int(row[0]) if row else 0


def _set_user_version(con: sqlite3.Connection, version: int) -> None:
    con.execute(f"PRAGMA user_version = {version};")


def _seed_demo_data(con: sqlite3.Connection) -> None:
    row = con.execute("SELECT COUNT(1) AS n FROM users").fetchone()
    if row and int(row["n"]) > 0:
        return
    demo_hash = hash_password(DEMO_PASSWORD)
    con.executemany(
        """
        INSERT INTO users (id, username, email, password_hash, name, role, title, shift, department)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            (user_id, username, email, demo_hash, name, role, title, shift, dept)
            for user_id, username, email, name, role, title, shift, dept in DEMO_USERS
        ],
    )
    created_at = datetime.now().isoformat(timespec="seconds")
    for task_id, title, description, frequency, kind, due_time, unit, min_v, max_v, assigned in DEMO_TASKS:
        con.execute(
            """
            INSERT INTO tasks (
              id, title, description, frequency, kind, due_time, unit, min_value, max_value, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (task_id, title, description, frequency, kind, due_time, unit, min_v, max_v, created_at),
        )
        con.executemany(
            "INSERT INTO task_assignments (task_id, user_id) VALUES (?, ?)",
            [(task_id, user_id) for user_id in assigned],
        )


def init_db(con: sqlite3.Connection, seed_demo: bool | None = None) -> None:
    con.executescript(SCHEMA_SQL)
    if _get_user_version(con) < SCHEMA_VERSION:
        _set_user_version(con, SCHEMA_VERSION)
    if seed_demo is None:
        seed_demo = _parse_bool(os.getenv("ROUTINE_TRACKING_SEED_DEMO"), default=True)
    if seed_demo:
        _seed_demo_data(con)
    con.commit()


def table_count(con: sqlite3.Connection, table: str) -> int:
    cur = con.execute(f"SELECT COUNT(1) AS n FROM {table}")
    return int(cur.fetchone()["n"])
