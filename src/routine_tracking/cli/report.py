from __future__ import annotations

import argparse
from datetime import datetime
import logging
from typing import Any

from routine_tracking.data.db import connect, init_db, resolve_db_path
from routine_tracking.data.store import SqliteRecordStore, StoreSnapshot, load_snapshot
from routine_tracking.domain.constants import FILTER_ALL
from routine_tracking.services.compliance import ComplianceFilters, aggregate
from routine_tracking.services.completion import is_satisfied
from routine_tracking.services.overdue import is_overdue

LOGGER = logging.getLogger(__name__)


def _parse_now(value: str | None) -> datetime:
    if not value:
        return datetime.now()
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValueError("Invalid --now value (expected YYYY-MM-DDTHH:MM).") from exc


def _get_db_connection() -> Any:
    con = connect(resolve_db_path())
    init_db(con)
    return con


def _run_compliance(snapshot: StoreSnapshot, filters: ComplianceFilters, now: datetime) -> dict[str, int]:
    summary = aggregate(
        snapshot.users,
        snapshot.tasks,
        snapshot.completions,
        snapshot.logs,
        filters=filters,
        now=now,
    )
    print(f"{'Rank':<5} {'User':<24} {'Shift':<10} {'Department':<14} {'Done':>9} {'Score':>6}")
    for rank, row in enumerate(summary.user_scores, start=1):
        print(
            f"{rank:<5} {row.name:<24} {row.shift:<10} {row.department:<14} "
            f"{row.satisfied:>4}/{row.assigned:<4} {row.score:>5}%"
        )
    if summary.top_performer:
        print(f"Top performer: {summary.top_performer.name} ({summary.top_performer.score}%)")
    return {
        "users": len(summary.user_scores),
        "overall_rate": summary.overall_rate,
        "pending": summary.pending_count,
    }


def _run_overdue(snapshot: StoreSnapshot, now: datetime) -> dict[str, int]:
    users_by_id = {user.id: user for user in snapshot.users}
    counts = {"overdue": 0, "pending": 0, "satisfied": 0}
    for task in snapshot.tasks:
        for user_id in task.assigned_user_ids:
            satisfied = is_satisfied(task, user_id, snapshot.completions, now)
            if satisfied:
                counts["satisfied"] += 1
                continue
            if is_overdue(task, satisfied, now):
                counts["overdue"] += 1
                user = users_by_id.get(user_id)
                print(f"- {task.title} | {user.name if user else user_id} | due {task.due_time}")
            else:
                counts["pending"] += 1
    return counts


def _run_series(snapshot: StoreSnapshot, now: datetime) -> dict[str, float]:
    summary = aggregate(snapshot.users, snapshot.tasks, snapshot.completions, snapshot.logs, now=now)
    for bucket in summary.daily_series:
        print(f"{bucket.day.isoformat()}  production={bucket.production:g}  scrap={bucket.scrap:g}")
    return {
        "production": sum(bucket.production for bucket in summary.daily_series),
        "scrap": sum(bucket.scrap for bucket in summary.daily_series),
    }


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    parser = argparse.ArgumentParser(description="Routine compliance reports.")
    parser.add_argument("mode", choices=["compliance", "overdue", "series"], help="Report type.")
    parser.add_argument("--now", help="Override current time (YYYY-MM-DDTHH:MM).")
    parser.add_argument("--shift", default=FILTER_ALL, help="Restrict scores to one shift.")
    parser.add_argument("--department", default=FILTER_ALL, help="Restrict scores to one department.")
    args = parser.parse_args(argv)

    now = _parse_now(args.now)
    con = _get_db_connection()
    snapshot = load_snapshot(SqliteRecordStore(con))

    if args.mode == "compliance":
        filters = ComplianceFilters(shift=args.shift, department=args.department)
        counts = _run_compliance(snapshot, filters, now)
    elif args.mode == "overdue":
        counts = _run_overdue(snapshot, now)
    else:
        counts = _run_series(snapshot, now)

    LOGGER.info("Summary: %s", counts)


if __name__ == "__main__":
    main()
