from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

import pandas as pd

from routine_tracking.domain.models import OperationalLog, User

LOG_EXPORT_COLUMNS = ["ID", "Date", "User", "Department", "Shift", "Type", "Value", "Description"]


def build_log_export_rows(
    logs: Iterable[OperationalLog],
    users: Iterable[User],
) -> list[dict[str, Any]]:
    """Newest first, with the author's name and team resolved."""
    users_by_id = {user.id: user for user in users}
    rows: list[dict[str, Any]] = []
    for log in sorted(logs, key=lambda item: item.timestamp, reverse=True):
        user = users_by_id.get(log.user_id)
        rows.append(
            {
                "ID": log.id,
                "Date": log.timestamp.isoformat(timespec="seconds"),
                "User": user.name if user else log.user_id,
                "Department": user.department if user else "",
                "Shift": user.shift if user else "",
                "Type": log.kind,
                "Value": log.value,
                "Description": log.description,
            }
        )
    return rows


def logs_to_csv(logs: Iterable[OperationalLog], users: Iterable[User]) -> str:
    df = pd.DataFrame(build_log_export_rows(logs, users), columns=LOG_EXPORT_COLUMNS)
    return df.to_csv(index=False)


def export_filename(today: datetime | None = None) -> str:
    stamp = (today or datetime.now()).date().isoformat()
    return f"routine_tracking_logs_{stamp}.csv"
