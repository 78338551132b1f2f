from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import uuid4

from routine_tracking.domain.constants import LOG_KINDS
from routine_tracking.domain.models import OperationalLog
from routine_tracking.services.routine import parse_measurement


def build_log(
    user_id: str,
    kind: str,
    raw_value: Any,
    description: str,
    now: datetime | None = None,
) -> OperationalLog:
    if kind not in LOG_KINDS:
        raise ValueError(f"Unknown log type: {kind}")
    value = parse_measurement(raw_value)
    if value is None:
        raise ValueError("Log value must be a number.")
    if value < 0:
        raise ValueError("Log value cannot be negative.")
    clean_description = (description or "").strip()
    if not clean_description:
        raise ValueError("Description is required.")
    return OperationalLog(
        id=str(uuid4()),
        user_id=user_id,
        kind=kind,
        value=value,
        description=clean_description,
        timestamp=now or datetime.now(),
    )
