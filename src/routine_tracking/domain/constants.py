from __future__ import annotations

ROLE_ADMIN = "ADMIN"
ROLE_OPERATOR = "OPERATOR"
ROLES = (ROLE_ADMIN, ROLE_OPERATOR)

HOURLY = "HOURLY"
DAILY = "DAILY"
WEEKLY = "WEEKLY"
MONTHLY = "MONTHLY"
YEARLY = "YEARLY"
FREQUENCIES = (HOURLY, DAILY, WEEKLY, MONTHLY, YEARLY)

TASK_CHECKLIST = "CHECKLIST"
TASK_MEASUREMENT = "MEASUREMENT"
TASK_KINDS = (TASK_CHECKLIST, TASK_MEASUREMENT)

STATUS_COMPLETED = "COMPLETED"
STATUS_MISSED = "MISSED"
STATUS_LATE = "LATE"
COMPLETION_STATUSES = (STATUS_COMPLETED, STATUS_MISSED, STATUS_LATE)

LOG_PRODUCTION = "PRODUCTION"
LOG_SCRAP = "SCRAP"
LOG_DOWNTIME = "DOWNTIME"
LOG_OCCURRENCE = "OCCURRENCE"
LOG_KINDS = (LOG_PRODUCTION, LOG_SCRAP, LOG_DOWNTIME, LOG_OCCURRENCE)

RANGE_NORMAL = "NORMAL"
RANGE_LOW = "LOW"
RANGE_HIGH = "HIGH"

FILTER_ALL = "ALL"

FREQUENCY_LABELS = {
    HOURLY: "Hourly",
    DAILY: "Daily",
    WEEKLY: "Weekly",
    MONTHLY: "Monthly",
    YEARLY: "Yearly",
}

LOG_KIND_LABELS = {
    LOG_PRODUCTION: "Production",
    LOG_SCRAP: "Scrap",
    LOG_DOWNTIME: "Downtime",
    LOG_OCCURRENCE: "Occurrence",
}
