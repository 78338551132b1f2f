from __future__ import annotations

from routine_tracking.domain.constants import ROLE_ADMIN

PAGE_DASHBOARD = "Dashboard"
PAGE_ROUTINE = "My routine"
PAGE_LOGS = "Logs"
PAGE_INSIGHTS = "AI insights"
PAGE_ADMIN = "Administration"

# Sidebar order; the first visible page is the landing page.
PAGE_ORDER = [PAGE_DASHBOARD, PAGE_ROUTINE, PAGE_LOGS, PAGE_INSIGHTS, PAGE_ADMIN]
ADMIN_ONLY_PAGES = {PAGE_INSIGHTS, PAGE_ADMIN}


def visible_pages(role: str) -> list[str]:
    if role == ROLE_ADMIN:
        return list(PAGE_ORDER)
    return [page for page in PAGE_ORDER if page not in ADMIN_ONLY_PAGES]
