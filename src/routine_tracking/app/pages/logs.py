from __future__ import annotations

import sqlite3

import streamlit as st

from routine_tracking.data.repositories import LogRepository
from routine_tracking.domain.constants import (
    LOG_DOWNTIME,
    LOG_KIND_LABELS,
    LOG_KINDS,
    LOG_SCRAP,
)
from routine_tracking.domain.models import User
from routine_tracking.services.oplogs import build_log

VALUE_LABELS = {
    LOG_DOWNTIME: "Time (min)",
    LOG_SCRAP: "Quantity",
}


def render(con: sqlite3.Connection, user: User) -> None:
    st.title("Operational logs")
    st.caption("Record production, scrap, downtime and shop-floor occurrences.")

    repo = LogRepository(con)

    kind = st.radio(
        "Type",
        list(LOG_KINDS),
        format_func=lambda value: LOG_KIND_LABELS.get(value, value),
        horizontal=True,
    )
    with st.form("log_form", clear_on_submit=True):
        raw_value = st.text_input(VALUE_LABELS.get(kind, "Value"), value="")
        description = st.text_area("Description", height=90)
        submitted = st.form_submit_button("Save")

    if submitted:
        try:
            repo.add_log(build_log(user.id, kind, raw_value, description))
            st.success("Log saved.")
        except (ValueError, sqlite3.Error) as exc:
            st.error(str(exc))

    st.subheader("My recent logs")
    recent = repo.list_recent_for_user(user.id, limit=5)
    if not recent:
        st.caption("No logs yet.")
        return

    for log in recent:
        c1, c2 = st.columns([6, 1])
        c1.markdown(
            f"**{LOG_KIND_LABELS.get(log.kind, log.kind)}** · {log.value:g} · "
            f"{log.timestamp:%Y-%m-%d %H:%M}  \n{log.description}"
        )
        if c2.button("Delete", key=f"delete_log_{log.id}"):
            repo.delete_log(log.id)
            st.rerun()
