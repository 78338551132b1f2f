from __future__ import annotations

from datetime import datetime
import sqlite3

import altair as alt
import pandas as pd
import streamlit as st

from routine_tracking.data.store import SqliteRecordStore, load_snapshot
from routine_tracking.domain.constants import FILTER_ALL
from routine_tracking.services.compliance import (
    ComplianceFilters,
    aggregate,
    filter_options,
    ranking_labels,
)


def _series_chart(summary) -> alt.Chart:
    series_df = pd.DataFrame(
        [
            {"Day": bucket.day.strftime("%d/%m"), "Production": bucket.production, "Scrap": bucket.scrap}
            for bucket in summary.daily_series
        ]
    )
    day_order = list(series_df["Day"])
    long_df = series_df.melt("Day", var_name="Type", value_name="Value")
    return (
        alt.Chart(long_df)
        .mark_area(opacity=0.45, line=True)
        .encode(
            x=alt.X("Day:N", sort=day_order, title=None),
            y=alt.Y("Value:Q", title=None, stack=None),
            color=alt.Color(
                "Type:N",
                scale=alt.Scale(domain=["Production", "Scrap"], range=["#3b82f6", "#ef4444"]),
                legend=alt.Legend(title=None),
            ),
            tooltip=[
                alt.Tooltip("Day:N", title="Day"),
                alt.Tooltip("Type:N", title="Type"),
                alt.Tooltip("Value:Q", title="Value"),
            ],
        )
        .properties(height=280)
    )


def _ranking_chart(summary) -> alt.Chart:
    labels = ranking_labels(summary.user_scores)
    top_id = summary.top_performer.user_id if summary.top_performer else None
    ranking_df = pd.DataFrame(
        [
            {
                "User": labels[row.user_id],
                "Name": row.name,
                "Score": row.score,
                "Top": row.user_id == top_id,
            }
            for row in summary.user_scores
        ]
    )
    order = list(ranking_df["User"])
    return (
        alt.Chart(ranking_df)
        .mark_bar()
        .encode(
            x=alt.X("Score:Q", scale=alt.Scale(domain=[0, 100]), title="%"),
            y=alt.Y("User:N", sort=order, title=None),
            color=alt.condition(alt.datum.Top, alt.value("#10b981"), alt.value("#cbd5e1")),
            tooltip=[alt.Tooltip("Name:N"), alt.Tooltip("Score:Q", title="Score %")],
        )
        .properties(height=280)
    )


def render(con: sqlite3.Connection) -> None:
    st.title("Dashboard")
    st.caption("Routine discipline and production overview for the current periods.")

    snapshot = load_snapshot(SqliteRecordStore(con))
    shifts, departments = filter_options(snapshot.users)

    f1, f2 = st.columns(2)
    selected_dept = f1.selectbox("Department", [FILTER_ALL] + departments, index=0)
    selected_shift = f2.selectbox("Shift", [FILTER_ALL] + shifts, index=0)

    summary = aggregate(
        snapshot.users,
        snapshot.tasks,
        snapshot.completions,
        snapshot.logs,
        filters=ComplianceFilters(shift=selected_shift, department=selected_dept),
        now=datetime.now(),
    )

    k1, k2, k3 = st.columns(3)
    top = summary.top_performer
    k1.metric("Top performer", top.name if top else "—", f"{top.score}%" if top else None)
    if top:
        k1.caption(f"{top.title} • {top.department}")
    k2.metric("Team compliance", f"{summary.overall_rate}%")
    k2.progress(summary.overall_rate / 100)
    k3.metric("Pending assignments", summary.pending_count)
    k3.caption("Task assignments not yet done in their current period (all teams).")

    c1, c2 = st.columns(2)
    with c1:
        st.subheader("Production vs scrap (7 days)")
        st.altair_chart(_series_chart(summary), use_container_width=True)
    with c2:
        st.subheader("Discipline ranking")
        if summary.user_scores:
            st.altair_chart(_ranking_chart(summary), use_container_width=True)
        else:
            st.info("No users match the selected filters.")

    if summary.user_scores:
        scores_df = pd.DataFrame(
            [
                {
                    "Name": row.name,
                    "Title": row.title,
                    "Shift": row.shift,
                    "Department": row.department,
                    "Done / assigned": f"{row.satisfied}/{row.assigned}",
                    "Score %": row.score,
                    "Completions (all time)": row.completed_total,
                }
                for row in summary.user_scores
            ]
        )
        scores_df.insert(0, "Rank", range(1, len(scores_df) + 1))
        st.dataframe(scores_df, use_container_width=True, hide_index=True)
