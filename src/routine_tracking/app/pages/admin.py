from __future__ import annotations

from collections import defaultdict
import sqlite3

import pandas as pd
import streamlit as st

from routine_tracking.data.repositories import LogRepository, TaskRepository, UserRepository
from routine_tracking.domain.constants import (
    DAILY,
    FILTER_ALL,
    FREQUENCIES,
    FREQUENCY_LABELS,
    ROLE_ADMIN,
    ROLES,
    TASK_CHECKLIST,
    TASK_KINDS,
    TASK_MEASUREMENT,
)
from routine_tracking.domain.models import Task, User
from routine_tracking.services.exports import build_log_export_rows, export_filename, logs_to_csv
from routine_tracking.services.ranges import format_range
from routine_tracking.services.routine import parse_measurement


def _assignee_options(users: list[User]) -> list[str]:
    """Operator ids grouped by department, as shown in the assignment picker."""
    grouped: dict[str, list[User]] = defaultdict(list)
    for user in users:
        if user.role == ROLE_ADMIN:
            continue
        grouped[user.department or "General"].append(user)
    return [user.id for dept in sorted(grouped) for user in grouped[dept]]


def _parse_bound(text: str, label: str) -> float | None:
    if not text.strip():
        return None
    value = parse_measurement(text)
    if value is None:
        raise ValueError(f"{label} must be a number.")
    return value


def _render_tasks(task_repo: TaskRepository, users: list[User]) -> None:
    users_by_id = {user.id: user for user in users}
    tasks = task_repo.list_tasks()

    st.subheader("Tasks")
    if tasks:
        tasks_df = pd.DataFrame(
            [
                {
                    "Title": task.title,
                    "Frequency": FREQUENCY_LABELS.get(task.frequency, task.frequency),
                    "Type": task.kind,
                    "Due": task.due_time or "—",
                    "Range": format_range(task) or "—",
                    "Assigned": ", ".join(
                        users_by_id[uid].name if uid in users_by_id else uid
                        for uid in task.assigned_user_ids
                    ),
                }
                for task in tasks
            ]
        )
        st.dataframe(tasks_df, use_container_width=True, hide_index=True)
    else:
        st.info("No tasks defined.")

    st.subheader("New task")
    kind = st.radio("Task type", list(TASK_KINDS), horizontal=True, index=TASK_KINDS.index(TASK_CHECKLIST))
    with st.form("new_task", clear_on_submit=True):
        title = st.text_input("Title")
        description = st.text_area("Description", height=80)
        frequency = st.selectbox(
            "Frequency",
            list(FREQUENCIES),
            index=FREQUENCIES.index(DAILY),
            format_func=lambda value: FREQUENCY_LABELS.get(value, value),
        )
        due_time = st.text_input("Due time (HH:MM, optional)")
        unit = None
        min_text = ""
        max_text = ""
        if kind == TASK_MEASUREMENT:
            c1, c2, c3 = st.columns(3)
            unit = c1.text_input("Unit")
            min_text = c2.text_input("Min (optional)")
            max_text = c3.text_input("Max (optional)")
        assigned = st.multiselect(
            "Assigned to",
            _assignee_options(users),
            format_func=lambda uid: f"{users_by_id[uid].name} ({users_by_id[uid].department or 'General'})",
        )
        submitted = st.form_submit_button("Create task")
    if submitted:
        try:
            task_repo.save_task(
                Task(
                    id="",
                    title=title,
                    description=description,
                    frequency=frequency,
                    kind=kind,
                    assigned_user_ids=tuple(assigned),
                    due_time=due_time.strip() or None,
                    unit=(unit or "").strip() or None,
                    min_value=_parse_bound(min_text, "Min"),
                    max_value=_parse_bound(max_text, "Max"),
                )
            )
            st.success("Task created.")
            st.rerun()
        except (ValueError, sqlite3.Error) as exc:
            st.error(str(exc))

    if tasks:
        st.subheader("Delete task")
        tasks_by_id = {task.id: task for task in tasks}
        selected = st.selectbox("Task", list(tasks_by_id), format_func=lambda tid: tasks_by_id[tid].title)
        confirm = st.checkbox("I confirm deleting this task")
        if st.button("Delete task", disabled=not confirm):
            task_repo.delete_task(selected)
            st.success("Task deleted.")
            st.rerun()


def _render_users(user_repo: UserRepository, users: list[User]) -> None:
    st.subheader("Users")
    users_df = pd.DataFrame(
        [
            {
                "Name": user.name,
                "Username": user.username,
                "Email": user.email,
                "Role": user.role,
                "Title": user.title,
                "Shift": user.shift,
                "Department": user.department,
            }
            for user in users
        ]
    )
    st.dataframe(users_df, use_container_width=True, hide_index=True)

    st.subheader("New user")
    with st.form("new_user", clear_on_submit=True):
        c1, c2 = st.columns(2)
        name = c1.text_input("Name")
        username = c2.text_input("Username")
        email = c1.text_input("Email")
        password = c2.text_input("Password", type="password")
        title = c1.text_input("Title")
        role = c2.selectbox("Role", list(ROLES), index=ROLES.index("OPERATOR"))
        shift = c1.text_input("Shift")
        department = c2.text_input("Department")
        submitted = st.form_submit_button("Create user")
    if submitted:
        if not password:
            st.error("Password is required.")
        else:
            try:
                user_repo.save_user(
                    {
                        "name": name,
                        "username": username,
                        "email": email,
                        "title": title,
                        "role": role,
                        "shift": shift,
                        "department": department,
                    },
                    password=password,
                )
                st.success("User created.")
                st.rerun()
            except (ValueError, sqlite3.Error) as exc:
                st.error(str(exc))

    removable = [user for user in users if user.role != ROLE_ADMIN]
    if removable:
        st.subheader("Delete user")
        by_id = {user.id: user for user in removable}
        selected = st.selectbox("User", list(by_id), format_func=lambda uid: by_id[uid].name)
        confirm = st.checkbox("I confirm deleting this user")
        if st.button("Delete user", disabled=not confirm):
            user_repo.delete_user(selected)
            st.success("User deleted.")
            st.rerun()


def _render_reports(log_repo: LogRepository, users: list[User]) -> None:
    st.subheader("Operational log report")
    logs = log_repo.list_logs()
    rows = build_log_export_rows(logs, users)
    if not rows:
        st.info("No logs recorded.")
        return

    logs_df = pd.DataFrame(rows)
    departments = sorted({row["Department"] for row in rows if row["Department"]})
    selected_dept = st.selectbox("Department", [FILTER_ALL] + departments)
    if selected_dept != FILTER_ALL:
        logs_df = logs_df[logs_df["Department"] == selected_dept]
    st.dataframe(logs_df.drop(columns=["ID"]), use_container_width=True, hide_index=True)

    st.download_button(
        "Export CSV",
        data=logs_to_csv(logs, users),
        file_name=export_filename(),
        mime="text/csv",
    )


def render(con: sqlite3.Connection) -> None:
    st.title("Administration")

    user_repo = UserRepository(con)
    task_repo = TaskRepository(con)
    log_repo = LogRepository(con)
    users = user_repo.list_users()

    tab_tasks, tab_users, tab_reports = st.tabs(["Tasks", "Users", "Reports"])
    with tab_tasks:
        _render_tasks(task_repo, users)
    with tab_users:
        _render_users(user_repo, users)
    with tab_reports:
        _render_reports(log_repo, users)
