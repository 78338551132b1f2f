from __future__ import annotations

from datetime import datetime
import sqlite3

import streamlit as st

from routine_tracking.data.repositories import CompletionRepository, TaskRepository
from routine_tracking.domain.constants import FREQUENCY_LABELS, RANGE_NORMAL
from routine_tracking.domain.models import User
from routine_tracking.services.errors import InvalidMeasurementError
from routine_tracking.services.ranges import format_range
from routine_tracking.services.routine import (
    RoutineItem,
    build_completion,
    build_work_list,
    work_list_progress,
)


def _format_measured(item: RoutineItem) -> str:
    completion = item.completion
    if completion is None or completion.measured_value is None:
        return ""
    label = f"{completion.measured_value:g} {item.task.unit or ''}".strip()
    if item.range_status and item.range_status != RANGE_NORMAL:
        label += f" (out of range: {item.range_status.lower()})"
    return label


def _render_item(item: RoutineItem, user: User, completion_repo: CompletionRepository) -> None:
    task = item.task
    badges = [FREQUENCY_LABELS.get(task.frequency, task.frequency)]
    if task.is_measurement:
        badges.append(task.unit or "Data")
    if task.due_time:
        badges.append(f"until {task.due_time}")

    with st.container(border=True):
        header = f"**{task.title}**"
        if item.overdue:
            header = f":red[{header} (overdue)]"
        elif item.satisfied:
            header = f":green[{header}]"
        st.markdown(header)
        st.caption(" • ".join(badges))
        if task.description:
            st.write(task.description)
        range_label = format_range(task)
        if range_label:
            st.caption(f"Range: {range_label}")

        if item.satisfied:
            measured = _format_measured(item)
            done_at = item.completion.completed_at.strftime("%H:%M")
            message = f"Done at {done_at}" + (f" | {measured}" if measured else "")
            if item.range_status and item.range_status != RANGE_NORMAL:
                st.warning(message)
            else:
                st.success(message)
            if item.completion.notes:
                st.caption(f'"{item.completion.notes}"')
            st.caption(f"Next period starts {item.period_end:%Y-%m-%d %H:%M}.")
            return

        with st.form(f"complete_{task.id}"):
            raw_value = None
            if task.is_measurement:
                raw_value = st.text_input(f"Value ({task.unit or ''})", key=f"value_{task.id}")
            notes = st.text_input("Note (optional)", key=f"note_{task.id}")
            submitted = st.form_submit_button("Complete")
        if submitted:
            try:
                completion = build_completion(task, user.id, raw_value, notes)
                completion_repo.add_completion(completion)
                st.rerun()
            except InvalidMeasurementError:
                st.error("Please enter a valid number.")
            except sqlite3.Error as exc:
                st.error(str(exc))


def render(con: sqlite3.Connection, user: User) -> None:
    st.title("My routine")
    now = datetime.now()

    task_repo = TaskRepository(con)
    completion_repo = CompletionRepository(con)

    items = build_work_list(
        task_repo.list_tasks(),
        user.id,
        completion_repo.list_for_user(user.id),
        now,
    )
    done, total = work_list_progress(items)
    st.caption(f"Tasks for {now:%Y-%m-%d} • completed {done}/{total}")

    if not items:
        st.info("No tasks assigned to you.")
        return

    for item in items:
        _render_item(item, user, completion_repo)
