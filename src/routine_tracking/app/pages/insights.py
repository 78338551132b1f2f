from __future__ import annotations

import sqlite3

import streamlit as st

from routine_tracking.data.repositories import CompletionRepository, LogRepository
from routine_tracking.integrations.gemini_client import gemini_config_status, generate_action_plan
from routine_tracking.services.errors import NarrativeUnavailableError
from routine_tracking.services.insights import PROMPT_TEMPLATES, build_insight_counters, build_prompt

LANGUAGE_LABELS = {"pt": "Português", "en": "English", "es": "Español"}


def render(con: sqlite3.Connection) -> None:
    st.title("AI insights")
    st.caption("Generate an action plan from scrap, downtime and routine completion data.")

    status = gemini_config_status()
    if not status["configured"]:
        st.warning(f"AI service not configured. Missing: {', '.join(status['missing'])}")

    counters = build_insight_counters(
        LogRepository(con).list_logs(),
        CompletionRepository(con).list_completions(),
    )
    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Scrap", f"{counters.scrap_total:g}")
    k2.metric("Downtime", f"{counters.downtime_total:g}")
    k3.metric("Completed", counters.completed_count)
    k4.metric("Missed", counters.missed_count)

    language = st.selectbox(
        "Language",
        list(PROMPT_TEMPLATES),
        format_func=lambda code: LANGUAGE_LABELS.get(code, code),
    )
    prompt = build_prompt(counters, language)
    with st.expander("Prompt", expanded=False):
        st.code(prompt)

    if st.button("Generate action plan", disabled=not status["configured"]):
        with st.spinner("Generating..."):
            try:
                st.session_state["insights_plan"] = generate_action_plan(prompt)
            except NarrativeUnavailableError as exc:
                st.error(str(exc))

    plan = st.session_state.get("insights_plan")
    if plan:
        st.markdown(plan)
