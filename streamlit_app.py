from __future__ import annotations

import os
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import streamlit as st

import routine_tracking
from routine_tracking.data.db import connect, init_db, resolve_db_path
from routine_tracking.data.repositories import UserRepository
from routine_tracking.app.navigation import (
    PAGE_ADMIN,
    PAGE_DASHBOARD,
    PAGE_INSIGHTS,
    PAGE_LOGS,
    PAGE_ROUTINE,
    visible_pages,
)
from routine_tracking.app.pages import (
    admin,
    dashboard,
    insights,
    logs,
    routine,
)

st.set_page_config(page_title="Routine Tracking", layout="wide")

# --- DB init (once per app start) ---
con = connect(resolve_db_path())
init_db(con)
user_repo = UserRepository(con)


def _render_login() -> None:
    st.title("Routine Tracking")
    st.caption("Sign in with your username or email.")
    with st.form("login"):
        identifier = st.text_input("User")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in")
    if submitted:
        user = user_repo.authenticate(identifier, password)
        if user:
            st.session_state["user_id"] = user.id
            st.rerun()
        else:
            st.error("Invalid credentials.")


current_user = None
if st.session_state.get("user_id"):
    current_user = user_repo.get_user(st.session_state["user_id"])
    if current_user is None:
        st.session_state.pop("user_id", None)

if current_user is None:
    _render_login()
    st.stop()

# --- Sidebar navigation ---
st.sidebar.title("Routine Tracking")
st.sidebar.caption(f"{current_user.name} · {current_user.title}")
if st.sidebar.button("Sign out"):
    st.session_state.pop("user_id", None)
    st.rerun()

build_number = (
    os.getenv("APP_BUILD")
    or os.getenv("BUILD_NUMBER")
    or routine_tracking.__version__
)
st.sidebar.markdown(
    f"""
    <style>
    [data-testid="stSidebar"] .build-info {{
        position: fixed;
        bottom: 0.5rem;
        left: 1rem;
        color: #6c757d;
        font-size: 0.75rem;
    }}
    </style>
    <div class="build-info">Build: {build_number}</div>
    """,
    unsafe_allow_html=True,
)

PAGE_RENDERERS = {
    PAGE_DASHBOARD: lambda: dashboard.render(con),
    PAGE_ROUTINE: lambda: routine.render(con, current_user),
    PAGE_LOGS: lambda: logs.render(con, current_user),
    PAGE_INSIGHTS: lambda: insights.render(con),
    PAGE_ADMIN: lambda: admin.render(con),
}
PAGES = {label: PAGE_RENDERERS[label] for label in visible_pages(current_user.role)}

page_param = st.query_params.get("page")

nav_target = st.session_state.pop("nav_to_page", None)
if nav_target:
    st.session_state["sidebar_page_default"] = nav_target
elif page_param in PAGES:
    st.session_state["sidebar_page_default"] = page_param

page_labels = list(PAGES.keys())
default_index = 0
current_page = st.session_state.get("sidebar_page_default")
if current_page in page_labels:
    default_index = page_labels.index(current_page)

selected = st.sidebar.radio("Pages", page_labels, index=default_index, key="sidebar_page")
st.session_state.pop("sidebar_page_default", None)

# --- Render selected page ---
PAGES[selected]()
