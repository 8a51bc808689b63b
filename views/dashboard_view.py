import html

import pandas as pd
import requests
import streamlit as st
from streamlit_lottie import st_lottie

import ui
from use_cases import auth_flow, dashboard_flow
from use_cases.dashboard_flow import PAGE_SIZE_OPTIONS
from use_cases.session_models import is_token_expired
from views import export_view

EMPTY_ANIMATION_URL = "https://assets5.lottiefiles.com/packages/lf20_a1xjeug1.json"

NAME_FILTER_KEY = "filter_name"
EQUIPMENT_FILTER_KEY = "filter_equipment"
PAGE_SIZE_KEY = "entries_per_page"


@st.cache_data
def load_lottieurl(url: str):
    try:
        r = requests.get(url, timeout=5)
        if r.status_code == 200:
            return r.json()
    except requests.RequestException:
        return None
    return None


def _query_from_widgets(app_state):
    """Fold the current widget values into the dashboard query."""
    q = app_state.query
    return dashboard_flow.update_query(
        q,
        name_filter=st.session_state.get(NAME_FILTER_KEY, q.name_filter),
        equipment_filter=st.session_state.get(EQUIPMENT_FILTER_KEY, q.equipment_filter),
        page_size=st.session_state.get(PAGE_SIZE_KEY, q.page_size),
    )


def render_reauth_prompt(on_logout):
    st.markdown(
        "<h2 style='text-align: center;'>Your Microsoft token is expired. Please log in again.</h2>",
        unsafe_allow_html=True
    )
    _, col, _ = st.columns([2, 1, 2])
    if col.button("Logout", key="reauth_logout", use_container_width=True):
        on_logout()


def render_pagination(app_state):
    q = app_state.query
    total = app_state.result.total_matching
    pages = dashboard_flow.total_pages(total, q.page_size)

    c_prev, c_label, c_next = st.columns([1, 3, 1])
    if c_prev.button("Previous", disabled=q.page == 1, use_container_width=True):
        app_state.query = dashboard_flow.update_query(q, page=max(1, q.page - 1))
        st.rerun()
    c_label.markdown(
        f"<div class='pagination-label'>Page {q.page} of {pages} ({total} total records)</div>",
        unsafe_allow_html=True
    )
    if c_next.button("Next", disabled=q.page >= pages, use_container_width=True):
        app_state.query = dashboard_flow.update_query(q, page=q.page + 1)
        st.rerun()


def render_dashboard(session, app_state, on_logout, fetch_kwargs=None):
    if is_token_expired(session):
        render_reauth_prompt(on_logout)
        return

    app_state.query = _query_from_widgets(app_state)
    token = session.bearer_token
    if dashboard_flow.needs_fetch(app_state, token):
        with st.spinner("Loading Excel data..."):
            dashboard_flow.run_fetch(app_state, token, **(fetch_kwargs or {}))

    if app_state.needs_reauth:
        auth_flow.mark_token_expired()
        render_reauth_prompt(on_logout)
        return
    if app_state.error:
        st.markdown(
            f"<p style='padding: 20px; color: red;'>Error: {html.escape(app_state.error)}</p>",
            unsafe_allow_html=True
        )
        return

    c_title, c_logout = st.columns([5, 1])
    c_title.title(f"Welcome, {session.current_user.label}")
    if c_logout.button("Logout", key="logout_btn", type="secondary"):
        on_logout()

    q = app_state.query
    f1, f2, f3 = st.columns([2, 2, 1])
    f1.text_input("Filter by Name", value=q.name_filter, key=NAME_FILTER_KEY, placeholder="Filter by Name", label_visibility="collapsed")
    f2.text_input("Filter by Equipment", value=q.equipment_filter, key=EQUIPMENT_FILTER_KEY, placeholder="Filter by Equipment", label_visibility="collapsed")
    f3.selectbox(
        "Entries per page",
        PAGE_SIZE_OPTIONS,
        index=PAGE_SIZE_OPTIONS.index(q.page_size) if q.page_size in PAGE_SIZE_OPTIONS else 0,
        key=PAGE_SIZE_KEY,
        format_func=lambda n: f"{n} entries",
        label_visibility="collapsed",
    )

    result = app_state.result
    export_view.render_export_actions(result)

    if result.total_matching == 0:
        lottie_empty = load_lottieurl(EMPTY_ANIMATION_URL)
        if lottie_empty:
            st_lottie(lottie_empty, height=240, key="empty_data")
        st.info("No records match the current filters.")
    else:
        ui.render_aggrid(pd.DataFrame.from_records(result.records, columns=list(result.columns)))

    render_pagination(app_state)
