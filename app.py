import streamlit as st

from infrastructure.observability import setup_observability
setup_observability()

import auth
import ui
from infrastructure.storage.graph_workbook_storage import (
    DEFAULT_ITEM_ID, DEFAULT_SHARE_URL, DEFAULT_TIMEOUT, DEFAULT_WORKSHEET, GraphWorkbookStorage,
)
from services import data_loader
from use_cases import auth_flow, bootstrap
from use_cases.auth_flow import Route
from use_cases.dashboard_flow import DashboardState
from views import dashboard_view, login_view

# --- PAGE SETTINGS ---
st.set_page_config(page_title="Sports Equipment Manager", layout="wide")
ui.setup_style()

# --- STARTUP ORCHESTRATION ---
startup_result = bootstrap.run_startup(st.query_params.to_dict())
if "complete_sign_in" in startup_result.planned_steps or "sign_in_failed" in startup_result.planned_steps:
    # Drop code/state from the address bar once they have been consumed.
    for key in bootstrap.OAUTH_QUERY_KEYS:
        if key in st.query_params:
            del st.query_params[key]

# --- SESSION GATE ---
auth_result = auth_flow.ensure_authenticated_session()
if auth_result.reason == "loading":
    with st.spinner("Loading..."):
        ui.show_loading_overlay("Loading...")
    st.stop()

decision = auth_flow.resolve_route(st.query_params.get("route", Route.PUBLIC.value), auth_result.session)
if decision.redirect_to is not None:
    st.query_params["route"] = decision.redirect_to.value


def handle_logout():
    auth_flow.sign_out()
    st.query_params["route"] = Route.PUBLIC.value
    st.rerun()


def build_fetch_kwargs():
    storage = GraphWorkbookStorage(
        item_id=auth.get_setting("GRAPH_ITEM_ID", DEFAULT_ITEM_ID),
        share_url=auth.get_setting("GRAPH_SHARE_URL", DEFAULT_SHARE_URL),
        worksheet=auth.get_setting("GRAPH_WORKSHEET", DEFAULT_WORKSHEET),
        timeout=float(auth.get_setting("GRAPH_TIMEOUT_SECONDS", DEFAULT_TIMEOUT)),
    )
    return {
        "storage": storage,
        "date_format": auth.get_setting("DATE_DISPLAY_FORMAT", data_loader.DEFAULT_DATE_FORMAT),
    }


if decision.view is Route.DASHBOARD:
    if st.session_state.app_state is None:
        st.session_state.app_state = DashboardState()
    dashboard_view.render_dashboard(
        auth_result.session,
        st.session_state.app_state,
        on_logout=handle_logout,
        fetch_kwargs=build_fetch_kwargs(),
    )
else:
    login_view.render_auth_screen(startup_result.auth_error)
