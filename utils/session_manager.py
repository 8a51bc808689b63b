import logging

import streamlit as st

import auth
from use_cases.session_models import SignInResult

log = logging.getLogger(__name__)

"""
SESSION STATE CONTRACT

This module owns the Streamlit session of one browser tab.

st.session_state keys:

tab_store: dict
    tab-scoped store; the Graph bearer token lives under "accessToken"
    default: {}
    owner: session_manager

identity_user: User | None
    the identity provider's record of the signed-in user
    default: None
    owner: session_manager

auth_listeners: list
    auth-state subscribers, see on_auth_state_changed()
    default: []
    owner: session_manager

session_booted: bool
    set once the reset-on-boot policy has run for this session
    default: False
    owner: bootstrap

gate_session: Session | None
    Session Gate state
    default: None
    owner: auth_flow

gate_unsubscribe: callable | None
    handle of the Session Gate's auth-state subscription
    default: None
    owner: auth_flow

app_state: DashboardState | None
    dashboard controller state
    default: None
    owner: dashboard_flow
"""

ACCESS_TOKEN_KEY = "accessToken"
RESET_SCOPES = ("all", "token")


def init_session_state():
    if 'tab_store' not in st.session_state:
        st.session_state.tab_store = {}
    if 'identity_user' not in st.session_state:
        st.session_state.identity_user = None
    if 'auth_listeners' not in st.session_state:
        st.session_state.auth_listeners = []
    if 'session_booted' not in st.session_state:
        st.session_state.session_booted = False
    if 'gate_session' not in st.session_state:
        st.session_state.gate_session = None
    if 'gate_unsubscribe' not in st.session_state:
        st.session_state.gate_unsubscribe = None
    if 'app_state' not in st.session_state:
        st.session_state.app_state = None


# --- TAB-SCOPED TOKEN STORE ---

def get_access_token():
    return st.session_state.tab_store.get(ACCESS_TOKEN_KEY)


def _persist_access_token(token):
    st.session_state.tab_store[ACCESS_TOKEN_KEY] = token


def _clear_access_token():
    st.session_state.tab_store.pop(ACCESS_TOKEN_KEY, None)


def reset_session_on_boot(scope="all"):
    """
    Reset-on-boot policy. Runs once per Streamlit session.

    scope="all" wipes the whole tab store, including values written by
    anything other than this app; scope="token" only drops the bearer token.
    """
    if scope not in RESET_SCOPES:
        raise ValueError(f"Unknown session reset scope: {scope!r}")
    if st.session_state.session_booted:
        return False

    if scope == "all":
        dropped = len(st.session_state.tab_store)
        st.session_state.tab_store.clear()
        log.info(f"Session boot: cleared tab store ({dropped} keys)")
    else:
        _clear_access_token()
        log.info("Session boot: cleared access token")
    st.session_state.session_booted = True
    return True


# --- AUTH STATE SUBSCRIPTION ---

def on_auth_state_changed(callback):
    """
    Register callback(user_or_none). It fires once right away with the current
    user and again on every change. Returns a function that unsubscribes.
    """
    listeners = st.session_state.auth_listeners
    listeners.append(callback)
    callback(st.session_state.identity_user)

    def unsubscribe():
        if callback in listeners:
            listeners.remove(callback)

    return unsubscribe


def _set_identity_user(user):
    st.session_state.identity_user = user
    for listener in list(st.session_state.auth_listeners):
        listener(user)


# --- SIGN IN / SIGN OUT ---

def begin_sign_in():
    """Authorize URL for the interactive Microsoft sign-in."""
    config = auth.load_oauth_config()
    return auth.build_authorize_url(config, auth.create_state())


def sign_in(code, state, error=None):
    """Complete the interactive flow from the redirect's query parameters."""
    if error:
        raise auth.AuthError(f"Microsoft sign-in was cancelled or denied: {error}")
    if not code:
        raise auth.AuthError("Microsoft sign-in returned no authorization code")
    if not auth.verify_state(state):
        raise auth.AuthError("Sign-in request expired or was tampered with. Please try again.")

    config = auth.load_oauth_config()
    token = auth.exchange_code_for_token(config, code)
    user = auth.fetch_user_profile(token)

    _persist_access_token(token)
    _set_identity_user(user)
    log.info(f"Signed in as {user.email or user.id}")
    return SignInResult(user=user, bearer_token=token)


def sign_out():
    try:
        _set_identity_user(None)
    except Exception:
        log.exception("Provider sign-out failed; clearing local session anyway")
        st.session_state.identity_user = None
    finally:
        _clear_access_token()
