from unittest.mock import patch, MagicMock

import pytest
import streamlit as st

import auth
from use_cases.session_models import SignInResult, User
from utils import session_manager

ALICE = User(id="u-1", display_name="Alice", email="alice@example.com")


@pytest.fixture
def ready_state():
    session_manager.init_session_state()
    return st.session_state


def test_init_session_state():
    session_manager.init_session_state()
    assert st.session_state.tab_store == {}
    assert st.session_state.identity_user is None
    assert st.session_state.auth_listeners == []
    assert st.session_state.session_booted is False
    assert st.session_state.app_state is None


def test_reset_on_boot_clears_whole_tab_store_once(ready_state):
    ready_state.tab_store.update({"accessToken": "stale", "hostData": "x"})

    assert session_manager.reset_session_on_boot("all") is True
    assert ready_state.tab_store == {}

    # Later reruns in the same session keep the token.
    ready_state.tab_store["accessToken"] = "fresh"
    assert session_manager.reset_session_on_boot("all") is False
    assert session_manager.get_access_token() == "fresh"


def test_reset_on_boot_token_scope_keeps_other_keys(ready_state):
    ready_state.tab_store.update({"accessToken": "stale", "hostData": "x"})
    session_manager.reset_session_on_boot("token")
    assert ready_state.tab_store == {"hostData": "x"}


def test_reset_on_boot_rejects_unknown_scope(ready_state):
    with pytest.raises(ValueError):
        session_manager.reset_session_on_boot("everything")


def test_on_auth_state_changed_fires_immediately_and_on_change(ready_state):
    seen = []
    unsubscribe = session_manager.on_auth_state_changed(seen.append)
    assert seen == [None]

    session_manager._set_identity_user(ALICE)
    assert seen == [None, ALICE]

    unsubscribe()
    session_manager._set_identity_user(None)
    assert seen == [None, ALICE]


@patch("auth.fetch_user_profile", return_value=ALICE)
@patch("auth.exchange_code_for_token", return_value="graph-token")
@patch("auth.verify_state", return_value=True)
def test_sign_in_persists_token_and_notifies(_verify, mock_exchange, _profile, ready_state, oauth_env):
    seen = []
    session_manager.on_auth_state_changed(seen.append)

    result = session_manager.sign_in("auth-code", "signed-state")

    assert result == SignInResult(user=ALICE, bearer_token="graph-token")
    assert ready_state.tab_store["accessToken"] == "graph-token"
    assert ready_state.identity_user == ALICE
    assert seen == [None, ALICE]
    assert mock_exchange.call_args.args[1] == "auth-code"


def test_sign_in_cancelled_raises_auth_error(ready_state):
    with pytest.raises(auth.AuthError) as excinfo:
        session_manager.sign_in(None, None, error="access_denied")
    assert "cancelled or denied" in str(excinfo.value)
    assert session_manager.get_access_token() is None


@patch("auth.verify_state", return_value=False)
def test_sign_in_rejects_bad_state(_verify, ready_state):
    with pytest.raises(auth.AuthError):
        session_manager.sign_in("code", "forged")
    assert ready_state.identity_user is None


@patch("auth.exchange_code_for_token", side_effect=auth.AuthError("No Microsoft access token"))
@patch("auth.verify_state", return_value=True)
def test_sign_in_without_token_leaves_session_anonymous(_verify, _exchange, ready_state, oauth_env):
    with pytest.raises(auth.AuthError):
        session_manager.sign_in("code", "state")
    assert session_manager.get_access_token() is None
    assert ready_state.identity_user is None


def test_sign_out_clears_token_and_user(ready_state):
    ready_state.tab_store["accessToken"] = "graph-token"
    ready_state.identity_user = ALICE
    seen = []
    session_manager.on_auth_state_changed(seen.append)

    session_manager.sign_out()

    assert session_manager.get_access_token() is None
    assert ready_state.identity_user is None
    assert seen == [ALICE, None]


def test_sign_out_swallows_provider_errors(ready_state):
    ready_state.tab_store["accessToken"] = "graph-token"
    ready_state.identity_user = ALICE
    failing = MagicMock(side_effect=[None, RuntimeError("listener blew up")])
    session_manager.on_auth_state_changed(failing)

    session_manager.sign_out()

    assert session_manager.get_access_token() is None
    assert ready_state.identity_user is None


@patch("auth.create_state", return_value="signed-state")
def test_begin_sign_in_returns_authorize_url(_state, ready_state, oauth_env):
    url = session_manager.begin_sign_in()
    assert url.startswith("https://login.microsoftonline.com/common/oauth2/v2.0/authorize?")
    assert "state=signed-state" in url
