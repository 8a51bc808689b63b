from unittest.mock import patch

import streamlit as st

import auth
from use_cases import bootstrap
from use_cases.session_models import SignInResult, User

ALICE = User(id="u-1", display_name="Alice", email="alice@example.com")


@patch("use_cases.bootstrap.apply_platform_locale")
def test_run_startup_resets_tab_store_on_first_run(mock_locale):
    st.session_state.tab_store = {"accessToken": "left-over", "other": 1}

    result = bootstrap.run_startup({})

    assert result.status == "CONTINUE"
    assert result.planned_steps == ("init_session_state", "reset_session_on_boot_all")
    assert st.session_state.tab_store == {}
    mock_locale.assert_called_once()


@patch("use_cases.bootstrap.apply_platform_locale")
def test_run_startup_reset_happens_once_per_session(_mock_locale):
    bootstrap.run_startup({})
    st.session_state.tab_store["accessToken"] = "fresh"

    result = bootstrap.run_startup({})

    assert result.planned_steps == ("init_session_state",)
    assert st.session_state.tab_store == {"accessToken": "fresh"}


@patch("use_cases.bootstrap.apply_platform_locale")
def test_run_startup_honours_token_reset_scope(_mock_locale, monkeypatch):
    monkeypatch.setenv("SESSION_RESET_SCOPE", "token")
    st.session_state.tab_store = {"accessToken": "left-over", "other": 1}

    result = bootstrap.run_startup({})

    assert "reset_session_on_boot_token" in result.planned_steps
    assert st.session_state.tab_store == {"other": 1}


@patch("use_cases.bootstrap.apply_platform_locale")
@patch("use_cases.bootstrap.session_manager.sign_in")
def test_run_startup_completes_oauth_redirect_after_reset(mock_sign_in, _mock_locale):
    order = []
    mock_sign_in.side_effect = lambda *a, **kw: order.append("sign_in") or SignInResult(ALICE, "tok")
    with patch(
        "use_cases.bootstrap.session_manager.reset_session_on_boot",
        side_effect=lambda scope: order.append("reset") or True,
    ):
        result = bootstrap.run_startup({"code": "abc", "state": "signed"})

    assert order == ["reset", "sign_in"]
    assert "complete_sign_in" in result.planned_steps
    assert result.auth_error is None
    mock_sign_in.assert_called_once_with("abc", "signed", error=None)


@patch("use_cases.bootstrap.apply_platform_locale")
@patch("use_cases.bootstrap.session_manager.sign_in", side_effect=auth.AuthError("Microsoft sign-in was cancelled or denied: access_denied"))
def test_run_startup_reports_sign_in_failure(mock_sign_in, _mock_locale):
    result = bootstrap.run_startup({"error": "access_denied"})

    assert result.status == "CONTINUE"
    assert "sign_in_failed" in result.planned_steps
    assert "cancelled or denied" in result.auth_error
    mock_sign_in.assert_called_once_with(None, None, error="access_denied")


@patch("use_cases.bootstrap.apply_platform_locale")
@patch("use_cases.bootstrap.session_manager.sign_in")
def test_run_startup_without_oauth_params_does_not_sign_in(mock_sign_in, _mock_locale):
    bootstrap.run_startup({"route": "/dashboard"})
    mock_sign_in.assert_not_called()
