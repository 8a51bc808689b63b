import pytest
import streamlit as st

import auth


class FakeSessionState(dict):
    """Attribute-style dict standing in for st.session_state outside `streamlit run`."""

    def __getattr__(self, key):
        try:
            return self[key]
        except KeyError as e:
            raise AttributeError(key) from e

    def __setattr__(self, key, value):
        self[key] = value

    def __delattr__(self, key):
        del self[key]


@pytest.fixture(autouse=True)
def session_state(monkeypatch):
    state = FakeSessionState()
    monkeypatch.setattr(st, "session_state", state)
    return state


@pytest.fixture(autouse=True)
def no_secrets(monkeypatch):
    monkeypatch.setattr(auth, "get_secret", lambda key: None)


@pytest.fixture
def oauth_env(monkeypatch):
    monkeypatch.setenv("MS_CLIENT_ID", "client-123")
    monkeypatch.setenv("MS_CLIENT_SECRET", "client-secret")
    monkeypatch.setenv("SESSION_SECRET", "test-session-secret")
    monkeypatch.setenv("MS_REDIRECT_URI", "http://localhost:8501/")
    monkeypatch.delenv("MS_TENANT", raising=False)


@pytest.fixture
def sheet_values():
    return [
        ["Id", "Start time", "Completion time", "Email", "Name", "Name1", "Equipment", "Quantity"],
        [1, 44927.25, 44927.5, "a@x.com", "Anonymous", "Alice Smith", "Football", 2],
        [2, 44928.0, 44928.75, "b@x.com", "Anonymous", "Bob Jones", "Tennis Racket", 1],
        [3, 44929.1, 44929.1, "c@x.com", "Anonymous", "Carol Alice", "Basketball", 3],
    ]
