"""Session Gate: auth-state transitions and route guarding (application layer)."""

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional

from use_cases.session_models import Session, User
from utils import session_manager

AuthFlowStatus = Literal["CONTINUE", "STOP"]


class Route(str, Enum):
    PUBLIC = "/"
    DASHBOARD = "/dashboard"


@dataclass(frozen=True)
class RouteDecision:
    """Which view to mount; redirect_to is set when the requested path was not allowed."""

    view: Optional[Route]
    redirect_to: Optional[Route] = None


@dataclass(frozen=True)
class AuthFlowResult:
    """Result contract for auth flow orchestration."""

    status: AuthFlowStatus
    reason: str
    session: Session = Session()


# --- TRANSITIONS ---

def initial_session() -> Session:
    return Session(status="LOADING")


def on_auth_state(session: Session, user: Optional[User], stored_token: Optional[str]) -> Session:
    if user is None:
        return Session(status="ANONYMOUS")
    if not stored_token:
        # A provider session alone does not carry a usable Graph token.
        return Session(status="ANONYMOUS", current_user=user)
    return Session(status="AUTHENTICATED", current_user=user, bearer_token=stored_token)


def on_authorization_failure(session: Session) -> Session:
    if session.status != "AUTHENTICATED":
        return session
    return Session(status="TOKEN_EXPIRED", current_user=session.current_user)


def on_sign_out(session: Session) -> Session:
    return Session(status="ANONYMOUS")


# --- ROUTING ---

def resolve_route(path: Optional[str], session: Session) -> RouteDecision:
    if session.status == "LOADING":
        return RouteDecision(view=None)

    try:
        requested = Route(path or Route.PUBLIC.value)
    except ValueError:
        requested = None

    if requested is Route.DASHBOARD:
        if session.status in ("AUTHENTICATED", "TOKEN_EXPIRED"):
            return RouteDecision(view=Route.DASHBOARD)
        return RouteDecision(view=Route.PUBLIC, redirect_to=Route.PUBLIC)

    if requested is Route.PUBLIC:
        if session.status == "AUTHENTICATED":
            return RouteDecision(view=Route.DASHBOARD, redirect_to=Route.DASHBOARD)
        return RouteDecision(view=Route.PUBLIC)

    return RouteDecision(view=Route.PUBLIC, redirect_to=Route.PUBLIC)


# --- ORCHESTRATION ---

def _handle_auth_state(user):
    current = session_manager.st.session_state.gate_session or initial_session()
    session_manager.st.session_state.gate_session = on_auth_state(
        current, user, session_manager.get_access_token()
    )


def ensure_authenticated_session() -> AuthFlowResult:
    """Subscribe once per session and report the gate's current state."""
    session_manager.init_session_state()
    state = session_manager.st.session_state

    if state.gate_unsubscribe is None:
        state.gate_session = initial_session()
        state.gate_unsubscribe = session_manager.on_auth_state_changed(_handle_auth_state)

    session = state.gate_session or initial_session()
    if session.status == "LOADING":
        return AuthFlowResult(status="STOP", reason="loading", session=session)
    if session.status == "AUTHENTICATED":
        return AuthFlowResult(status="CONTINUE", reason="authenticated", session=session)
    if session.status == "TOKEN_EXPIRED":
        return AuthFlowResult(status="CONTINUE", reason="token_expired", session=session)
    return AuthFlowResult(status="STOP", reason="auth_required", session=session)


def mark_token_expired() -> Session:
    state = session_manager.st.session_state
    state.gate_session = on_authorization_failure(state.gate_session or initial_session())
    return state.gate_session


def sign_out() -> Session:
    session_manager.sign_out()
    state = session_manager.st.session_state
    state.gate_session = on_sign_out(state.gate_session or initial_session())
    state.app_state = None
    return state.gate_session
