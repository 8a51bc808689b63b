"""Application layer contracts for orchestrating high-level flows."""

from .auth_flow import AuthFlowResult, AuthFlowStatus, Route, RouteDecision, ensure_authenticated_session, resolve_route
from .bootstrap import StartupResult, StartupStatus, run_startup
from .dashboard_flow import PAGE_SIZE_OPTIONS, DashboardState, FetchSequencer, run_fetch, total_pages, update_query
from .domain_models import Query, ResultPage
from .session_models import Session, SessionStatus, SignInResult, User, is_authenticated, is_token_expired

__all__ = [
    "AuthFlowResult",
    "AuthFlowStatus",
    "DashboardState",
    "FetchSequencer",
    "PAGE_SIZE_OPTIONS",
    "Query",
    "ResultPage",
    "Route",
    "RouteDecision",
    "Session",
    "SessionStatus",
    "SignInResult",
    "StartupResult",
    "StartupStatus",
    "User",
    "ensure_authenticated_session",
    "is_authenticated",
    "is_token_expired",
    "resolve_route",
    "run_fetch",
    "run_startup",
    "total_pages",
    "update_query",
]
