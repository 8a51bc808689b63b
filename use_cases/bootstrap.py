"""Startup orchestration: session reset policy and OAuth redirect handling."""

import locale
import logging
from dataclasses import dataclass
from typing import Literal, Mapping, Optional, Tuple

import auth
from utils import session_manager

log = logging.getLogger(__name__)

StartupStatus = Literal["CONTINUE", "STOP"]

OAUTH_QUERY_KEYS = ("code", "state", "error", "error_description", "session_state")


@dataclass(frozen=True)
class StartupResult:
    """Result contract for startup/bootstrap orchestration."""

    status: StartupStatus
    planned_steps: Tuple[str, ...]
    auth_error: Optional[str] = None


def apply_platform_locale() -> None:
    try:
        locale.setlocale(locale.LC_TIME, "")
    except locale.Error as e:
        log.warning(f"Platform locale unavailable, keeping default date formatting: {e}")


def run_startup(query_params: Optional[Mapping[str, str]] = None) -> StartupResult:
    """Run startup side-effects: state init, reset-on-boot, OAuth redirect completion."""
    executed_steps = []
    query_params = query_params or {}

    session_manager.init_session_state()
    executed_steps.append("init_session_state")

    scope = auth.get_setting("SESSION_RESET_SCOPE", "all")
    if session_manager.reset_session_on_boot(scope):
        apply_platform_locale()
        executed_steps.append(f"reset_session_on_boot_{scope}")

    auth_error = None
    if "code" in query_params or "error" in query_params:
        try:
            session_manager.sign_in(
                query_params.get("code"),
                query_params.get("state"),
                error=query_params.get("error_description") or query_params.get("error"),
            )
            executed_steps.append("complete_sign_in")
        except auth.AuthError as e:
            log.error(f"Login failed: {e}")
            auth_error = str(e)
            executed_steps.append("sign_in_failed")

    return StartupResult(status="CONTINUE", planned_steps=tuple(executed_steps), auth_error=auth_error)
