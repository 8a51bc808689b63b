import base64
import hashlib
import hmac
import logging
import os
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlencode

import requests
import streamlit as st
from streamlit.errors import StreamlitAPIException

from use_cases.session_models import User

log = logging.getLogger(__name__)


class AuthError(Exception):
    pass


AUTHORITY_URL = "https://login.microsoftonline.com"
GRAPH_ME_URL = "https://graph.microsoft.com/v1.0/me"
GRAPH_SCOPES = ("User.Read", "Files.Read", "Sites.Read.All")
DEFAULT_TENANT = "common"
DEFAULT_REDIRECT_URI = "http://localhost:8501/"
STATE_TTL_MINUTES = 10


def get_secret(key):
    try:
        return st.secrets.get(key)
    except (FileNotFoundError, StreamlitAPIException):
        return None


def get_setting(key, default=None):
    """st.secrets first, then the environment, then the default."""
    value = get_secret(key)
    if value is None or value == "":
        value = os.getenv(key)
    if value is None or value == "":
        return default
    return value


@dataclass(frozen=True)
class OAuthConfig:
    client_id: str
    client_secret: Optional[str]
    tenant: str
    redirect_uri: str

    @property
    def authorize_url(self) -> str:
        return f"{AUTHORITY_URL}/{self.tenant}/oauth2/v2.0/authorize"

    @property
    def token_url(self) -> str:
        return f"{AUTHORITY_URL}/{self.tenant}/oauth2/v2.0/token"


def load_oauth_config() -> OAuthConfig:
    client_id = get_setting("MS_CLIENT_ID")
    if not client_id:
        raise AuthError("Microsoft sign-in is not configured (MS_CLIENT_ID is missing).")
    return OAuthConfig(
        client_id=client_id,
        client_secret=get_setting("MS_CLIENT_SECRET"),
        tenant=get_setting("MS_TENANT", DEFAULT_TENANT),
        redirect_uri=get_setting("MS_REDIRECT_URI", DEFAULT_REDIRECT_URI),
    )


# --- OAUTH STATE ---
# The redirect back from Microsoft lands in a fresh Streamlit session,
# so the state value is signed instead of being kept server-side.

def _get_state_secret() -> bytes:
    secret = get_setting("SESSION_SECRET") or get_setting("MS_CLIENT_SECRET")
    if not secret:
        raise AuthError("SESSION_SECRET is not configured.")
    return secret.encode("utf-8")


def _encode_b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("utf-8").rstrip("=")


def _decode_b64(data: str) -> bytes:
    pad = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + pad)


def create_state(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    exp_ts = int((now + timedelta(minutes=STATE_TTL_MINUTES)).timestamp())
    payload = f"{secrets.token_urlsafe(16)}:{exp_ts}"
    sig = hmac.new(_get_state_secret(), payload.encode("utf-8"), hashlib.sha256).hexdigest()
    return f"{_encode_b64(payload.encode('utf-8'))}.{sig}"


def verify_state(state: Optional[str], now: Optional[datetime] = None) -> bool:
    if not state:
        return False
    try:
        b64_payload, sig = state.split(".", 1)
        payload = _decode_b64(b64_payload).decode("utf-8")
        expected = hmac.new(_get_state_secret(), payload.encode("utf-8"), hashlib.sha256).hexdigest()
        if not hmac.compare_digest(expected, sig):
            return False
        _, exp_str = payload.rsplit(":", 1)
        now = now or datetime.now(timezone.utc)
        return int(now.timestamp()) <= int(exp_str)
    except (ValueError, UnicodeDecodeError):
        return False


# --- MICROSOFT IDENTITY PLATFORM ---

def build_authorize_url(config: OAuthConfig, state: str) -> str:
    params = {
        "client_id": config.client_id,
        "response_type": "code",
        "redirect_uri": config.redirect_uri,
        "response_mode": "query",
        "scope": " ".join(GRAPH_SCOPES),
        "state": state,
        "prompt": "select_account",
    }
    return config.authorize_url + "?" + urlencode(params)


def exchange_code_for_token(config: OAuthConfig, code: str) -> str:
    """Trade an authorization code for a Graph access token."""
    data = {
        "client_id": config.client_id,
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": config.redirect_uri,
        "scope": " ".join(GRAPH_SCOPES),
    }
    if config.client_secret:
        data["client_secret"] = config.client_secret
    try:
        resp = requests.post(config.token_url, data=data, timeout=10)
    except requests.RequestException as e:
        log.error(f"Microsoft token endpoint unreachable: {e}")
        raise AuthError(f"Sign-in failed: {e}") from e

    if resp.status_code != 200:
        log.error(f"Token exchange failed: {resp.status_code} {resp.text}")
        raise AuthError(f"Sign-in failed: HTTP {resp.status_code}")

    access_token = resp.json().get("access_token")
    if not access_token:
        raise AuthError("No Microsoft access token")
    return access_token


def fetch_user_profile(token: str) -> User:
    headers = {"Authorization": f"Bearer {token}"}
    try:
        resp = requests.get(GRAPH_ME_URL, headers=headers, timeout=10)
    except requests.RequestException as e:
        raise AuthError(f"Could not load the Microsoft profile: {e}") from e
    if resp.status_code != 200:
        raise AuthError(f"Could not load the Microsoft profile: HTTP {resp.status_code}")

    me = resp.json()
    return User(
        id=me.get("id", ""),
        display_name=me.get("displayName") or "",
        email=me.get("mail") or me.get("userPrincipalName") or "",
    )
