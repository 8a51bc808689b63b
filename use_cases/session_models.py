"""Session DTOs shared across application layers."""

from dataclasses import dataclass
from typing import Literal, Optional

SessionStatus = Literal["LOADING", "ANONYMOUS", "AUTHENTICATED", "TOKEN_EXPIRED"]


@dataclass(frozen=True)
class User:
    id: str
    display_name: str
    email: str

    @property
    def label(self) -> str:
        return self.display_name or self.email


@dataclass(frozen=True)
class SignInResult:
    user: User
    bearer_token: str


@dataclass(frozen=True)
class Session:
    """Auth state of the current tab. A bearer token exists only while AUTHENTICATED."""

    status: SessionStatus = "LOADING"
    current_user: Optional[User] = None
    bearer_token: Optional[str] = None

    def __post_init__(self):
        if bool(self.bearer_token) != (self.status == "AUTHENTICATED"):
            raise ValueError(f"bearer_token must be set if and only if status is AUTHENTICATED (got {self.status})")


def is_authenticated(session: Session) -> bool:
    return session.status == "AUTHENTICATED"


def is_token_expired(session: Session) -> bool:
    return session.status == "TOKEN_EXPIRED"
