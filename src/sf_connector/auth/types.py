from datetime import datetime
from enum import Enum
import typing

import httpx


class Session(typing.NamedTuple):
    access_token: str
    instance_url: httpx.URL
    token_type: str
    obtained_at: datetime

    @property
    def authorization(self) -> str:
        return f"Bearer {self.access_token}"


class AuthState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    REAUTHENTICATING = "reauthenticating"
    FAILED = "failed"


class AuthMissingResponse(ValueError):
    pass


SessionGenerator = typing.Generator[httpx.Request, httpx.Response | None, Session]

SessionLogin = typing.Callable[[], SessionGenerator]

TokenRefreshCallback = typing.Callable[[Session], typing.Any]

__all__ = [
    "Session",
    "AuthState",
    "AuthMissingResponse",
    "SessionGenerator",
    "SessionLogin",
    "TokenRefreshCallback",
]
