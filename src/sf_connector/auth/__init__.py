from .httpx import SalesforceAuth
from .types import (
    AuthMissingResponse,
    AuthState,
    Session,
    SessionLogin,
    TokenRefreshCallback,
)
from .login_oauth import password_login, token_login
from .session import AuthSession


__all__ = [
    "AuthSession",
    "AuthMissingResponse",
    "AuthState",
    "SalesforceAuth",
    "Session",
    "SessionLogin",
    "TokenRefreshCallback",
    "password_login",
    "token_login",
]
