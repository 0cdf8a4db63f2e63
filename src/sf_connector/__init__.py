from .auth import AuthSession, AuthState, SalesforceAuth, Session
from .client import RequestDispatcher, RetryPolicy
from .config import Config, ConfigStore
from .data.record import InsertResult, QueryPage, Record
from .exceptions import (
    ApiError,
    AuthError,
    ConfigError,
    NetworkError,
    RateLimitError,
    SalesforceError,
)
from .resources.records import RecordService

__all__ = [
    "AuthSession",
    "AuthState",
    "SalesforceAuth",
    "Session",
    "RequestDispatcher",
    "RetryPolicy",
    "Config",
    "ConfigStore",
    "InsertResult",
    "QueryPage",
    "Record",
    "ApiError",
    "AuthError",
    "ConfigError",
    "NetworkError",
    "RateLimitError",
    "SalesforceError",
    "RecordService",
]
