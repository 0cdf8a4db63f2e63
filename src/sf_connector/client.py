from collections.abc import Callable
from json import JSONDecodeError
import time
from typing import Any, NamedTuple

from httpx import URL, Client, Response, TransportError

from .auth import AuthSession, SalesforceAuth, Session
from .exceptions import (
    AuthError,
    ConfigError,
    NetworkError,
    RateLimitError,
    parse_error_details,
    raise_for_status,
)
from .logger import getLogger
from .metrics import ApiUsage, parse_api_usage

LOGGER = getLogger("client")

RATE_LIMIT_ERROR_CODE = "REQUEST_LIMIT_EXCEEDED"


class RetryPolicy(NamedTuple):
    """Bounded exponential backoff for transient failures"""

    max_attempts: int = 4
    backoff_base: float = 0.5
    backoff_factor: float = 2.0
    max_backoff: float = 30.0

    def delay(self, attempt: int) -> float:
        return min(
            self.backoff_base * self.backoff_factor ** (attempt - 1), self.max_backoff
        )


def _is_rate_limited(response: Response, payload: Any) -> bool:
    if response.status_code == 429:
        return True
    return isinstance(payload, list) and any(
        isinstance(entry, dict) and entry.get("errorCode") == RATE_LIMIT_ERROR_CODE
        for entry in payload
    )


class RequestDispatcher(Client):
    """Sends authorized REST calls and decides what to do when they fail.

    Transport errors and REQUEST_LIMIT_EXCEEDED responses are retried with
    exponential backoff. A 401 gets exactly one reauthentication and one
    retry (done by ``SalesforceAuth``). Any other error response raises the
    matching ``ApiError`` straight away.
    """

    auth_session: AuthSession
    retry: RetryPolicy
    api_usage: ApiUsage | None = None

    def __init__(
        self,
        auth_session: AuthSession,
        *,
        retry: RetryPolicy = RetryPolicy(),
        sleep: Callable[[float], Any] = time.sleep,
        headers: dict[str, str] | None = None,
        **kwargs,
    ):
        super().__init__(
            auth=SalesforceAuth(auth_session),
            headers={"Accept": "application/json", **(headers or {})},
            **kwargs,
        )
        self.auth_session = auth_session
        self.retry = retry
        self._sleep = sleep

    def __str__(self):
        session = self.auth_session.session
        if session is None:
            return f"{type(self).__name__} (not connected)"
        return f"{type(self).__name__} -> {session.instance_url.host}"

    @property
    def api_version(self) -> str:
        if self.auth_session.config is None:
            raise ConfigError(["config"])
        return self.auth_session.config.api_version

    def data_url(self, session: Session | None = None) -> URL:
        session = session or self.auth_session.current()
        return session.instance_url.join(f"/services/data/v{self.api_version}/")

    def resolve_url(self, path: str) -> URL:
        """Paths are relative to the versioned data URL unless they start with /"""
        session = self.auth_session.current()
        if path.startswith("/"):
            return session.instance_url.join(path)
        return self.data_url(session).join(path)

    def _backoff(self, attempt: int, reason: str, method: str, path: str):
        delay = self.retry.delay(attempt)
        LOGGER.warning(
            "%s %s: %s (attempt %d/%d), retrying in %.2fs",
            method,
            path,
            reason,
            attempt,
            self.retry.max_attempts,
            delay,
        )
        self._sleep(delay)

    def _record_usage(self, response: Response):
        sforce_limit_info = response.headers.get("Sforce-Limit-Info")
        if sforce_limit_info and isinstance(sforce_limit_info, str):
            self.api_usage = parse_api_usage(sforce_limit_info)

    @staticmethod
    def _parse_body(response: Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except (JSONDecodeError, UnicodeDecodeError):
            return response.text

    def call(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: dict[str, Any] | None = None,
        resource_name: str = "",
    ) -> Any:
        """Issue ``method`` on ``path`` and return the parsed JSON body"""
        attempt = 0
        while True:
            attempt += 1
            try:
                url = self.resolve_url(path)
                LOGGER.debug("%s %s (attempt %d)", method, url.path, attempt)
                response = self.request(method, url, json=body, params=params)
            except (TransportError, NetworkError) as exc:
                if attempt >= self.retry.max_attempts:
                    raise NetworkError(method, path, attempt, str(exc)) from exc
                self._backoff(attempt, type(exc).__name__, method, path)
                continue

            self._record_usage(response)
            payload = self._parse_body(response)

            if response.status_code == 401:
                errors = parse_error_details(payload)
                raise AuthError(
                    errors[0].error_code if errors else "INVALID_SESSION_ID",
                    errors[0].message if errors else response.text,
                    response.status_code,
                )

            if _is_rate_limited(response, payload):
                if attempt >= self.retry.max_attempts:
                    raise RateLimitError.from_response(
                        response, resource_name, attempts=attempt
                    )
                self._backoff(attempt, RATE_LIMIT_ERROR_CODE, method, path)
                continue

            raise_for_status(response, resource_name)
            return payload
