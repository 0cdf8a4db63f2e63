import threading
from types import TracebackType

import httpx

from ..config import Config
from ..exceptions import AuthError, ConfigError, NetworkError
from ..logger import getLogger
from .login_oauth import password_login
from .types import AuthState, Session, SessionLogin, TokenRefreshCallback

LOGGER = getLogger("auth")


class AuthSession:
    """Owns the OAuth session shared by every request of a connection.

    All reads and replacements of the session happen under one lock, so at
    most one login is in flight and callers racing on an expired token wait
    for it instead of logging in again.
    """

    config: Config | None
    callback: TokenRefreshCallback | None

    def __init__(
        self,
        config: Config | None = None,
        *,
        callback: TokenRefreshCallback | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ):
        self.config = config
        self.callback = callback
        self._client = client or httpx.Client(transport=transport, timeout=timeout)
        self._lock = threading.Lock()
        self._session: Session | None = None
        self._state = AuthState.UNAUTHENTICATED

    def __repr__(self):
        return f"{type(self).__name__}(state={self._state.value})"

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def session(self) -> Session | None:
        return self._session

    def _send_login(self, login: SessionLogin) -> Session:
        login_flow = login()
        request = next(login_flow)
        while True:
            try:
                response = self._client.send(request)
            except httpx.TransportError as exc:
                raise NetworkError(request.method, str(request.url), 1, str(exc)) from exc
            try:
                request = login_flow.send(response)
            except StopIteration as login_result:
                return login_result.value

    def _install(self, session: Session):
        self._session = session
        self._state = AuthState.AUTHENTICATED
        LOGGER.info("Authenticated against %s", session.instance_url)

    def _notify(self, session: Session):
        # called with the lock released so the callback may use this session
        if self.callback is not None:
            self.callback(session)

    def _authenticate(self, config: Config | None) -> Session:
        config = config or self.config
        if config is None:
            raise ConfigError(["config"])
        config.validate()

        previous_state = self._state
        self._state = AuthState.AUTHENTICATING
        LOGGER.info("Logging in as %s via %s", config.username, config.token_url)
        try:
            session = self._send_login(password_login(config))
        except Exception:
            self._state = previous_state
            raise
        self.config = config
        self._install(session)
        return session

    def authenticate(self, config: Config | None = None) -> Session:
        """Log in with ``config`` (or the config this session was built with).

        Passing a fresh config is also the way out of the FAILED state. On
        failure the previous session, if any, is kept as it was.
        """
        with self._lock:
            session = self._authenticate(config)
        self._notify(session)
        return session

    def current(self) -> Session:
        """The active session, logging in first if there is none yet."""
        with self._lock:
            if self._state is AuthState.FAILED:
                raise AuthError(
                    "SESSION_FAILED",
                    "Reauthentication failed earlier; authenticate with a fresh config",
                )
            if self._session is not None:
                return self._session
            session = self._authenticate(None)
        self._notify(session)
        return session

    def reauthenticate(self, stale: Session | None) -> Session:
        """Replace ``stale`` after the server rejected it.

        If another caller already replaced it, the newer session is returned
        without logging in again.
        """
        with self._lock:
            if self._state is AuthState.FAILED:
                raise AuthError(
                    "SESSION_FAILED",
                    "Reauthentication failed earlier; authenticate with a fresh config",
                )
            if self._session is not None and self._session is not stale:
                LOGGER.debug("Session was already refreshed by a concurrent call")
                return self._session
            if self.config is None:
                raise ConfigError(["config"])

            self._state = AuthState.REAUTHENTICATING
            LOGGER.info("Session rejected, logging in again as %s", self.config.username)
            try:
                session = self._send_login(password_login(self.config))
            except AuthError:
                self._state = AuthState.FAILED
                LOGGER.error("Reauthentication as %s was rejected", self.config.username)
                raise
            except Exception:
                self._state = (
                    AuthState.AUTHENTICATED
                    if self._session is not None
                    else AuthState.UNAUTHENTICATED
                )
                raise
            self._install(session)
        self._notify(session)
        return session

    def close(self):
        with self._lock:
            self._session = None
            self._state = AuthState.UNAUTHENTICATED
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self.close()
