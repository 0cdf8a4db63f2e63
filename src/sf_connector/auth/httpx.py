import typing

import httpx

from ..logger import getLogger
from .session import AuthSession
from .types import Session

LOGGER = getLogger("auth")


def _retarget(request: httpx.Request, stale: Session, session: Session):
    # a new login may come back on a different instance
    if session.instance_url.host != stale.instance_url.host:
        request.url = request.url.copy_with(
            scheme=session.instance_url.scheme,
            host=session.instance_url.host,
            port=session.instance_url.port,
        )
        request.headers["Host"] = request.url.netloc.decode("ascii")


class SalesforceAuth(httpx.Auth):
    """Attaches the bearer token and retries once with a new one after a 401"""

    auth_session: AuthSession

    def __init__(self, auth_session: AuthSession):
        self.auth_session = auth_session

    def auth_flow(
        self, request: httpx.Request
    ) -> typing.Generator[httpx.Request, httpx.Response, None]:
        session = self.auth_session.current()
        request.headers["Authorization"] = session.authorization
        response = yield request

        if response.status_code == 401:
            LOGGER.info(
                "%s %s returned 401, refreshing session", request.method, request.url.path
            )
            new_session = self.auth_session.reauthenticate(stale=session)
            _retarget(request, session, new_session)
            request.headers["Authorization"] = new_session.authorization
            yield request
