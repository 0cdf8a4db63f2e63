"""OAuth 2.0 password grant login.

Logins are generators: they yield the ``httpx.Request`` to send, receive the
``httpx.Response`` and return the resulting ``Session``. This keeps them free
of any particular client so ``AuthSession`` decides how the request is sent.
"""

from datetime import datetime, timezone
from json import JSONDecodeError
import warnings

import httpx

from .._models import TokenResponseJSON
from ..config import Config
from ..exceptions import AuthError
from .types import AuthMissingResponse, Session, SessionGenerator, SessionLogin


def _instance_url(value: str, status_code: int) -> httpx.URL:
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL as exc:
        raise AuthError("INVALID_INSTANCE_URL", str(exc), status_code) from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise AuthError(
            "INVALID_INSTANCE_URL",
            f"Token response instance_url is not an http(s) URL: {value!r}",
            status_code,
        )
    return url


def token_login(
    token_url: str, token_data: dict[str, str], headers: dict[str, str] | None = None
) -> SessionGenerator:
    """Process the OAuth token endpoint exchange."""
    response = yield httpx.Request(
        "POST",
        token_url,
        data=token_data,
        headers={"Accept": "application/json", **(headers or {})},
    )
    if response is None:
        raise AuthMissingResponse("No response received")

    json_response: TokenResponseJSON
    try:
        json_response = response.json()
    except (JSONDecodeError, UnicodeDecodeError) as exc:
        raise AuthError(None, response.text, response.status_code) from exc
    if not isinstance(json_response, dict):
        json_response = {}

    if not response.is_success:
        error_description = json_response.get("error_description")
        if error_description == "user hasn't approved this consumer":
            warnings.warn(
                "The connected app must be authorized for this user before "
                "the password flow can be used."
            )
        raise AuthError(
            json_response.get("error"), error_description, response.status_code
        )

    access_token = json_response.get("access_token")
    instance_url = json_response.get("instance_url")
    if not access_token or not instance_url:
        raise AuthError(
            "MALFORMED_TOKEN_RESPONSE",
            "Token response is missing access_token or instance_url",
            response.status_code,
        )

    return Session(
        access_token,
        _instance_url(instance_url, response.status_code),
        json_response.get("token_type") or "Bearer",
        datetime.now(timezone.utc),
    )


def password_login(config: Config) -> SessionLogin:
    """Username-password flow. The security token is appended to the password."""
    token_data = {
        "grant_type": "password",
        "client_id": config.consumer_key,
        "client_secret": config.consumer_secret,
        "username": config.username,
        "password": config.password + config.security_token,
    }
    return lambda: token_login(config.token_url, token_data)
