"""Exceptions raised by sf_connector.

Errors that carry an HTTP response share ``SalesforceResponseError`` so the
caller always has the status code, the request method and path, and the
parsed Salesforce error list available for deciding what to do next.
"""

from json import JSONDecodeError
from typing import NamedTuple

import httpx

from ._models import ApiErrorJSON


class ApiErrorDetail(NamedTuple):
    """One entry of the error array Salesforce returns for a rejected call"""

    error_code: str
    message: str
    fields: tuple[str, ...] = ()

    @classmethod
    def from_json(cls, data: ApiErrorJSON) -> "ApiErrorDetail":
        return cls(
            data.get("errorCode", ""),
            data.get("message", ""),
            tuple(data.get("fields") or ()),
        )


def parse_error_details(payload) -> list[ApiErrorDetail]:
    if isinstance(payload, dict):
        # OAuth style errors and single error objects
        if "errorCode" in payload:
            payload = [payload]
        elif "errors" in payload:
            payload = payload["errors"]
        else:
            return []
    if not isinstance(payload, list):
        return []
    return [
        ApiErrorDetail.from_json(entry)
        for entry in payload
        if isinstance(entry, dict)
    ]


def response_error_details(response: httpx.Response) -> list[ApiErrorDetail]:
    if not response.content:
        return []
    try:
        return parse_error_details(response.json())
    except (JSONDecodeError, UnicodeDecodeError):
        return []


class SalesforceError(Exception):
    """Base class for every error raised by this package"""


class ConfigError(SalesforceError):
    """Required configuration values are missing or blank"""

    def __init__(self, missing: list[str], source: str | None = None):
        self.missing = list(missing)
        self.source = source
        message = "Missing required configuration values: " + ", ".join(self.missing)
        if source:
            message += f" (in {source})"
        super().__init__(message)


class AuthError(SalesforceError):
    """Authentication was rejected or the session can no longer be refreshed"""

    def __init__(
        self,
        code: str | None,
        message: str | None,
        status_code: int | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(code, message)

    def __str__(self):
        if self.status_code is not None:
            return f"{self.code} ({self.status_code}): {self.message}"
        return f"{self.code}: {self.message}"


class NetworkError(SalesforceError):
    """The transport failed on every attempt"""

    def __init__(self, method: str, url: str, attempts: int, reason: str):
        self.method = method
        self.url = url
        self.attempts = attempts
        self.reason = reason
        super().__init__(method, url, attempts, reason)

    def __str__(self):
        return (
            f"{self.method} {self.url} failed after {self.attempts} "
            f"attempt(s): {self.reason}"
        )


class SalesforceResponseError(SalesforceError):
    """Base class for errors carrying a Salesforce HTTP response"""

    message: str = "Unknown error occurred for {url}. Response content: {content}"

    def __init__(
        self,
        url_path: str,
        status_code: int,
        resource_name: str,
        content: str,
        method: str,
        errors: list[ApiErrorDetail] | None = None,
    ):
        self.url_path = url_path
        self.status_code = status_code
        self.resource_name = resource_name
        self.content = content
        self.method = method
        self.errors = list(errors or [])
        super().__init__(url_path, status_code, resource_name, content, method)

    @classmethod
    def from_response(cls, response: httpx.Response, resource_name: str = "", **kwargs):
        return cls(
            response.url.path,
            response.status_code,
            resource_name,
            response.text,
            response.request.method,
            errors=kwargs.pop("errors", None) or response_error_details(response),
            **kwargs,
        )

    @property
    def error_codes(self) -> list[str]:
        return [error.error_code for error in self.errors]

    def __str__(self):
        return self.message.format(
            url=self.url_path, content=self.content, name=self.resource_name
        )

    def __repr__(self):
        return f"{type(self).__name__}({str(self)!r})"


class RateLimitError(SalesforceResponseError):
    """Salesforce kept refusing the call with REQUEST_LIMIT_EXCEEDED"""

    message = "Request limit exceeded for {name} at {url} after {attempts} attempt(s)"

    def __init__(self, *args, attempts: int = 1, **kwargs):
        self.attempts = attempts
        super().__init__(*args, **kwargs)

    def __str__(self):
        return self.message.format(
            url=self.url_path, name=self.resource_name, attempts=self.attempts
        )


class ApiError(SalesforceResponseError):
    """Salesforce rejected the request. Not retried."""

    message = "Salesforce rejected {name} at {url} ({status}): {detail}"

    def __str__(self):
        detail = "; ".join(
            f"{error.error_code}: {error.message}" for error in self.errors
        ) or self.content
        return self.message.format(
            url=self.url_path,
            name=self.resource_name or "request",
            status=self.status_code,
            detail=detail,
        )


class SalesforceMoreThanOneRecord(ApiError):
    """
    Error Code: 300
    The value returned when an external ID exists in more than one record. The
    response body contains the list of matching records.
    """

    message = "More than one record for {url}. Response content: {content}"

    def __str__(self):
        return self.message.format(url=self.url_path, content=self.content)


class SalesforceMalformedRequest(ApiError):
    """
    Error Code: 400
    The request couldn't be understood, usually because the JSON or XML body
    contains an error.
    """


class SalesforceRefusedRequest(ApiError):
    """
    Error Code: 403
    The request has been refused. Verify that the logged-in user has
    appropriate permissions.
    """


class SalesforceResourceNotFound(ApiError):
    """
    Error Code: 404
    The requested resource couldn't be found. Check the URI for errors, and
    verify that there are no sharing issues.
    """

    message = "Resource {name} Not Found at {url} ({status}): {detail}"


class SalesforceMethodNotAllowedForResource(ApiError):
    """
    Error Code: 405
    The method specified in the Request-Line isn't allowed for the resource
    specified in the URI.
    """


class SalesforceServerError(ApiError):
    """
    Error Code: 500
    An error has occurred within Lightning Platform, so the request couldn't be
    completed.
    """


class SalesforceServerUnavailable(ApiError):
    """
    Error Code: 503
    The server is unavailable to handle the request.
    """


class SalesforceGeneralError(ApiError):
    """
    A non-specific Salesforce error.
    """

    message = "Error Code {status}. Response content: {content}"

    def __str__(self):
        url_path = self.url_path
        if len(url_path) > 255:
            url_path = url_path[:252] + "..."
        return (
            f"Error Code {self.status_code} on {self.method.upper()} {url_path}. "
            f"Response content: {self.content}"
        )


STATUS_EXCEPTIONS: dict[int, type[ApiError]] = {
    300: SalesforceMoreThanOneRecord,
    400: SalesforceMalformedRequest,
    403: SalesforceRefusedRequest,
    404: SalesforceResourceNotFound,
    405: SalesforceMethodNotAllowedForResource,
    500: SalesforceServerError,
    503: SalesforceServerUnavailable,
}


def raise_for_status(response: httpx.Response, resource_name: str = ""):
    """Raise the ApiError matching the response status, if it isn't a success"""
    if response.is_success:
        return
    exc_cls = STATUS_EXCEPTIONS.get(response.status_code, SalesforceGeneralError)
    raise exc_cls.from_response(response, resource_name)
