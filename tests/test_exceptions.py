import httpx
import pytest

from sf_connector.exceptions import (
    ApiError,
    ApiErrorDetail,
    AuthError,
    ConfigError,
    NetworkError,
    RateLimitError,
    SalesforceError,
    SalesforceGeneralError,
    SalesforceMalformedRequest,
    SalesforceMethodNotAllowedForResource,
    SalesforceMoreThanOneRecord,
    SalesforceRefusedRequest,
    SalesforceResourceNotFound,
    SalesforceServerError,
    SalesforceServerUnavailable,
    parse_error_details,
    raise_for_status,
)


def create_response(
    status_code: int, url_path="/test/path", text="Error message", method="GET"
):
    """Helper function to create httpx.Response objects bound to a request"""
    request = httpx.Request(method, f"https://test.my.salesforce.com{url_path}")
    return httpx.Response(status_code, text=text, request=request)


@pytest.mark.parametrize(
    "status_code,expected_exception",
    [
        (300, SalesforceMoreThanOneRecord),
        (400, SalesforceMalformedRequest),
        (403, SalesforceRefusedRequest),
        (404, SalesforceResourceNotFound),
        (405, SalesforceMethodNotAllowedForResource),
        (500, SalesforceServerError),
        (503, SalesforceServerUnavailable),
        # Test unmapped codes
        (409, SalesforceGeneralError),
        (418, SalesforceGeneralError),  # I'm a teapot
    ],
)
def test_raise_for_status(status_code, expected_exception):
    """Test that the correct exception is raised for each status code"""
    response = create_response(status_code)

    with pytest.raises(expected_exception) as excinfo:
        raise_for_status(response, "TestResource")

    exception = excinfo.value
    assert isinstance(exception, ApiError)
    assert exception.status_code == status_code
    assert exception.resource_name == "TestResource"
    assert exception.url_path == "/test/path"
    assert exception.content == "Error message"
    assert exception.method == "GET"


def test_raise_for_status_success():
    assert raise_for_status(create_response(200, text="{}")) is None


def test_exception_string_representation():
    """Test string representation of exceptions"""
    response = create_response(404)

    with pytest.raises(SalesforceResourceNotFound) as excinfo:
        raise_for_status(response, "Account")

    exception = excinfo.value
    assert "Resource Account Not Found" in str(exception)
    assert "404" in str(exception)
    assert "/test/path" in str(exception)


def test_error_details_parsed():
    request = httpx.Request("POST", "https://test.my.salesforce.com/services/data/v60.0/sobjects/Case/")
    response = httpx.Response(
        400,
        json=[
            {
                "errorCode": "REQUIRED_FIELD_MISSING",
                "message": "Required fields are missing: [Subject]",
                "fields": ["Subject"],
            }
        ],
        request=request,
    )

    with pytest.raises(SalesforceMalformedRequest) as excinfo:
        raise_for_status(response, "Case")

    exception = excinfo.value
    assert exception.errors == [
        ApiErrorDetail(
            "REQUIRED_FIELD_MISSING", "Required fields are missing: [Subject]", ("Subject",)
        )
    ]
    assert exception.error_codes == ["REQUIRED_FIELD_MISSING"]
    assert "REQUIRED_FIELD_MISSING: Required fields are missing: [Subject]" in str(exception)


@pytest.mark.parametrize(
    "payload,codes",
    [
        ([{"errorCode": "A", "message": "a"}, {"errorCode": "B", "message": "b"}], ["A", "B"]),
        ({"errorCode": "A", "message": "a"}, ["A"]),
        ({"errors": [{"errorCode": "A", "message": "a"}]}, ["A"]),
        ({"totalSize": 0}, []),
        ("plain text", []),
        (None, []),
    ],
)
def test_parse_error_details(payload, codes):
    assert [error.error_code for error in parse_error_details(payload)] == codes


def test_general_error_truncates_long_urls():
    """Test that SalesforceGeneralError truncates long URLs in its string representation"""
    long_path = "/services/data/v60.0/" + "a" * 300
    response = create_response(418, url_path=long_path)

    with pytest.raises(SalesforceGeneralError) as excinfo:
        raise_for_status(response, "LongPathResource")

    exception_str = str(excinfo.value)
    assert "..." in exception_str
    assert long_path not in exception_str
    assert "/services/data/v60.0/" in exception_str


def test_exception_repr():
    """Test the __repr__ method of exceptions"""
    response = create_response(404)

    with pytest.raises(SalesforceResourceNotFound) as excinfo:
        raise_for_status(response, "Account")

    exception = excinfo.value
    assert exception.__class__.__name__ in repr(exception)
    assert str(exception) in repr(exception)


@pytest.mark.parametrize("method", ["GET", "POST", "PATCH", "DELETE"])
def test_different_http_methods(method):
    """Test exceptions with different HTTP methods"""
    with pytest.raises(SalesforceMalformedRequest) as excinfo:
        raise_for_status(create_response(400, method=method), "Case")
    assert excinfo.value.method == method

    # For SalesforceGeneralError, HTTP method is included in the string representation
    with pytest.raises(SalesforceGeneralError) as excinfo:
        raise_for_status(create_response(418, method=method), "Case")
    assert method in str(excinfo.value)


def test_rate_limit_error():
    request = httpx.Request("GET", "https://test.my.salesforce.com/services/data/v60.0/limits/")
    response = httpx.Response(
        403,
        json=[{"errorCode": "REQUEST_LIMIT_EXCEEDED", "message": "TotalRequests Limit exceeded."}],
        request=request,
    )

    exception = RateLimitError.from_response(response, "limits", attempts=4)

    assert exception.attempts == 4
    assert exception.status_code == 403
    assert exception.error_codes == ["REQUEST_LIMIT_EXCEEDED"]
    assert "after 4 attempt(s)" in str(exception)
    assert not isinstance(exception, ApiError)


def test_error_hierarchy():
    assert issubclass(ConfigError, SalesforceError)
    assert issubclass(AuthError, SalesforceError)
    assert issubclass(NetworkError, SalesforceError)
    assert issubclass(RateLimitError, SalesforceError)
    assert issubclass(ApiError, SalesforceError)


def test_auth_error_string():
    assert str(AuthError("invalid_grant", "authentication failure", 400)) == (
        "invalid_grant (400): authentication failure"
    )
    assert str(AuthError("SESSION_FAILED", "cannot refresh")) == "SESSION_FAILED: cannot refresh"


def test_network_error_string():
    exception = NetworkError("GET", "https://example.com/x", 4, "connection refused")
    assert str(exception) == "GET https://example.com/x failed after 4 attempt(s): connection refused"


def test_config_error_message():
    exception = ConfigError(["CONSUMER_KEY", "PASSWORD"], "salesforce_config.ini")
    assert str(exception) == (
        "Missing required configuration values: CONSUMER_KEY, PASSWORD "
        "(in salesforce_config.ini)"
    )
