from unittest.mock import Mock

import httpx
import pytest

from sf_connector.auth import AuthSession
from sf_connector.client import RequestDispatcher, RetryPolicy
from sf_connector.config import Config
from sf_connector.resources.records import RecordService

from .mock_salesforce import MockSalesforce, TokenEndpoint


@pytest.fixture
def config() -> Config:
    return Config(
        api_version="60.0",
        consumer_key="test_consumer_key",
        consumer_secret="test_consumer_secret",
        username="user@example.com",
        password="password123",
        security_token="SECTOKEN",
        endpoint="https://login.salesforce.com",
    )


@pytest.fixture
def token_endpoint() -> TokenEndpoint:
    return TokenEndpoint()


@pytest.fixture
def make_dispatcher(config, token_endpoint):
    """Factory building a RequestDispatcher over a MockSalesforce transport"""
    created: list[RequestDispatcher] = []

    def _make(api, *, token=None, retry: RetryPolicy = RetryPolicy(), sleep=None):
        mock_sf = MockSalesforce(token or token_endpoint, api)
        transport = httpx.MockTransport(mock_sf)
        auth_session = AuthSession(config, transport=transport)
        dispatcher = RequestDispatcher(
            auth_session, transport=transport, retry=retry, sleep=sleep or Mock()
        )
        created.append(dispatcher)
        return dispatcher, mock_sf

    yield _make

    for dispatcher in created:
        dispatcher.close()
        dispatcher.auth_session.close()


@pytest.fixture
def make_service(make_dispatcher):
    def _make(api, **kwargs):
        dispatcher, mock_sf = make_dispatcher(api, **kwargs)
        return RecordService(dispatcher), mock_sf

    return _make
