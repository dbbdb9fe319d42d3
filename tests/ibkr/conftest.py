"""Shared fixtures for IBKR tests."""

from typing import Any

import pytest

from ibkr_portal.config import Settings
from ibkr_portal.ibkr.client import IbkrClient
from ibkr_portal.ibkr.exceptions import TransportError
from ibkr_portal.ibkr_config import IbkrCredentials, StaticCredentialStore


class FakeTransport:
    """
    Records every call and answers from a queue.

    Queue entries are returned as the decoded payload, or raised when they
    are exceptions. With an empty queue every call returns `default`.
    """

    def __init__(self, *responses: Any, default: Any = None):
        self.responses = list(responses)
        self.default = {} if default is None else default
        self.calls: list[dict[str, Any]] = []

    def request(self, method, url, *, headers, body=None, query=None, verify_tls=True, timeout=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "headers": headers,
                "body": body,
                "query": query,
                "verify_tls": verify_tls,
                "timeout": timeout,
            }
        )
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def last_call(self) -> dict[str, Any]:
        return self.calls[-1]


@pytest.fixture
def credentials():
    return IbkrCredentials(
        account_id="U1234567",
        gateway_url="https://localhost:5000",
        ignore_tls_errors=True,
    )


@pytest.fixture
def credential_store(credentials):
    return StaticCredentialStore(credentials)


@pytest.fixture
def fast_settings():
    """Settings with retries enabled but no backoff sleeps."""
    return Settings(
        request_retry_attempts=3,
        request_retry_base_delay_seconds=0,
        request_timeout_seconds=5,
    )


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def client(credentials, fake_transport, fast_settings):
    return IbkrClient(credentials, fake_transport, fast_settings)


@pytest.fixture
def network_down():
    return TransportError("ConnectError: connection refused")


@pytest.fixture
def make_transport():
    """Factory for FakeTransport with a queue of responses."""
    return FakeTransport
