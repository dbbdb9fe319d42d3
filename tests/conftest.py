"""Pytest configuration for ibkr-portal tests."""

import logging
import os
from unittest.mock import patch

import pytest
import structlog


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """
    Set up test environment variables.
    Runs for the whole session so no test talks to a real gateway by accident.
    """
    test_env = {
        "LOG_LEVEL": "ERROR",
        "IBKR_GATEWAY_URL": "https://gateway.test:5000",
    }
    with patch.dict(os.environ, test_env, clear=False):
        yield


@pytest.fixture(autouse=True)
def clear_ibkr_credentials(monkeypatch):
    """Keep a developer's real IBKR_* credentials out of the tests."""
    for name in ("IBKR_ACCOUNT_ID", "IBKR_SESSION_TOKEN", "IBKR_ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def configure_structlog_for_tests():
    """Configure structlog for test environment."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.root.setLevel(logging.WARNING)
    yield
