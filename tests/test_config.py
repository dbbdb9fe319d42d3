"""
Unit tests for configuration and credentials.

Covers:
- Settings defaults and environment overrides
- Credential loading, blank tokens and immutability
- Once-per-process runtime initialization
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError


class TestSettings:
    """Runtime settings loaded from the environment."""

    def test_defaults(self):
        from ibkr_portal.config import Settings

        settings = Settings(_env_file=None)
        assert settings.request_timeout_seconds == 30
        assert settings.request_retry_attempts == 3
        assert settings.request_retry_base_delay_seconds == 1.0
        assert settings.snapshot_dir == Path(".ibkr_portal/state")

    @patch.dict(
        os.environ,
        {"IBKR_REQUEST_RETRY_ATTEMPTS": "5", "IBKR_REQUEST_TIMEOUT_SECONDS": "2.5"},
    )
    def test_env_override(self):
        from ibkr_portal.config import Settings

        settings = Settings(_env_file=None)
        assert settings.request_retry_attempts == 5
        assert settings.request_timeout_seconds == 2.5

    @patch.dict(os.environ, {"IBKR_REQUEST_RETRY_ATTEMPTS": "0"})
    def test_retry_attempts_bounds(self):
        from ibkr_portal.config import Settings

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_apply_log_level(self):
        import logging

        from ibkr_portal.config import Settings

        Settings(_env_file=None, log_level="error").apply_log_level()
        assert logging.getLogger().level == logging.ERROR


class TestCredentials:
    """Gateway credentials."""

    @patch.dict(
        os.environ,
        {
            "IBKR_ACCOUNT_ID": "DU1234567",
            "IBKR_SESSION_TOKEN": "tok",
            "IBKR_GATEWAY_URL": "https://gw.example:5000",
            "IBKR_IGNORE_TLS_ERRORS": "false",
        },
    )
    def test_env_store(self):
        from ibkr_portal.ibkr_config import EnvCredentialStore

        creds = EnvCredentialStore().get_credentials()
        assert creds.account_id == "DU1234567"
        assert creds.get_session_token() == "tok"
        assert creds.gateway_url == "https://gw.example:5000"
        assert creds.ignore_tls_errors is False
        assert creds.environment == "paper"
        assert creds.is_configured()

    def test_defaults(self):
        from ibkr_portal.ibkr_config import IbkrCredentials

        creds = IbkrCredentials(_env_file=None)
        assert creds.session_token is None
        assert creds.get_session_token() == ""
        assert creds.ignore_tls_errors is True
        assert not creds.is_configured()

    def test_token_is_not_printed(self):
        from ibkr_portal.ibkr_config import IbkrCredentials

        creds = IbkrCredentials(_env_file=None, account_id="U1", session_token="secret")
        assert "secret" not in repr(creds)

    def test_frozen(self):
        from ibkr_portal.ibkr_config import IbkrCredentials

        creds = IbkrCredentials(_env_file=None, account_id="U1")
        with pytest.raises(ValidationError):
            creds.account_id = "U2"

    def test_unknown_environment_rejected(self):
        from ibkr_portal.ibkr_config import IbkrCredentials

        with pytest.raises(ValidationError):
            IbkrCredentials(_env_file=None, environment="staging")


class TestRuntimeState:
    def test_initialize_once(self):
        from ibkr_portal.config import RuntimeState

        state = RuntimeState(notice="hello")
        assert not state.initialized
        assert state.initialize() is True
        assert state.initialize() is False
        assert state.initialized
