"""
Credentials for the Client Portal Gateway.

Follows ibkr_portal/config.py pattern: Pydantic Settings, SecretStr for the
session token, .env loading. Hosts that keep credentials in their own secret
store implement `CredentialStore` and hand back an `IbkrCredentials`.
"""

from __future__ import annotations

from typing import Literal, Protocol

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ibkr_portal.ibkr.constants import DEFAULT_GATEWAY_URL

CREDENTIALS_NAME = "interactiveBrokersApi"


class IbkrCredentials(BaseSettings):
    """Gateway connection credentials. Never mutated after load."""

    account_id: str = Field(
        default="",
        validation_alias="IBKR_ACCOUNT_ID",
        description="Default IBKR account ID (e.g. U1234567, DU1234567 for paper)",
    )
    session_token: SecretStr | None = Field(
        default=None,
        validation_alias="IBKR_SESSION_TOKEN",
        description="Optional session token, sent as the sessionid cookie",
    )
    environment: Literal["production", "paper"] = Field(
        default="paper",
        validation_alias="IBKR_ENVIRONMENT",
    )
    gateway_url: str = Field(
        default=DEFAULT_GATEWAY_URL,
        validation_alias="IBKR_GATEWAY_URL",
        description="Base URL of the Client Portal Gateway",
    )
    ignore_tls_errors: bool = Field(
        default=True,
        validation_alias="IBKR_IGNORE_TLS_ERRORS",
        description="Skip certificate validation (the gateway ships a self-signed cert)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
        populate_by_name=True,
    )

    @field_validator("session_token", mode="before")
    @classmethod
    def _blank_token_is_none(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return value

    def get_session_token(self) -> str:
        if self.session_token is None:
            return ""
        return self.session_token.get_secret_value()

    def is_configured(self) -> bool:
        """Check that the minimum needed to reach the gateway is set."""
        return bool(self.account_id and self.gateway_url)


class CredentialStore(Protocol):
    """The host's "get credentials by name" capability."""

    def get_credentials(self, name: str) -> IbkrCredentials: ...


class EnvCredentialStore:
    """Loads credentials from the environment / .env on every lookup."""

    def get_credentials(self, name: str = CREDENTIALS_NAME) -> IbkrCredentials:
        return IbkrCredentials()


class StaticCredentialStore:
    """Hands back a fixed credentials record (tests, embedding hosts)."""

    def __init__(self, credentials: IbkrCredentials):
        self._credentials = credentials

    def get_credentials(self, name: str = CREDENTIALS_NAME) -> IbkrCredentials:
        return self._credentials
