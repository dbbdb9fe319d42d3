"""
Pydantic models for the gateway integration.

Typed data contracts for outbound requests, persisted poll snapshots and the
shared bases of the per-operation parameter models.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ibkr_portal.ibkr.exceptions import IBKRValidationError


def _scalar_to_str(value: Any) -> Any:
    # Hosts hand over conids and ids as numbers as often as strings
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(int(value)) if float(value).is_integer() else str(value)
    if isinstance(value, str):
        return value.strip()
    return value


IdStr = Annotated[str, BeforeValidator(_scalar_to_str)]

HttpMethod = Literal["GET", "POST", "PUT", "DELETE"]


class RequestDescriptor(BaseModel):
    """One logical gateway call. Built fresh for every invocation."""

    model_config = ConfigDict(frozen=True)

    method: HttpMethod
    endpoint: str
    query: dict[str, Any] = Field(default_factory=dict)
    body: dict[str, Any] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)

    @property
    def is_idempotent(self) -> bool:
        return self.method == "GET"


class ActionParams(BaseModel):
    """
    Base for per-operation parameter models.

    Accepts the host's camelCase parameter names (accountIdOverride,
    auxPrice, ...) as well as snake_case field names. Unknown keys are
    ignored, since hosts send their whole parameter bag.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class AccountScopedParams(ActionParams):
    """Operations that act on one account (credentials default, overridable)."""

    account_id_override: IdStr = ""

    def resolve_account_id(self, default_account_id: str) -> str:
        account_id = self.account_id_override or default_account_id
        if not account_id:
            raise IBKRValidationError(
                "Account ID is required: set it in the credentials or pass accountIdOverride"
            )
        return account_id


class PollSnapshot(BaseModel):
    """
    State persisted between poll cycles for one trigger instance.

    Each family only touches its own fields; every successful cycle replaces
    them with the latest full collection.
    """

    last_poll_time: int = 0  # epoch milliseconds
    last_alert_ids: list[str] = Field(default_factory=list)
    last_positions: dict[str, dict[str, Any]] = Field(default_factory=dict)
    last_trade_ids: list[str] = Field(default_factory=list)
