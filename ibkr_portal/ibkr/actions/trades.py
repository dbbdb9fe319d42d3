"""Executed trades."""

from __future__ import annotations

from pydantic import Field

from ibkr_portal.ibkr.actions.registry import operation
from ibkr_portal.ibkr.models import AccountScopedParams, ActionParams, RequestDescriptor

TRADES_ENDPOINT = "/iserver/account/trades"


class TradesByDaysParams(AccountScopedParams):
    days: int = Field(default=7, ge=1, le=7)


@operation("trades", "getTrades")
def get_trades(params: ActionParams, account_id: str) -> RequestDescriptor:
    """Get trades executed in the current session."""
    return RequestDescriptor(method="GET", endpoint=TRADES_ENDPOINT)


@operation("trades", "getTradesByDays", TradesByDaysParams)
def get_trades_by_days(params: TradesByDaysParams, account_id: str) -> RequestDescriptor:
    """Get trades for the last N days (the gateway keeps at most 7)."""
    return RequestDescriptor(
        method="GET",
        endpoint=TRADES_ENDPOINT,
        query={
            "days": str(params.days),
            "accountId": params.resolve_account_id(account_id),
        },
    )
