"""Transactions, IRA contributions and cash balances."""

from __future__ import annotations

from pydantic import Field

from ibkr_portal.ibkr.actions.registry import operation
from ibkr_portal.ibkr.models import AccountScopedParams, ActionParams, RequestDescriptor


class TransactionOptions(ActionParams):
    days: int | None = Field(default=None, ge=1)


class TransactionHistoryParams(AccountScopedParams):
    currency: str = "USD"
    additional_options: TransactionOptions = Field(default_factory=TransactionOptions)


@operation("fundBanking", "getTransactionHistory", TransactionHistoryParams)
def get_transaction_history(
    params: TransactionHistoryParams, account_id: str
) -> RequestDescriptor:
    """Get cash transactions for the account."""
    acct = params.resolve_account_id(account_id)
    query: dict = {"currency": params.currency}
    if params.additional_options.days:
        query["days"] = params.additional_options.days
    return RequestDescriptor(method="GET", endpoint=f"/fyi/transactions/{acct}", query=query)


@operation("fundBanking", "getIRAContributions", AccountScopedParams)
def get_ira_contributions(
    params: AccountScopedParams, account_id: str
) -> RequestDescriptor:
    """Get IRA contribution information."""
    acct = params.resolve_account_id(account_id)
    return RequestDescriptor(method="GET", endpoint=f"/pa/ira/{acct}")


@operation("fundBanking", "getCashBalances", AccountScopedParams)
def get_cash_balances(params: AccountScopedParams, account_id: str) -> RequestDescriptor:
    """Get cash balances (account ledger)."""
    acct = params.resolve_account_id(account_id)
    return RequestDescriptor(method="GET", endpoint=f"/portfolio/{acct}/ledger")
