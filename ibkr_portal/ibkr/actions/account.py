"""Account information and account switching."""

from __future__ import annotations

from ibkr_portal.ibkr.actions.registry import operation
from ibkr_portal.ibkr.models import AccountScopedParams, ActionParams, RequestDescriptor


@operation("account", "getAccounts")
def get_accounts(params: ActionParams, account_id: str) -> RequestDescriptor:
    """List accounts visible to the session."""
    return RequestDescriptor(method="GET", endpoint="/portfolio/accounts")


@operation("account", "switchAccount", AccountScopedParams)
def switch_account(params: AccountScopedParams, account_id: str) -> RequestDescriptor:
    """Switch the session's active account."""
    return RequestDescriptor(
        method="POST",
        endpoint="/iserver/account",
        body={"acctId": params.resolve_account_id(account_id)},
    )


@operation("account", "getAccountSummary", AccountScopedParams)
def get_account_summary(
    params: AccountScopedParams, account_id: str
) -> RequestDescriptor:
    """Get account summary."""
    acct = params.resolve_account_id(account_id)
    return RequestDescriptor(method="GET", endpoint=f"/portfolio/{acct}/summary")


@operation("account", "getAccountLedger", AccountScopedParams)
def get_account_ledger(
    params: AccountScopedParams, account_id: str
) -> RequestDescriptor:
    """Get cash balances per currency."""
    acct = params.resolve_account_id(account_id)
    return RequestDescriptor(method="GET", endpoint=f"/portfolio/{acct}/ledger")


@operation("account", "getAccountMetadata", AccountScopedParams)
def get_account_metadata(
    params: AccountScopedParams, account_id: str
) -> RequestDescriptor:
    """Get account metadata."""
    acct = params.resolve_account_id(account_id)
    return RequestDescriptor(method="GET", endpoint=f"/portfolio/{acct}/meta")


@operation("account", "getPnLPartitioned")
def get_pnl_partitioned(params: ActionParams, account_id: str) -> RequestDescriptor:
    """Get partitioned profit and loss."""
    return RequestDescriptor(method="GET", endpoint="/iserver/account/pnl/partitioned")
