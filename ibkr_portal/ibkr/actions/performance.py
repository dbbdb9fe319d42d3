"""Portfolio analyst (PA) performance data."""

from __future__ import annotations

from pydantic import Field

from ibkr_portal.ibkr.actions.registry import operation
from ibkr_portal.ibkr.models import AccountScopedParams, RequestDescriptor


class PerformanceParams(AccountScopedParams):
    period: str = "1M"


class PaTransactionsParams(AccountScopedParams):
    days: int = Field(default=90, ge=1)
    currency: str = "USD"


@operation("performance", "getPerformance", PerformanceParams)
def get_performance(params: PerformanceParams, account_id: str) -> RequestDescriptor:
    """Get daily performance for a period."""
    return RequestDescriptor(
        method="POST",
        endpoint="/pa/performance",
        body={
            "acctIds": [params.resolve_account_id(account_id)],
            "freq": "D",
            "period": params.period,
        },
    )


@operation("performance", "getTransactionHistory", PaTransactionsParams)
def get_transaction_history(
    params: PaTransactionsParams, account_id: str
) -> RequestDescriptor:
    """Get transactions over the last N days."""
    return RequestDescriptor(
        method="POST",
        endpoint="/pa/transactions",
        body={
            "acctIds": [params.resolve_account_id(account_id)],
            "days": params.days,
            "currency": params.currency,
        },
    )


@operation("performance", "getPortfolioSummary", AccountScopedParams)
def get_portfolio_summary(
    params: AccountScopedParams, account_id: str
) -> RequestDescriptor:
    """Get the PA portfolio summary."""
    return RequestDescriptor(
        method="POST",
        endpoint="/pa/summary",
        body={"acctIds": [params.resolve_account_id(account_id)]},
    )
