"""
Resource/operation catalogue.

Importing this package registers every operation module.
"""

from ibkr_portal.ibkr.actions import (  # noqa: F401
    account,
    alerts,
    calendar,
    contracts,
    fa,
    fund_banking,
    market_data,
    orders,
    performance,
    portfolio,
    scanner,
    session,
    trades,
    utility,
    watchlists,
)
from ibkr_portal.ibkr.actions.registry import (
    Operation,
    build_request,
    get_operation,
    list_operations,
    list_resources,
)

__all__ = [
    "Operation",
    "build_request",
    "get_operation",
    "list_operations",
    "list_resources",
]
