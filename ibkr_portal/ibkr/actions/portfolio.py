"""Portfolio positions and allocation."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from ibkr_portal.ibkr.actions.registry import operation
from ibkr_portal.ibkr.models import AccountScopedParams, RequestDescriptor


class PositionsParams(AccountScopedParams):
    sort: str = "position"
    direction: Literal["a", "d"] = "a"


class PositionsPageParams(PositionsParams):
    page_id: int = Field(default=0, ge=0)


class PositionByConidParams(AccountScopedParams):
    conid: int = Field(gt=0)


class AllocationParams(AccountScopedParams):
    model: str = ""


@operation("portfolio", "getPositions", PositionsParams)
def get_positions(params: PositionsParams, account_id: str) -> RequestDescriptor:
    """Get the first page of positions."""
    acct = params.resolve_account_id(account_id)
    return RequestDescriptor(
        method="GET",
        endpoint=f"/portfolio/{acct}/positions/0",
        query={"sort": params.sort, "direction": params.direction},
    )


@operation("portfolio", "getPositionByConid", PositionByConidParams)
def get_position_by_conid(
    params: PositionByConidParams, account_id: str
) -> RequestDescriptor:
    """Get the position in one contract."""
    acct = params.resolve_account_id(account_id)
    return RequestDescriptor(
        method="GET", endpoint=f"/portfolio/{acct}/position/{params.conid}"
    )


@operation("portfolio", "getPositionsByPage", PositionsPageParams)
def get_positions_by_page(
    params: PositionsPageParams, account_id: str
) -> RequestDescriptor:
    """Get one page of positions."""
    acct = params.resolve_account_id(account_id)
    return RequestDescriptor(
        method="GET",
        endpoint=f"/portfolio/{acct}/positions/{params.page_id}",
        query={"sort": params.sort, "direction": params.direction},
    )


@operation("portfolio", "invalidatePositionCache", AccountScopedParams)
def invalidate_position_cache(
    params: AccountScopedParams, account_id: str
) -> RequestDescriptor:
    """Force the gateway to refresh its position cache."""
    acct = params.resolve_account_id(account_id)
    return RequestDescriptor(
        method="POST", endpoint=f"/portfolio/{acct}/positions/invalidate"
    )


def allocation_request(params: AllocationParams, account_id: str) -> RequestDescriptor:
    acct = params.resolve_account_id(account_id)
    query = {"model": params.model} if params.model else {}
    return RequestDescriptor(
        method="GET", endpoint=f"/portfolio/{acct}/allocation", query=query
    )


@operation("portfolio", "getAllocations", AllocationParams)
def get_allocations(params: AllocationParams, account_id: str) -> RequestDescriptor:
    """Get allocation by asset class, sector and group."""
    return allocation_request(params, account_id)
