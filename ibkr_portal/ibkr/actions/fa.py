"""Financial advisor accounts and allocation models."""

from __future__ import annotations

from pydantic import Field

from ibkr_portal.ibkr.actions.portfolio import AllocationParams, allocation_request
from ibkr_portal.ibkr.actions.registry import operation
from ibkr_portal.ibkr.models import ActionParams, IdStr, RequestDescriptor


class AllocationEntry(ActionParams):
    account_id: IdStr = Field(min_length=1)
    percentage: float = Field(ge=0, le=100)


class AllocationList(ActionParams):
    allocation: list[AllocationEntry] = Field(default_factory=list)


class SetAllocationParams(AllocationParams):
    allocations: AllocationList


@operation("fa", "getFAAccounts")
def get_fa_accounts(params: ActionParams, account_id: str) -> RequestDescriptor:
    """List the advisor's client accounts."""
    return RequestDescriptor(method="GET", endpoint="/portfolio/accounts")


@operation("fa", "getFAAllocation", AllocationParams)
def get_fa_allocation(params: AllocationParams, account_id: str) -> RequestDescriptor:
    """Get allocation, optionally for one model."""
    return allocation_request(params, account_id)


@operation("fa", "setFAAllocation", SetAllocationParams)
def set_fa_allocation(params: SetAllocationParams, account_id: str) -> RequestDescriptor:
    """Set the allocation percentages of a model."""
    acct = params.resolve_account_id(account_id)
    return RequestDescriptor(
        method="POST",
        endpoint=f"/portfolio/{acct}/allocation",
        body={
            "model": params.model,
            "allocations": [
                {"acctId": entry.account_id, "amount": entry.percentage}
                for entry in params.allocations.allocation
            ],
        },
    )
