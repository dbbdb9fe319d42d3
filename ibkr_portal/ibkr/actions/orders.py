"""
Order placement and management.

placeOrder validates locally before anything is sent. Nothing here adds an
idempotency key: sending the same placeOrder twice places two orders.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from ibkr_portal.ibkr.actions.registry import operation
from ibkr_portal.ibkr.exceptions import IBKRValidationError
from ibkr_portal.ibkr.models import (
    AccountScopedParams,
    ActionParams,
    IdStr,
    RequestDescriptor,
)
from ibkr_portal.ibkr.order_builder import ensure_valid_order, format_order_payload
from ibkr_portal.ibkr.utils import (
    clean_object,
    parse_conid,
    parse_order_side,
    parse_order_type,
    validate_conid,
)


class OrderParams(AccountScopedParams):
    conid: IdStr = ""
    side: str = ""
    order_type: str = ""
    quantity: float = 0
    price: float = 0
    aux_price: float = 0
    tif: str = "DAY"
    sec_type: str = "STK"
    additional_options: dict[str, Any] = Field(default_factory=dict)

    def order_fields(self) -> dict[str, Any]:
        """Order fields in gateway naming; additional options win."""
        try:
            side = parse_order_side(self.side) if self.side else ""
        except ValueError as e:
            raise IBKRValidationError(str(e)) from e
        return {
            "side": side,
            "orderType": parse_order_type(self.order_type) if self.order_type else "",
            "quantity": self.quantity,
            "price": self.price or None,
            "auxPrice": self.aux_price or None,
            "tif": self.tif,
            "secType": self.sec_type,
            **self.additional_options,
        }

    def require_conid(self) -> int:
        if not validate_conid(self.conid):
            raise IBKRValidationError(f"Invalid contract ID (conid): {self.conid!r}")
        return parse_conid(self.conid)


class ModifyOrderParams(OrderParams):
    order_id: IdStr = Field(min_length=1)
    sec_type: str = ""


class OrderIdParams(AccountScopedParams):
    order_id: IdStr = Field(min_length=1)


class OrderReplyParams(ActionParams):
    reply_id: IdStr = Field(min_length=1)
    confirmed: bool = True


class LiveOrderFilters(ActionParams):
    force: bool = False
    account_id: str = ""


class LiveOrdersParams(ActionParams):
    filters: LiveOrderFilters = Field(default_factory=LiveOrderFilters)


@operation("orders", "placeOrder", OrderParams)
def place_order(params: OrderParams, account_id: str) -> RequestDescriptor:
    """Place a new order."""
    acct = params.resolve_account_id(account_id)
    order = params.order_fields()
    ensure_valid_order({"conid": params.conid, **order})
    conid = params.require_conid()
    return RequestDescriptor(
        method="POST",
        endpoint=f"/iserver/account/{acct}/orders",
        body={"orders": [format_order_payload(acct, conid, order)]},
    )


@operation("orders", "placeOrderReply", OrderReplyParams)
def place_order_reply(params: OrderReplyParams, account_id: str) -> RequestDescriptor:
    """Answer an order confirmation question (warnings on placeOrder)."""
    return RequestDescriptor(
        method="POST",
        endpoint=f"/iserver/reply/{params.reply_id}",
        body={"confirmed": params.confirmed},
    )


@operation("orders", "modifyOrder", ModifyOrderParams)
def modify_order(params: ModifyOrderParams, account_id: str) -> RequestDescriptor:
    """Modify an existing order."""
    acct = params.resolve_account_id(account_id)
    conid = params.require_conid() if params.conid else None
    order = params.order_fields()
    return RequestDescriptor(
        method="POST",
        endpoint=f"/iserver/account/{acct}/order/{params.order_id}",
        body=clean_object({"conid": conid, **order}),
    )


@operation("orders", "cancelOrder", OrderIdParams)
def cancel_order(params: OrderIdParams, account_id: str) -> RequestDescriptor:
    """Cancel an order."""
    acct = params.resolve_account_id(account_id)
    return RequestDescriptor(
        method="DELETE",
        endpoint=f"/iserver/account/{acct}/order/{params.order_id}",
    )


@operation("orders", "getLiveOrders", LiveOrdersParams)
def get_live_orders(params: LiveOrdersParams, account_id: str) -> RequestDescriptor:
    """Get live orders for the session."""
    query: dict[str, Any] = {}
    if params.filters.force:
        query["force"] = "true"
    if params.filters.account_id:
        query["accountId"] = params.filters.account_id
    return RequestDescriptor(method="GET", endpoint="/iserver/account/orders", query=query)


@operation("orders", "getOrderStatus", OrderIdParams)
def get_order_status(params: OrderIdParams, account_id: str) -> RequestDescriptor:
    """Get the status of one order."""
    return RequestDescriptor(
        method="GET", endpoint=f"/iserver/account/order/status/{params.order_id}"
    )


def _simulated_order(
    params: OrderParams, account_id: str, suffix: str
) -> RequestDescriptor:
    acct = params.resolve_account_id(account_id)
    order = clean_object(
        {"acctId": acct, "conid": params.require_conid(), **params.order_fields()}
    )
    return RequestDescriptor(
        method="POST",
        endpoint=f"/iserver/account/{acct}/orders/{suffix}",
        body={"orders": [order]},
    )


@operation("orders", "previewOrder", OrderParams)
def preview_order(params: OrderParams, account_id: str) -> RequestDescriptor:
    """Preview an order without placing it."""
    return _simulated_order(params, account_id, "preview")


@operation("orders", "whatIfOrder", OrderParams)
def what_if_order(params: OrderParams, account_id: str) -> RequestDescriptor:
    """Simulate an order's margin and commission impact."""
    return _simulated_order(params, account_id, "whatif")
