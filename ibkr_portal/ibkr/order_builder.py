"""
Order parameter validation and IBKR order payload builder.

Validation runs before any request is sent so that a malformed order never
reaches the gateway; the payload builder produces the dict placed inside
`{"orders": [...]}` for the place/preview/what-if endpoints.
"""

from __future__ import annotations

from typing import Any

import structlog

from ibkr_portal.ibkr.constants import (
    AUX_PRICE_REQUIRED_ORDER_TYPES,
    PRICE_REQUIRED_ORDER_TYPES,
    TRAILING_ORDER_TYPES,
)
from ibkr_portal.ibkr.exceptions import IBKRValidationError
from ibkr_portal.ibkr.utils import clean_object

logger = structlog.get_logger(__name__)

# ══════════════════════════════════════════════════════════════════════════════
# Validation
# ══════════════════════════════════════════════════════════════════════════════


def _positive(value: Any) -> bool:
    try:
        return float(value) > 0
    except (TypeError, ValueError):
        return False


def validate_order_params(
    params: dict[str, Any], order_type: str | None = None
) -> list[str]:
    """
    Check an order parameter dict.

    Args:
        params: Order fields (conid, side, quantity, orderType, price, ...)
        order_type: Overrides params["orderType"] when given

    Returns:
        List of error messages; empty when the order is valid
    """
    errors: list[str] = []
    order_type = order_type if order_type is not None else params.get("orderType")

    if not params.get("conid"):
        errors.append("Contract ID (conid) is required")
    if not params.get("side"):
        errors.append("Order side (BUY/SELL) is required")
    if not _positive(params.get("quantity")):
        errors.append("Quantity must be greater than 0")
    if not order_type:
        errors.append("Order type is required")

    if order_type in PRICE_REQUIRED_ORDER_TYPES and not params.get("price"):
        errors.append(f"Price is required for {order_type} orders")

    if order_type in AUX_PRICE_REQUIRED_ORDER_TYPES and not params.get("auxPrice"):
        errors.append(f"Stop price (auxPrice) is required for {order_type} orders")

    if order_type in TRAILING_ORDER_TYPES and not (
        params.get("trailingAmt") or params.get("trailingPercent")
    ):
        errors.append(
            f"Trailing amount or percent is required for {order_type} orders"
        )

    return errors


def ensure_valid_order(params: dict[str, Any]) -> None:
    """Raise IBKRValidationError listing every problem with the order."""
    errors = validate_order_params(params)
    if errors:
        logger.info("order_rejected_locally", errors=errors)
        raise IBKRValidationError(errors)


# ══════════════════════════════════════════════════════════════════════════════
# Payload Builder
# ══════════════════════════════════════════════════════════════════════════════


def format_order_payload(
    account_id: str,
    conid: int,
    order: dict[str, Any],
) -> dict[str, Any]:
    """
    Build the gateway order dict.

    Fields from `order` win over the defaults below; empty values (None, "")
    are dropped so the gateway applies its own defaults.

    Args:
        account_id: IBKR account ID
        conid: Contract ID
        order: Order fields (side, orderType, quantity, price, ...)

    Returns:
        Dict ready for `{"orders": [payload]}`
    """
    payload = {
        "acctId": account_id,
        "conid": conid,
        "secType": order.get("secType") or None,
        "orderType": order.get("orderType"),
        "side": order.get("side"),
        "quantity": order.get("quantity"),
        "price": order.get("price") or None,
        "auxPrice": order.get("auxPrice") or None,
        "tif": order.get("tif") or "DAY",
        "outsideRTH": order.get("outsideRTH") or False,
        "useAdaptive": order.get("useAdaptive") or False,
        "isCcyConv": order.get("isCcyConv") or False,
        "cOID": order.get("cOID") or None,
        "parentId": order.get("parentId") or None,
        "referrer": order.get("referrer") or None,
        **order,
    }
    return clean_object(payload)


# Scanner filter codes in the order the gateway receives them
_SCANNER_FILTER_CODES: tuple[tuple[str, str], ...] = (
    ("priceAbove", "priceAbove"),
    ("priceBelow", "priceBelow"),
    ("volumeAbove", "volumeAbove"),
    ("marketCapAbove", "marketCapAbove1e6"),
    ("marketCapBelow", "marketCapBelow1e6"),
    ("avgVolumeAbove", "avgVolumeAbove"),
)


def build_scanner_filters(filters: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Convert a scanner filter mapping into the gateway's filter list.

    Zero/empty values are skipped; the output order is fixed regardless of
    the input mapping's order.
    """
    return [
        {"code": code, "value": filters[key]}
        for key, code in _SCANNER_FILTER_CODES
        if filters.get(key)
    ]
