"""Gateway utilities."""

from __future__ import annotations

from pydantic import Field

from ibkr_portal.ibkr.actions.registry import operation
from ibkr_portal.ibkr.models import ActionParams, RequestDescriptor


class SearchSymbolParams(ActionParams):
    symbol: str = Field(min_length=1)
    sec_type: str = ""


@operation("utility", "getSsoValidate")
def get_sso_validate(params: ActionParams, account_id: str) -> RequestDescriptor:
    """Validate the SSO session."""
    return RequestDescriptor(method="GET", endpoint="/sso/validate")


@operation("utility", "getPing")
def get_ping(params: ActionParams, account_id: str) -> RequestDescriptor:
    """Ping the gateway (tickle)."""
    return RequestDescriptor(method="POST", endpoint="/tickle")


@operation("utility", "getGWVersion")
def get_gw_version(params: ActionParams, account_id: str) -> RequestDescriptor:
    """Get gateway version information."""
    return RequestDescriptor(method="GET", endpoint="/about")


@operation("utility", "searchSymbol", SearchSymbolParams)
def search_symbol(params: SearchSymbolParams, account_id: str) -> RequestDescriptor:
    """Search contracts by symbol."""
    query = {"symbol": params.symbol}
    if params.sec_type:
        query["secType"] = params.sec_type
    return RequestDescriptor(method="GET", endpoint="/iserver/secdef/search", query=query)
