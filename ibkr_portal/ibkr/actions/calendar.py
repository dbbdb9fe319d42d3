"""Trading schedules and exchange holidays."""

from __future__ import annotations

from typing import Literal

from ibkr_portal.ibkr.actions.registry import operation
from ibkr_portal.ibkr.models import ActionParams, RequestDescriptor


class TradingScheduleParams(ActionParams):
    asset_class: str = "STK"
    symbol: str = ""
    exchange: str = ""


class HolidaysParams(ActionParams):
    exchange: str = ""
    direction: Literal["1", "-1"] = "1"


@operation("calendar", "getTradingSchedule", TradingScheduleParams)
def get_trading_schedule(
    params: TradingScheduleParams, account_id: str
) -> RequestDescriptor:
    """Get the trading schedule for a symbol or exchange."""
    query = {"assetClass": params.asset_class}
    if params.symbol:
        query["symbol"] = params.symbol
    if params.exchange:
        query["exchange"] = params.exchange
    return RequestDescriptor(method="GET", endpoint="/trsrv/secdef/schedule", query=query)


@operation("calendar", "getHolidays", HolidaysParams)
def get_holidays(params: HolidaysParams, account_id: str) -> RequestDescriptor:
    """Get upcoming (1) or past (-1) exchange holidays."""
    query = {"direction": params.direction}
    if params.exchange:
        query["exchange"] = params.exchange
    return RequestDescriptor(method="GET", endpoint="/trsrv/calendar", query=query)
