"""Market data snapshots, history and subscriptions."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from ibkr_portal.ibkr.actions.registry import operation
from ibkr_portal.ibkr.constants import BAR_SIZES, DEFAULT_SNAPSHOT_FIELDS, DURATION_UNITS
from ibkr_portal.ibkr.models import ActionParams, RequestDescriptor
from ibkr_portal.ibkr.utils import build_market_data_fields


class SnapshotParams(ActionParams):
    conids: str = Field(min_length=1)
    fields: list[str] = Field(default_factory=lambda: list(DEFAULT_SNAPSHOT_FIELDS))

    @field_validator("conids", mode="before")
    @classmethod
    def _join_conids(cls, value):
        if isinstance(value, (list, tuple)):
            return ",".join(str(v) for v in value)
        return str(value) if isinstance(value, int) else value

    @field_validator("fields", mode="before")
    @classmethod
    def _split_fields(cls, value):
        if isinstance(value, str):
            return [f.strip() for f in value.split(",") if f.strip()]
        return value


class HistoryOptions(ActionParams):
    exchange: str = ""
    outside_rth: bool = False
    start_time: str = ""


class HistoryParams(ActionParams):
    conid: int = Field(gt=0)
    bar_size: str = "1day"
    duration_amount: int = Field(default=1, ge=1)
    duration_unit: str = "M"
    additional_options: HistoryOptions = Field(default_factory=HistoryOptions)

    @field_validator("bar_size")
    @classmethod
    def _known_bar_size(cls, value: str) -> str:
        if value not in BAR_SIZES:
            raise ValueError(f"must be one of {', '.join(BAR_SIZES)}")
        return value

    @field_validator("duration_unit")
    @classmethod
    def _known_unit(cls, value: str) -> str:
        if value not in DURATION_UNITS:
            raise ValueError(f"must be one of {', '.join(DURATION_UNITS)}")
        return value


class ConidParams(ActionParams):
    conid: int = Field(gt=0)


@operation("marketData", "getMarketDataSnapshot", SnapshotParams)
def get_market_data_snapshot(params: SnapshotParams, account_id: str) -> RequestDescriptor:
    """Get a market data snapshot for one or more contracts."""
    return RequestDescriptor(
        method="GET",
        endpoint="/iserver/marketdata/snapshot",
        query={
            "conids": params.conids,
            "fields": build_market_data_fields(params.fields),
        },
    )


@operation("marketData", "getMarketDataHistory", HistoryParams)
def get_market_data_history(params: HistoryParams, account_id: str) -> RequestDescriptor:
    """Get historical bars."""
    query: dict[str, Any] = {
        "conid": str(params.conid),
        "period": f"{params.duration_amount}{params.duration_unit}",
        "bar": params.bar_size,
    }
    options = params.additional_options
    if options.exchange:
        query["exchange"] = options.exchange
    if options.outside_rth:
        query["outsideRth"] = "true"
    if options.start_time:
        query["startTime"] = options.start_time
    return RequestDescriptor(
        method="GET", endpoint="/iserver/marketdata/history", query=query
    )


@operation("marketData", "unsubscribeMarketData", ConidParams)
def unsubscribe_market_data(params: ConidParams, account_id: str) -> RequestDescriptor:
    """Stop streaming market data for one contract."""
    return RequestDescriptor(
        method="GET", endpoint=f"/iserver/marketdata/{params.conid}/unsubscribe"
    )


@operation("marketData", "unsubscribeAll")
def unsubscribe_all(params: ActionParams, account_id: str) -> RequestDescriptor:
    """Stop all market data streams."""
    return RequestDescriptor(method="GET", endpoint="/iserver/marketdata/unsubscribeall")
