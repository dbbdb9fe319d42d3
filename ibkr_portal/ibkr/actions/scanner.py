"""Market scanners."""

from __future__ import annotations

from pydantic import Field

from ibkr_portal.ibkr.actions.registry import operation
from ibkr_portal.ibkr.constants import SCANNER_MAX_RESULTS
from ibkr_portal.ibkr.models import ActionParams, RequestDescriptor
from ibkr_portal.ibkr.order_builder import build_scanner_filters
from ibkr_portal.ibkr.utils import format_scanner_filter


class ScannerFilters(ActionParams):
    price_above: float | None = None
    price_below: float | None = None
    volume_above: float | None = None
    market_cap_above: float | None = None
    market_cap_below: float | None = None
    avg_volume_above: float | None = None


class RunScannerParams(ActionParams):
    instrument: str = Field(min_length=1)
    scan_type: str = Field(min_length=1)
    filters: ScannerFilters = Field(default_factory=ScannerFilters)
    location: str = ""
    size: int = Field(default=25, ge=0)


@operation("scanner", "getScannerParams")
def get_scanner_params(params: ActionParams, account_id: str) -> RequestDescriptor:
    """Get the scanner parameter tree."""
    return RequestDescriptor(method="GET", endpoint="/iserver/scanner/params")


@operation("scanner", "runScanner", RunScannerParams)
def run_scanner(params: RunScannerParams, account_id: str) -> RequestDescriptor:
    """Run a market scanner."""
    filters = build_scanner_filters(
        params.filters.model_dump(by_alias=True, exclude_none=True)
    )
    body = format_scanner_filter(params.scan_type, params.instrument, filters)
    if params.location:
        body["location"] = params.location
    if params.size:
        body["size"] = str(min(params.size, SCANNER_MAX_RESULTS))
    return RequestDescriptor(method="POST", endpoint="/iserver/scanner/run", body=body)


@operation("scanner", "getHMDSScannerParams")
def get_hmds_scanner_params(params: ActionParams, account_id: str) -> RequestDescriptor:
    """Get the historical (HMDS) scanner parameter tree."""
    return RequestDescriptor(method="GET", endpoint="/hmds/scanner/params")
