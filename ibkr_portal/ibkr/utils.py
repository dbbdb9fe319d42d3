"""
Parsing and formatting helpers for gateway parameters and payloads.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any
from urllib.parse import quote

# Gateway market data field ids -> readable names
_SNAPSHOT_FIELDS: dict[str, str] = {
    "55": "symbol",
    "31": "lastPrice",
    "84": "bidPrice",
    "86": "askPrice",
    "88": "bidSize",
    "85": "askSize",
    "7762": "volume",
    "70": "high",
    "71": "low",
    "7295": "open",
    "7296": "close",
    "82": "change",
    "83": "changePercent",
}

_ORDER_TYPE_ALIASES: dict[str, str] = {
    "MARKET": "MKT",
    "LIMIT": "LMT",
    "STOP": "STP",
    "STOPLIMIT": "STP_LIMIT",
    "STOP_LIMIT": "STP_LIMIT",
    "TRAILING": "TRAIL",
}

_ORDER_STATUS_LABELS: dict[str, str] = {
    "PendingSubmit": "Pending Submit",
    "PendingCancel": "Pending Cancel",
    "PreSubmitted": "Pre-submitted",
    "Submitted": "Submitted",
    "Cancelled": "Cancelled",
    "Filled": "Filled",
    "Inactive": "Inactive",
    "ApiPending": "API Pending",
    "ApiCancelled": "API Cancelled",
    "Error": "Error",
    "WarnState": "Warning State",
}

_ACCOUNT_ID_RE = re.compile(r"^[A-Z]{1,2}\d{6,}$")


def clean_object(obj: dict[str, Any]) -> dict[str, Any]:
    """Drop None and empty-string values."""
    return {k: v for k, v in obj.items() if v is not None and v != ""}


def validate_conid(conid: str) -> bool:
    if not conid:
        return False
    try:
        return int(conid) > 0
    except ValueError:
        return False


def validate_account_id(account_id: str) -> bool:
    """IBKR account IDs: one or two capitals then at least six digits (U…, DU…, F…)."""
    return bool(account_id) and bool(_ACCOUNT_ID_RE.match(account_id))


def parse_conid(conid: str | int) -> int:
    if isinstance(conid, int):
        return conid
    return int(str(conid).strip())


def parse_order_side(side: str) -> str:
    normalized = side.upper()
    if normalized in ("BUY", "SELL"):
        return normalized
    raise ValueError(f"Invalid order side: {side}. Must be BUY or SELL.")


def parse_order_type(order_type: str) -> str:
    """Map friendly names (LIMIT, STOP_LIMIT, ...) to IBKR order type codes."""
    normalized = order_type.upper()
    return _ORDER_TYPE_ALIASES.get(normalized, normalized)


def parse_order_status(status: str) -> str:
    return _ORDER_STATUS_LABELS.get(status, status)


def format_quantity(quantity: float) -> str:
    # Half rounds up, as the gateway UI does (Python's round() would go to even)
    return str(int(quantity + 0.5) if quantity >= 0 else -int(-quantity + 0.5))


def format_price(price: float, decimals: int = 2) -> str:
    return f"{price:.{decimals}f}"


def build_query_string(params: dict[str, Any]) -> str:
    return "&".join(
        f"{quote(str(key), safe='')}={quote(str(value), safe='')}"
        for key, value in params.items()
        if value is not None
    )


def _to_date(value: date | datetime | str) -> datetime:
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def format_date_ibkr(value: date | datetime | str) -> str:
    """YYYYMMDD"""
    return _to_date(value).strftime("%Y%m%d")


def format_datetime_ibkr(value: datetime | str) -> str:
    """YYYYMMDD-HH:MM:SS"""
    return _to_date(value).strftime("%Y%m%d-%H:%M:%S")


def parse_ibkr_date(value: str) -> datetime:
    if re.fullmatch(r"\d{8}", value):
        return datetime.strptime(value, "%Y%m%d")
    return datetime.fromisoformat(value)


def calculate_duration(amount: int, unit: str) -> str:
    return f"{amount} {unit}"


def calculate_order_value(
    quantity: float, price: float, multiplier: float = 1
) -> float:
    return quantity * price * multiplier


def format_account_id(account_id: str) -> str:
    # Paper accounts start with DU
    if account_id.startswith("DU"):
        return f"{account_id} (Paper)"
    return account_id


def is_authenticated(auth_status: dict[str, Any]) -> bool:
    return auth_status.get("authenticated") is True and auth_status.get("connected") is True


def build_market_data_fields(fields: list[str] | tuple[str, ...]) -> str:
    return ",".join(fields)


def parse_market_data_snapshot(data: dict[str, Any]) -> dict[str, Any]:
    """Rename numeric snapshot field ids; fields the gateway did not send are dropped."""
    parsed: dict[str, Any] = {"conid": data.get("conid")}
    for field_id, name in _SNAPSHOT_FIELDS.items():
        parsed[name] = data.get(field_id)
    return clean_object(parsed)


def format_scanner_filter(
    scan_type: str, instrument: str, filters: list[dict[str, Any]]
) -> dict[str, Any]:
    return {"instrument": instrument, "type": scan_type, "filter": filters}


def is_market_open(schedule: dict[str, Any], now: datetime | None = None) -> bool:
    """
    Compare local wall-clock time against "HH:MM" opening/closing times.

    Both ends are inclusive; a schedule missing either time counts as closed.
    """
    open_time = schedule.get("openingTime")
    close_time = schedule.get("closingTime")
    if not open_time or not close_time:
        return False

    now = now or datetime.now()
    open_hour, open_min = (int(p) for p in str(open_time).split(":")[:2])
    close_hour, close_min = (int(p) for p in str(close_time).split(":")[:2])

    current = now.hour * 60 + now.minute
    return open_hour * 60 + open_min <= current <= close_hour * 60 + close_min
