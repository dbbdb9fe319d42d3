"""
Polling trigger: turns "get the current collection" endpoints into a stream
of incremental events.

Each poll cycle fetches one collection (orders, alerts, positions or trades),
diffs it against the snapshot persisted by the previous cycle, and replaces
that snapshot with the fresh collection. A cycle that produces nothing
returns None so the host can skip the workflow run entirely.

The diff functions are pure; PollTracker wires them to the dispatcher and a
SnapshotStore.
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import structlog

from ibkr_portal.config import Settings, config, runtime
from ibkr_portal.ibkr.client import IbkrClient
from ibkr_portal.ibkr.exceptions import IBKRAuthError, IBKRError, IBKRValidationError
from ibkr_portal.ibkr.models import PollSnapshot, RequestDescriptor
from ibkr_portal.ibkr.snapshot import InMemorySnapshotStore, SnapshotStore
from ibkr_portal.ibkr.transport import HttpTransport
from ibkr_portal.ibkr_config import (
    CREDENTIALS_NAME,
    CredentialStore,
    EnvCredentialStore,
)

logger = structlog.get_logger(__name__)


class TriggerEvent(str, Enum):
    NEW_ORDER = "newOrder"
    ORDER_FILLED = "orderFilled"
    ORDER_CANCELED = "orderCanceled"
    ALERT_TRIGGERED = "alertTriggered"
    POSITION_CHANGED = "positionChanged"
    TRADE_EXECUTED = "tradeExecuted"


# Order status (lowercased) each order event fires on
ORDER_EVENT_STATUS: dict[TriggerEvent, str] = {
    TriggerEvent.NEW_ORDER: "submitted",
    TriggerEvent.ORDER_FILLED: "filled",
    TriggerEvent.ORDER_CANCELED: "cancelled",
}

_IBKR_COMPACT_TIME = re.compile(r"^\d{12}$")  # YYMMDDhhmmss


def _now_ms() -> int:
    return int(time.time() * 1000)


def parse_order_timestamp(value: Any) -> int | None:
    """
    Parse an order time into epoch milliseconds.

    Accepts epoch seconds or milliseconds (numbers or digit strings), the
    gateway's compact `YYMMDDhhmmss` form (UTC) and ISO-8601. Returns None
    when the value cannot be read.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, str):
        text = value.strip()
        if _IBKR_COMPACT_TIME.match(text):
            try:
                parsed = datetime.strptime(text, "%y%m%d%H%M%S")
            except ValueError:
                return None
            return int(parsed.replace(tzinfo=timezone.utc).timestamp() * 1000)
        try:
            value = float(text)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                return None
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return int(parsed.timestamp() * 1000)

    if isinstance(value, (int, float)):
        # Anything below ~1973 in milliseconds is taken as seconds
        return int(value) if value >= 1e11 else int(value * 1000)
    return None


def order_effective_time(order: dict[str, Any]) -> int | None:
    """First readable of the last execution time and the order time."""
    for key in ("lastExecutionTime_r", "lastExecutionTime", "orderTime"):
        if not order.get(key):
            continue
        parsed = parse_order_timestamp(order[key])
        if parsed is not None:
            return parsed
    return None


# ══════════════════════════════════════════════════════════════════════════════
# Diffing
# ══════════════════════════════════════════════════════════════════════════════


def diff_orders(
    orders: list[dict[str, Any]],
    event: TriggerEvent,
    last_poll_time: int,
) -> list[dict[str, Any]]:
    """Orders newer than `last_poll_time` (strictly) whose status matches `event`."""
    wanted = ORDER_EVENT_STATUS[event]
    events = []
    for order in orders:
        order_time = order_effective_time(order)
        if order_time is None or order_time <= last_poll_time:
            continue
        if str(order.get("status") or "").lower() == wanted:
            events.append(order)
    return events


def diff_alerts(
    alerts: list[dict[str, Any]],
    last_alert_ids: list[str],
) -> tuple[list[dict[str, Any]], list[str]]:
    """
    Triggered alerts whose id was not seen last cycle.

    Returns (events, current_ids). The id set covers every current alert,
    triggered or not.
    """
    seen = set(last_alert_ids)
    events = []
    current_ids = []
    for alert in alerts:
        alert_id = str(alert.get("alert_id"))
        current_ids.append(alert_id)
        if alert.get("alert_triggered") and alert_id not in seen:
            events.append(alert)
    return events, current_ids


def diff_positions(
    positions: list[dict[str, Any]],
    last_positions: dict[str, dict[str, Any]],
    conid_filter: str = "",
) -> tuple[list[dict[str, Any]], dict[str, dict[str, Any]]]:
    """
    Three-way position diff keyed by conid.

    New conids emit changeType "new"; a changed quantity or average cost
    emits "updated" with the previous values; conids that disappeared emit
    "closed" with position 0. Returns (events, current_map). The current map
    always holds every fetched position, filter or not.
    """
    current = {str(p.get("conid")): p for p in positions}
    events: list[dict[str, Any]] = []

    for conid, position in current.items():
        if conid_filter and conid != conid_filter:
            continue
        previous = last_positions.get(conid)
        if previous is None:
            events.append({**position, "changeType": "new"})
        elif (
            previous.get("position") != position.get("position")
            or previous.get("avgCost") != position.get("avgCost")
        ):
            events.append(
                {
                    **position,
                    "changeType": "updated",
                    "previousPosition": previous.get("position"),
                    "previousAvgCost": previous.get("avgCost"),
                }
            )

    for conid, previous in last_positions.items():
        if conid_filter and conid != conid_filter:
            continue
        if conid not in current:
            events.append({**previous, "changeType": "closed", "position": 0})

    return events, current


def diff_trades(
    trades: list[dict[str, Any]],
    last_trade_ids: list[str],
    conid_filter: str = "",
) -> tuple[list[dict[str, Any]], list[str]]:
    """Trades with an execution id not seen last cycle. Returns (events, current_ids)."""
    seen = set(last_trade_ids)
    events = []
    current_ids = []
    for trade in trades:
        trade_id = str(trade.get("execution_id"))
        current_ids.append(trade_id)
        if trade_id in seen:
            continue
        if not conid_filter or str(trade.get("conid")) == conid_filter:
            events.append(trade)
    return events, current_ids


def _as_list(response: Any, key: str | None = None) -> list[dict[str, Any]]:
    if key and isinstance(response, dict):
        response = response.get(key) or []
    if isinstance(response, dict):
        return [response]
    if isinstance(response, list):
        return [r for r in response if isinstance(r, dict)]
    return []


# ══════════════════════════════════════════════════════════════════════════════
# Tracker
# ══════════════════════════════════════════════════════════════════════════════


class PollTracker:
    """
    Runs poll cycles for one trigger instance.

    The host calls `poll()` at most once at a time per instance; the snapshot
    is read at the start of a cycle and written only when the cycle succeeds.

    Usage:
        tracker = PollTracker(trigger_id="orders-filled")
        events = tracker.poll("orderFilled")
        if events is None:
            ...  # nothing happened, skip the run
    """

    def __init__(
        self,
        credential_store: CredentialStore | None = None,
        snapshot_store: SnapshotStore | None = None,
        transport: HttpTransport | None = None,
        settings: Settings | None = None,
        trigger_id: str = "default",
        clock: Callable[[], int] = _now_ms,
    ):
        self._credential_store = credential_store or EnvCredentialStore()
        self._snapshot_store = snapshot_store or InMemorySnapshotStore()
        self._transport = transport
        self._settings = settings or config
        self._trigger_id = trigger_id
        self._clock = clock
        runtime.initialize()

    @property
    def snapshot(self) -> PollSnapshot:
        return self._snapshot_store.load(self._trigger_id)

    def poll(
        self,
        event: str | TriggerEvent,
        account_id: str = "",
        conid: str = "",
    ) -> list[dict[str, Any]] | None:
        """
        Run one poll cycle.

        Args:
            event: One of TriggerEvent's values
            account_id: Overrides the credentials' account (positions only)
            conid: Contract filter (positions and trades only)

        Returns:
            Non-empty list of event records, or None when there is nothing new

        Raises:
            IBKRValidationError: unknown event name
        """
        try:
            event = TriggerEvent(event)
        except ValueError as e:
            raise IBKRValidationError(f"Unknown trigger event: {event}") from e

        conid = str(conid).strip()
        snapshot = self._snapshot_store.load(self._trigger_id)
        credentials = self._credential_store.get_credentials(CREDENTIALS_NAME)
        client = IbkrClient(credentials, self._transport, self._settings)

        try:
            events = self._run_cycle(client, event, snapshot, account_id, conid)
        except IBKRAuthError as e:
            logger.warning(
                "poll_not_authenticated",
                poll_event=event.value,
                hint="Authenticate via the Client Portal Gateway login page",
                error=str(e),
            )
            return None
        except IBKRError as e:
            logger.error("poll_failed", poll_event=event.value, error=str(e))
            return None

        self._snapshot_store.save(self._trigger_id, snapshot)

        if not events:
            logger.debug("poll_no_new_data", poll_event=event.value)
            return None

        logger.info("poll_events_emitted", poll_event=event.value, count=len(events))
        return events

    def _run_cycle(
        self,
        client: IbkrClient,
        event: TriggerEvent,
        snapshot: PollSnapshot,
        account_id: str,
        conid: str,
    ) -> list[dict[str, Any]]:
        """Fetch, diff and update `snapshot` in place. Returns the events."""
        if event in ORDER_EVENT_STATUS:
            response = client.request(
                RequestDescriptor(method="GET", endpoint="/iserver/account/orders")
            )
            now = self._clock()
            events = diff_orders(
                _as_list(response, "orders"), event, snapshot.last_poll_time
            )
            snapshot.last_poll_time = now
            return events

        if event is TriggerEvent.ALERT_TRIGGERED:
            response = client.request(
                RequestDescriptor(method="GET", endpoint="/iserver/account/mta")
            )
            events, snapshot.last_alert_ids = diff_alerts(
                _as_list(response), snapshot.last_alert_ids
            )
            return events

        if event is TriggerEvent.POSITION_CHANGED:
            acct = account_id or client.account_id
            if not acct:
                raise IBKRValidationError("Account ID is required for positionChanged")
            response = client.request(
                RequestDescriptor(method="GET", endpoint=f"/portfolio/{acct}/positions/0")
            )
            events, snapshot.last_positions = diff_positions(
                _as_list(response), snapshot.last_positions, conid
            )
            return events

        response = client.request(
            RequestDescriptor(method="GET", endpoint="/iserver/account/trades")
        )
        events, snapshot.last_trade_ids = diff_trades(
            _as_list(response), snapshot.last_trade_ids, conid
        )
        return events
