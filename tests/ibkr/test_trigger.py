"""Tests for the polling trigger."""

from datetime import datetime, timezone

import pytest

from ibkr_portal.ibkr.exceptions import IBKRValidationError, TransportError
from ibkr_portal.ibkr.models import PollSnapshot
from ibkr_portal.ibkr.snapshot import InMemorySnapshotStore
from ibkr_portal.ibkr.trigger import (
    PollTracker,
    TriggerEvent,
    diff_alerts,
    diff_orders,
    diff_positions,
    diff_trades,
    order_effective_time,
    parse_order_timestamp,
)

T0 = 1_700_000_000_000
NOW = T0 + 60_000


@pytest.fixture
def store():
    return InMemorySnapshotStore()


@pytest.fixture
def make_tracker(credential_store, store, fast_settings):
    def factory(transport, trigger_id="test"):
        return PollTracker(
            credential_store=credential_store,
            snapshot_store=store,
            transport=transport,
            settings=fast_settings,
            trigger_id=trigger_id,
            clock=lambda: NOW,
        )

    return factory


class TestParseOrderTimestamp:
    EXPECTED = int(datetime(2023, 10, 5, 14, 30, tzinfo=timezone.utc).timestamp() * 1000)

    @pytest.mark.parametrize(
        "value",
        [
            "231005143000",
            "2023-10-05T14:30:00Z",
            "2023-10-05T14:30:00",
            EXPECTED,
            EXPECTED // 1000,
            str(EXPECTED),
        ],
    )
    def test_accepted_formats(self, value):
        assert parse_order_timestamp(value) == self.EXPECTED

    @pytest.mark.parametrize("value", [None, "", "yesterday", True, {"t": 1}])
    def test_unreadable(self, value):
        assert parse_order_timestamp(value) is None

    def test_execution_time_preferred(self):
        order = {"lastExecutionTime_r": T0 + 5, "orderTime": T0}
        assert order_effective_time(order) == T0 + 5

    def test_falls_back_to_order_time(self):
        assert order_effective_time({"orderTime": T0}) == T0

    def test_unreadable_execution_time_falls_back(self):
        order = {"lastExecutionTime_r": "n/a", "lastExecutionTime": "", "orderTime": T0}
        assert order_effective_time(order) == T0

    def test_unreadable_execution_time_still_emits(self):
        orders = [{"status": "Filled", "lastExecutionTime_r": "n/a", "orderTime": T0 + 1}]
        assert diff_orders(orders, TriggerEvent.ORDER_FILLED, T0) == orders


class TestDiffOrders:
    def test_filled_after_last_poll(self):
        orders = [{"orderId": 1, "status": "Filled", "orderTime": T0 + 1}]
        assert diff_orders(orders, TriggerEvent.ORDER_FILLED, T0) == orders

    def test_status_mismatch(self):
        orders = [{"orderId": 1, "status": "Filled", "orderTime": T0 + 1}]
        assert diff_orders(orders, TriggerEvent.NEW_ORDER, T0) == []

    def test_tie_is_excluded(self):
        orders = [{"orderId": 1, "status": "Submitted", "orderTime": T0}]
        assert diff_orders(orders, TriggerEvent.NEW_ORDER, T0) == []

    def test_status_case_insensitive(self):
        orders = [{"orderId": 1, "status": "CANCELLED", "orderTime": T0 + 1}]
        assert diff_orders(orders, TriggerEvent.ORDER_CANCELED, T0) == orders

    def test_unparsable_time_skipped(self):
        orders = [{"orderId": 1, "status": "Filled", "orderTime": "soon"}]
        assert diff_orders(orders, TriggerEvent.ORDER_FILLED, 0) == []


class TestDiffPositions:
    PREVIOUS = {"101": {"conid": 101, "position": 10, "avgCost": 5}}

    def test_updated_and_new(self):
        current = [
            {"conid": 101, "position": 20, "avgCost": 5},
            {"conid": 202, "position": 1, "avgCost": 2},
        ]
        events, snapshot = diff_positions(current, self.PREVIOUS)
        assert events == [
            {
                "conid": 101,
                "position": 20,
                "avgCost": 5,
                "changeType": "updated",
                "previousPosition": 10,
                "previousAvgCost": 5,
            },
            {"conid": 202, "position": 1, "avgCost": 2, "changeType": "new"},
        ]
        assert set(snapshot) == {"101", "202"}

    def test_closed(self):
        previous = {
            "101": {"conid": 101, "position": 20, "avgCost": 5},
            "202": {"conid": 202, "position": 1, "avgCost": 2},
        }
        events, snapshot = diff_positions([{"conid": 202, "position": 1, "avgCost": 2}], previous)
        assert events == [{"conid": 101, "position": 0, "avgCost": 5, "changeType": "closed"}]
        assert set(snapshot) == {"202"}

    def test_unchanged_emits_nothing(self):
        events, _ = diff_positions([{"conid": 101, "position": 10, "avgCost": 5}], self.PREVIOUS)
        assert events == []

    def test_conid_filter(self):
        current = [
            {"conid": 101, "position": 20, "avgCost": 5},
            {"conid": 202, "position": 1, "avgCost": 2},
        ]
        events, snapshot = diff_positions(current, self.PREVIOUS, conid_filter="202")
        assert [e["conid"] for e in events] == [202]
        assert set(snapshot) == {"101", "202"}


class TestDiffAlertsAndTrades:
    def test_only_new_triggered_alerts(self):
        alerts = [
            {"alert_id": 1, "alert_triggered": True},
            {"alert_id": 2, "alert_triggered": True},
            {"alert_id": 3, "alert_triggered": False},
        ]
        events, ids = diff_alerts(alerts, ["1"])
        assert [a["alert_id"] for a in events] == [2]
        assert ids == ["1", "2", "3"]

    def test_new_trades_with_numeric_conid_filter(self):
        trades = [
            {"execution_id": "e1", "conid": 265598},
            {"execution_id": "e2", "conid": 265598},
            {"execution_id": "e3", "conid": 8314},
        ]
        events, ids = diff_trades(trades, ["e1"], conid_filter="265598")
        assert [t["execution_id"] for t in events] == ["e2"]
        assert ids == ["e1", "e2", "e3"]


class TestPollTracker:
    def test_order_filled_cycle(self, make_tracker, make_transport, store):
        store.save("test", PollSnapshot(last_poll_time=T0))
        order = {"orderId": 7, "status": "Filled", "orderTime": T0 + 1}
        transport = make_transport({"orders": [order]})

        events = make_tracker(transport).poll("orderFilled")

        assert events == [order]
        assert transport.last_call["url"].endswith("/v1/api/iserver/account/orders")
        assert store.load("test").last_poll_time == NOW

    def test_same_order_under_new_order_is_no_data(self, make_tracker, make_transport, store):
        store.save("test", PollSnapshot(last_poll_time=T0))
        transport = make_transport(
            {"orders": [{"orderId": 7, "status": "Filled", "orderTime": T0 + 1}]}
        )
        assert make_tracker(transport).poll(TriggerEvent.NEW_ORDER) is None
        # Snapshot still advances on an empty cycle
        assert store.load("test").last_poll_time == NOW

    def test_position_cycles(self, make_tracker, make_transport, store):
        store.save(
            "test",
            PollSnapshot(last_positions={"101": {"conid": 101, "position": 10, "avgCost": 5}}),
        )
        transport = make_transport(
            [
                {"conid": 101, "position": 20, "avgCost": 5},
                {"conid": 202, "position": 1, "avgCost": 2},
            ],
            [{"conid": 202, "position": 1, "avgCost": 2}],
        )
        tracker = make_tracker(transport)

        first = tracker.poll("positionChanged")
        assert [(e["conid"], e["changeType"]) for e in first] == [(101, "updated"), (202, "new")]
        assert first[0]["previousPosition"] == 10
        assert transport.last_call["url"].endswith("/portfolio/U1234567/positions/0")

        second = tracker.poll("positionChanged")
        assert second == [{"conid": 101, "position": 0, "avgCost": 5, "changeType": "closed"}]
        assert set(store.load("test").last_positions) == {"202"}

    def test_position_account_override(self, make_tracker, make_transport):
        transport = make_transport([])
        assert make_tracker(transport).poll("positionChanged", account_id="DU7654321") is None
        assert transport.last_call["url"].endswith("/portfolio/DU7654321/positions/0")

    def test_alert_seen_untriggered_never_fires(self, make_tracker, make_transport):
        """An id recorded while untriggered stays suppressed once it triggers."""
        transport = make_transport(
            [{"alert_id": 5, "alert_triggered": False}],
            [{"alert_id": 5, "alert_triggered": True}],
        )
        tracker = make_tracker(transport)
        assert tracker.poll("alertTriggered") is None
        assert tracker.poll("alertTriggered") is None
        assert tracker.snapshot.last_alert_ids == ["5"]

    def test_alert_seen_once(self, make_tracker, make_transport):
        alert = {"alert_id": 11, "alert_name": "AAPL > 200", "alert_triggered": True}
        tracker = make_tracker(make_transport([alert], [alert]))
        assert tracker.poll("alertTriggered") == [alert]
        assert tracker.poll("alertTriggered") is None

    def test_single_alert_object(self, make_tracker, make_transport):
        alert = {"alert_id": 11, "alert_triggered": True}
        assert make_tracker(make_transport(alert)).poll("alertTriggered") == [alert]

    def test_trades(self, make_tracker, make_transport, store):
        trades = [{"execution_id": "e1", "conid": 1}, {"execution_id": "e2", "conid": 2}]
        tracker = make_tracker(make_transport(trades, trades))
        assert len(tracker.poll("tradeExecuted")) == 2
        assert tracker.poll("tradeExecuted") is None
        assert store.load("test").last_trade_ids == ["e1", "e2"]

    def test_not_authenticated_is_quiet(self, make_tracker, make_transport, store):
        store.save("test", PollSnapshot(last_poll_time=T0))
        transport = make_transport(TransportError("HTTP 401", status_code=401))
        assert make_tracker(transport).poll("orderFilled") is None
        assert store.load("test").last_poll_time == T0

    def test_api_error_is_swallowed(self, make_tracker, make_transport, store):
        store.save("test", PollSnapshot(last_trade_ids=["e1"]))
        transport = make_transport({"error": "Internal error", "error_code": "2100"})
        assert make_tracker(transport).poll("tradeExecuted") is None
        assert store.load("test").last_trade_ids == ["e1"]

    def test_unexpected_errors_propagate(self, make_tracker, make_transport):
        transport = make_transport(RuntimeError("bug"))
        with pytest.raises(RuntimeError):
            make_tracker(transport).poll("tradeExecuted")

    def test_unknown_event(self, make_tracker, make_transport):
        with pytest.raises(IBKRValidationError, match="Unknown trigger event"):
            make_tracker(make_transport()).poll("somethingElse")

    def test_trackers_do_not_share_state(self, make_tracker, make_transport):
        alert = {"alert_id": 1, "alert_triggered": True}
        first = make_tracker(make_transport([alert]), trigger_id="a")
        second = make_tracker(make_transport([alert]), trigger_id="b")
        assert first.poll("alertTriggered") == [alert]
        assert second.poll("alertTriggered") == [alert]
