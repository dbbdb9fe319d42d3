"""Tests for the batch action executor."""

import pytest

from ibkr_portal.ibkr.exceptions import IBKRAPIError, IBKRValidationError
from ibkr_portal.ibkr.node import ExecutionItem, InteractiveBrokersNode, to_json_items


@pytest.fixture
def make_node(credential_store, fast_settings):
    def factory(transport):
        return InteractiveBrokersNode(
            credential_store=credential_store,
            transport=transport,
            settings=fast_settings,
        )

    return factory


class TestToJsonItems:
    def test_list_is_flattened(self):
        items = to_json_items([{"a": 1}, {"b": 2}], 3)
        assert items == [ExecutionItem({"a": 1}, 3), ExecutionItem({"b": 2}, 3)]

    def test_object(self):
        assert to_json_items({"a": 1}, 0) == [ExecutionItem({"a": 1}, 0)]

    def test_scalars_wrapped(self):
        assert to_json_items(["x"], 0) == [ExecutionItem({"value": "x"}, 0)]


class TestExecute:
    def test_one_request_per_item(self, make_node, make_transport):
        transport = make_transport([{"conid": 1}, {"conid": 2}], {"ok": True})
        results = make_node(transport).execute(
            "portfolio", "getPositions", [{}, {"accountIdOverride": "DU1234567"}]
        )
        assert [r.item_index for r in results] == [0, 0, 1]
        assert transport.calls[0]["url"].endswith("/portfolio/U1234567/positions/0")
        assert transport.calls[1]["url"].endswith("/portfolio/DU1234567/positions/0")

    def test_error_aborts_by_default(self, make_node, make_transport):
        transport = make_transport({"error": "bad"}, {"ok": True})
        with pytest.raises(IBKRAPIError, match="bad"):
            make_node(transport).execute("trades", "getTrades", [{}, {}])
        assert len(transport.calls) == 1

    def test_continue_on_fail_records_errors(self, make_node, make_transport):
        transport = make_transport({"error_code": "10000"}, [{"execution_id": "e1"}])
        results = make_node(transport).execute(
            "trades", "getTrades", [{}, {}], continue_on_fail=True
        )
        assert results == [
            ExecutionItem(
                {"error": "Order rejected - insufficient funds (Code: 10000)"}, 0
            ),
            ExecutionItem({"execution_id": "e1"}, 1),
        ]

    def test_validation_errors_are_per_item(self, make_node, make_transport):
        transport = make_transport({"ok": True})
        results = make_node(transport).execute(
            "orders",
            "cancelOrder",
            [{"orderId": ""}, {"orderId": "7"}],
            continue_on_fail=True,
        )
        assert "error" in results[0].json
        assert results[1].json == {"ok": True}
        assert len(transport.calls) == 1

    def test_unknown_operation_fails_whole_batch(self, make_node, make_transport):
        transport = make_transport()
        with pytest.raises(IBKRValidationError, match="Unknown operation"):
            make_node(transport).execute("orders", "launchRocket", [{}], continue_on_fail=True)
        assert transport.calls == []
