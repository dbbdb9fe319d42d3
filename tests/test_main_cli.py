"""
Tests for the ibkr-portal CLI.

Argument parsing, parameter decoding and command dispatch with the node and
tracker mocked out.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from ibkr_portal.ibkr.node import ExecutionItem


class TestArgumentParsing:
    def test_run_with_params(self):
        from ibkr_portal.main import parse_arguments

        args = parse_arguments(
            ["run", "orders", "placeOrder", "--param", "conid=265598", "--param", "side=BUY"]
        )
        assert args.command == "run"
        assert args.resource == "orders"
        assert args.operation == "placeOrder"
        assert args.param == ["conid=265598", "side=BUY"]
        assert args.continue_on_fail is False

    def test_poll_rejects_unknown_event(self):
        from ibkr_portal.main import parse_arguments

        with pytest.raises(SystemExit):
            parse_arguments(["poll", "somethingElse"])

    def test_verbose_is_global(self):
        from ibkr_portal.main import parse_arguments

        args = parse_arguments(["--verbose", "operations"])
        assert args.verbose is True


class TestBuildItems:
    def test_param_values_decoded_as_json(self):
        from ibkr_portal.main import parse_param

        assert parse_param("quantity=100") == ("quantity", 100)
        assert parse_param("side=BUY") == ("side", "BUY")
        assert parse_param("filters={\"force\": true}") == ("filters", {"force": True})

    def test_param_without_equals(self):
        from ibkr_portal.main import parse_param

        with pytest.raises(ValueError):
            parse_param("quantity")

    def test_batch_with_overrides(self):
        from ibkr_portal.main import build_items, parse_arguments

        args = parse_arguments(
            [
                "run",
                "orders",
                "cancelOrder",
                "--params-json",
                '[{"orderId": "1"}, {"orderId": "2"}]',
                "--param",
                "accountIdOverride=DU1234567",
            ]
        )
        assert build_items(args) == [
            {"orderId": "1", "accountIdOverride": "DU1234567"},
            {"orderId": "2", "accountIdOverride": "DU1234567"},
        ]

    def test_params_json_must_be_objects(self):
        from ibkr_portal.main import build_items, parse_arguments

        args = parse_arguments(["run", "orders", "cancelOrder", "--params-json", "[1, 2]"])
        with pytest.raises(ValueError):
            build_items(args)

    def test_state_location(self, tmp_path):
        from ibkr_portal.main import parse_arguments, state_location

        args = parse_arguments(["poll", "orderFilled", "--state-file", str(tmp_path / "f.json")])
        assert state_location(args) == (tmp_path, "f")


class TestCommands:
    def test_run_prints_results(self, capsys):
        from ibkr_portal.main import main

        node = MagicMock()
        node.execute.return_value = [ExecutionItem({"conid": 1}, 0)]
        with patch("ibkr_portal.main.InteractiveBrokersNode", return_value=node):
            with pytest.raises(SystemExit) as exc_info:
                main(["run", "portfolio", "getPositions"])

        assert exc_info.value.code == 0
        node.execute.assert_called_once_with(
            "portfolio", "getPositions", [{}], continue_on_fail=False
        )
        assert json.loads(capsys.readouterr().out) == [{"conid": 1}]

    def test_ibkr_error_exits_1(self):
        from ibkr_portal.ibkr.exceptions import IBKRAPIError
        from ibkr_portal.main import main

        node = MagicMock()
        node.execute.side_effect = IBKRAPIError("Order rejected")
        with patch("ibkr_portal.main.InteractiveBrokersNode", return_value=node):
            with pytest.raises(SystemExit) as exc_info:
                main(["run", "orders", "placeOrder"])
        assert exc_info.value.code == 1

    def test_poll_without_events(self, tmp_path):
        from ibkr_portal.main import main

        tracker = MagicMock()
        tracker.poll.return_value = None
        with patch("ibkr_portal.main.PollTracker", return_value=tracker) as tracker_cls:
            with pytest.raises(SystemExit) as exc_info:
                main(["poll", "tradeExecuted", "--conid", "265598", "--state-file", str(tmp_path / "t.json")])

        assert exc_info.value.code == 0
        assert tracker_cls.call_args.kwargs["trigger_id"] == "t"
        tracker.poll.assert_called_once_with("tradeExecuted", account_id="", conid="265598")

    def test_operations_table(self, capsys):
        from ibkr_portal.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["operations", "session"])
        assert exc_info.value.code == 0
        assert "tickle" in capsys.readouterr().out
