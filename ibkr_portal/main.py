#!/usr/bin/env python3
"""
Command line entry point for ibkr-portal.

Runs catalogue operations and poll cycles against a Client Portal Gateway
using credentials from the environment / .env.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import structlog
from rich import box
from rich.console import Console
from rich.table import Table

# Import config FIRST so logging is configured before anything logs
from ibkr_portal.config import config
from ibkr_portal.ibkr.actions import list_operations
from ibkr_portal.ibkr.exceptions import IBKRError
from ibkr_portal.ibkr.node import InteractiveBrokersNode
from ibkr_portal.ibkr.snapshot import JsonFileSnapshotStore
from ibkr_portal.ibkr.trigger import PollTracker, TriggerEvent

logger = structlog.get_logger(__name__)
console = Console()


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="ibkr-portal",
        description="Interactive Brokers Client Portal Gateway actions and polling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List every resource/operation
  ibkr-portal operations

  # Account positions
  ibkr-portal run portfolio getPositions

  # Limit order
  ibkr-portal run orders placeOrder --param conid=265598 --param side=BUY \\
      --param orderType=LMT --param quantity=100 --param price=150

  # One poll cycle for filled orders, state kept between runs
  ibkr-portal poll orderFilled --state-file state/filled.json
        """,
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    ops = subparsers.add_parser("operations", help="List available operations")
    ops.add_argument("resource", nargs="?", default=None, help="Only this resource")

    run = subparsers.add_parser("run", help="Execute one operation")
    run.add_argument("resource", help="Resource name (e.g. orders)")
    run.add_argument("operation", help="Operation name (e.g. placeOrder)")
    run.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Parameter; VALUE is read as JSON when it parses, else as a string",
    )
    run.add_argument(
        "--params-json",
        type=str,
        default=None,
        help="JSON object, or array of objects for a batch; --param values are merged in",
    )
    run.add_argument(
        "--continue-on-fail",
        action="store_true",
        help="Record failing items as {'error': ...} instead of stopping",
    )

    poll = subparsers.add_parser("poll", help="Run one poll cycle")
    poll.add_argument(
        "event",
        choices=[e.value for e in TriggerEvent],
        help="Event to poll for",
    )
    poll.add_argument("--account-id", default="", help="Account for positionChanged")
    poll.add_argument("--conid", default="", help="Contract filter (positions, trades)")
    poll.add_argument(
        "--state-file",
        type=str,
        default=None,
        help=f"Snapshot file (default: {config.snapshot_dir}/<event>.json)",
    )

    return parser.parse_args(argv)


def parse_param(raw: str) -> tuple[str, Any]:
    """Split KEY=VALUE, decoding VALUE as JSON when possible."""
    key, sep, value = raw.partition("=")
    if not sep or not key.strip():
        raise ValueError(f"Expected KEY=VALUE, got {raw!r}")
    try:
        return key.strip(), json.loads(value)
    except json.JSONDecodeError:
        return key.strip(), value


def build_items(args: argparse.Namespace) -> list[dict[str, Any]]:
    """Parameter items for `run`: --params-json (object or array) plus --param overrides."""
    items: list[dict[str, Any]] = [{}]
    if args.params_json:
        loaded = json.loads(args.params_json)
        if isinstance(loaded, dict):
            items = [loaded]
        elif isinstance(loaded, list) and all(isinstance(i, dict) for i in loaded):
            items = loaded or [{}]
        else:
            raise ValueError("--params-json must be a JSON object or array of objects")

    overrides = dict(parse_param(p) for p in args.param)
    return [{**item, **overrides} for item in items]


def state_location(args: argparse.Namespace) -> tuple[Path, str]:
    """Directory and snapshot key for `poll`."""
    if args.state_file:
        path = Path(args.state_file)
        return path.parent, path.stem
    key = f"{args.event}-{args.conid}" if args.conid else args.event
    return config.snapshot_dir, key


def display_operations(resource: str | None = None) -> None:
    table = Table(title="Interactive Brokers operations", box=box.ROUNDED)
    table.add_column("Resource", style="cyan")
    table.add_column("Operation", style="green")
    table.add_column("Description")
    for op in list_operations(resource):
        table.add_row(op.resource, op.name, op.description)
    console.print(table)


def print_json(data: Any) -> None:
    if sys.stdout.isatty():
        console.print_json(data=data)
    else:
        print(json.dumps(data, indent=2, default=str))


def run_command(args: argparse.Namespace) -> int:
    """Dispatch a parsed command. Returns the process exit code."""
    if args.command == "operations":
        display_operations(args.resource)
        return 0

    if args.command == "run":
        node = InteractiveBrokersNode()
        results = node.execute(
            args.resource,
            args.operation,
            build_items(args),
            continue_on_fail=args.continue_on_fail,
        )
        print_json([r.json for r in results])
        return 0

    directory, key = state_location(args)
    tracker = PollTracker(snapshot_store=JsonFileSnapshotStore(directory), trigger_id=key)
    events = tracker.poll(args.event, account_id=args.account_id, conid=args.conid)
    if events is None:
        console.print("[yellow]No new data[/yellow]", highlight=False)
        return 0
    print_json(events)
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point for the application."""
    args = parse_arguments(argv)

    if args.verbose:
        config.log_level = "DEBUG"
    config.apply_log_level()
    logger.debug("cli_start", command=args.command)

    try:
        sys.exit(run_command(args))
    except IBKRError as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}\n", highlight=False)
        sys.exit(1)
    except (ValueError, json.JSONDecodeError) as e:
        console.print(f"\n[bold red]Invalid arguments:[/bold red] {e}\n", highlight=False)
        sys.exit(2)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user.[/yellow]\n")
        sys.exit(1)


if __name__ == "__main__":
    logging.captureWarnings(True)
    main()
