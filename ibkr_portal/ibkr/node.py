"""
Action executor.

Runs one resource/operation over a batch of parameter items. Each item is
validated, turned into a RequestDescriptor and dispatched; results come back
as flat JSON items tagged with the index of the input item that produced
them.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import structlog

from ibkr_portal.config import Settings, config, runtime
from ibkr_portal.ibkr.actions import build_request, get_operation
from ibkr_portal.ibkr.client import IbkrClient
from ibkr_portal.ibkr.exceptions import IBKRError
from ibkr_portal.ibkr.transport import HttpTransport
from ibkr_portal.ibkr_config import (
    CREDENTIALS_NAME,
    CredentialStore,
    EnvCredentialStore,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ExecutionItem:
    json: dict[str, Any]
    item_index: int


def to_json_items(response: Any, item_index: int) -> list[ExecutionItem]:
    """Flatten an object-or-array response into one item per object."""
    records = response if isinstance(response, list) else [response]
    return [
        ExecutionItem(
            json=record if isinstance(record, dict) else {"value": record},
            item_index=item_index,
        )
        for record in records
    ]


class InteractiveBrokersNode:
    """
    Executes catalogue operations for a host.

    Usage:
        node = InteractiveBrokersNode()
        items = node.execute("portfolio", "getPositions", [{}])
    """

    def __init__(
        self,
        credential_store: CredentialStore | None = None,
        transport: HttpTransport | None = None,
        settings: Settings | None = None,
    ):
        self._credential_store = credential_store or EnvCredentialStore()
        self._transport = transport
        self._settings = settings or config
        runtime.initialize()

    def _client(self) -> IbkrClient:
        credentials = self._credential_store.get_credentials(CREDENTIALS_NAME)
        return IbkrClient(credentials, self._transport, self._settings)

    def execute_item(
        self,
        client: IbkrClient,
        resource: str,
        operation: str,
        params: Mapping[str, Any],
    ) -> dict | list:
        """Validate, build and dispatch a single item."""
        descriptor = build_request(resource, operation, params, client.account_id)
        return client.request(descriptor)

    def execute(
        self,
        resource: str,
        operation: str,
        items: Sequence[Mapping[str, Any]],
        continue_on_fail: bool = False,
    ) -> list[ExecutionItem]:
        """
        Run `resource`/`operation` once per input item.

        Args:
            resource: Catalogue resource (e.g. "orders")
            operation: Operation within the resource (e.g. "placeOrder")
            items: One parameter mapping per input item
            continue_on_fail: Record a failing item as {"error": message}
                and keep going instead of raising

        Raises:
            IBKRError: first failing item, unless continue_on_fail
        """
        # Unknown resource/operation fails the whole batch up front
        get_operation(resource, operation)
        client = self._client()

        results: list[ExecutionItem] = []
        for index, params in enumerate(items):
            try:
                response = self.execute_item(client, resource, operation, params)
            except IBKRError as e:
                if not continue_on_fail:
                    raise
                logger.warning(
                    "action_item_failed",
                    resource=resource,
                    operation=operation,
                    item=index,
                    error=str(e),
                )
                results.append(ExecutionItem(json={"error": str(e)}, item_index=index))
                continue
            results.extend(to_json_items(response, index))

        logger.info(
            "action_executed",
            resource=resource,
            operation=operation,
            items=len(items),
            outputs=len(results),
        )
        return results
