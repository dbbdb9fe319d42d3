"""Watchlists."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from ibkr_portal.ibkr.actions.registry import operation
from ibkr_portal.ibkr.exceptions import IBKRValidationError
from ibkr_portal.ibkr.models import ActionParams, IdStr, RequestDescriptor
from ibkr_portal.ibkr.utils import clean_object, parse_conid


class WatchlistParams(ActionParams):
    name: str = Field(min_length=1)
    conids: str = ""

    @field_validator("conids", mode="before")
    @classmethod
    def _join_conids(cls, value):
        if isinstance(value, (list, tuple)):
            return ",".join(str(v) for v in value)
        return value

    def rows(self) -> list[dict[str, Any]] | None:
        """Comma separated conids -> [{"C": conid}, ...]; None when empty."""
        parts = [c.strip() for c in self.conids.split(",") if c.strip()]
        try:
            return [{"C": parse_conid(c)} for c in parts] or None
        except ValueError as e:
            raise IBKRValidationError(f"conids must be numeric: {self.conids!r}") from e


class WatchlistIdParams(ActionParams):
    watchlist_id: IdStr = Field(min_length=1)


class UpdateWatchlistParams(WatchlistParams):
    watchlist_id: IdStr = Field(min_length=1)


@operation("watchlists", "getWatchlists")
def get_watchlists(params: ActionParams, account_id: str) -> RequestDescriptor:
    """List watchlists."""
    return RequestDescriptor(method="GET", endpoint="/iserver/watchlists")


@operation("watchlists", "createWatchlist", WatchlistParams)
def create_watchlist(params: WatchlistParams, account_id: str) -> RequestDescriptor:
    """Create a watchlist."""
    return RequestDescriptor(
        method="POST",
        endpoint="/iserver/watchlists",
        body=clean_object({"name": params.name, "rows": params.rows()}),
    )


@operation("watchlists", "getWatchlist", WatchlistIdParams)
def get_watchlist(params: WatchlistIdParams, account_id: str) -> RequestDescriptor:
    """Get one watchlist."""
    return RequestDescriptor(
        method="GET", endpoint=f"/iserver/watchlists/{params.watchlist_id}"
    )


@operation("watchlists", "updateWatchlist", UpdateWatchlistParams)
def update_watchlist(params: UpdateWatchlistParams, account_id: str) -> RequestDescriptor:
    """Rename a watchlist and replace its rows."""
    return RequestDescriptor(
        method="PUT",
        endpoint=f"/iserver/watchlists/{params.watchlist_id}",
        body=clean_object(
            {"id": params.watchlist_id, "name": params.name, "rows": params.rows()}
        ),
    )


@operation("watchlists", "deleteWatchlist", WatchlistIdParams)
def delete_watchlist(params: WatchlistIdParams, account_id: str) -> RequestDescriptor:
    """Delete a watchlist."""
    return RequestDescriptor(
        method="DELETE", endpoint=f"/iserver/watchlists/{params.watchlist_id}"
    )
