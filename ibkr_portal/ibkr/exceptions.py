"""
Custom exceptions for IBKR integration.

Clean error hierarchy for distinct failure modes.
"""

from __future__ import annotations

from typing import Any


class IBKRError(Exception):
    """Base exception for all IBKR-related errors."""


class IBKRValidationError(IBKRError):
    """Parameters rejected before any request was sent."""

    def __init__(self, errors: list[str] | str):
        self.errors = [errors] if isinstance(errors, str) else list(errors)
        super().__init__("; ".join(self.errors))


class IBKRAPIError(IBKRError):
    """Normalized gateway failure: logical API error or transport error."""

    def __init__(
        self,
        message: str,
        raw_payload: Any = None,
        status_code: int | None = None,
        code: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.raw_payload = raw_payload
        self.status_code = status_code
        self.code = code


class IBKRAuthError(IBKRAPIError):
    """Gateway session is not authenticated (interactive login pending)."""


class TransportError(Exception):
    """
    Raised by HTTP transports. The dispatcher normalizes it into an
    IBKRAPIError, so callers never see it.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload

    @property
    def has_response(self) -> bool:
        return self.status_code is not None
