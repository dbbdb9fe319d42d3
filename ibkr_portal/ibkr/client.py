"""
Request dispatcher for the Client Portal Gateway REST API.

Turns a RequestDescriptor into one HTTP call against
`<gateway_url>/v1/api<endpoint>` and normalizes the outcome: decoded JSON on
success, IBKRAPIError (or IBKRAuthError) on a logical or transport failure.
"""

from __future__ import annotations

from typing import Any

import structlog
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ibkr_portal.config import Settings, config
from ibkr_portal.ibkr.constants import API_BASE_PATH, IBKR_ERROR_CODES
from ibkr_portal.ibkr.exceptions import IBKRAPIError, IBKRAuthError, TransportError
from ibkr_portal.ibkr.models import RequestDescriptor
from ibkr_portal.ibkr.transport import HttpTransport, HttpxTransport
from ibkr_portal.ibkr_config import IbkrCredentials

logger = structlog.get_logger(__name__)

GENERIC_FAILURE_MESSAGE = "Interactive Brokers API request failed"


def _error_code(payload: dict) -> str | None:
    for key in ("error_code", "code"):
        value = payload.get(key)
        if value is not None and value != "":
            return str(value)
    return None


def format_error_message(payload: dict) -> str:
    """
    Turn a gateway error payload into a human-readable message.

    Known codes map through IBKR_ERROR_CODES ("<text> (Code: <code>)").
    Otherwise the payload's own `error` or `message` field is used, falling
    back to "Unknown error".
    """
    code = _error_code(payload)
    if code and code in IBKR_ERROR_CODES:
        return f"{IBKR_ERROR_CODES[code]} (Code: {code})"
    message = payload.get("error") or payload.get("message")
    return str(message) if message else "Unknown error"


def is_logical_error(payload: Any) -> bool:
    """A 2xx object payload that still carries an error marker."""
    return isinstance(payload, dict) and bool(
        payload.get("error") or payload.get("error_code")
    )


def _looks_unauthenticated(
    message: str, payload: Any, status_code: int | None
) -> bool:
    if status_code == 401:
        return True
    texts = [message]
    if isinstance(payload, dict):
        texts.extend(str(payload.get(k, "")) for k in ("error", "message"))
    return any("not authenticated" in t.lower() for t in texts)


def _api_error(
    payload: dict, status_code: int | None = None
) -> IBKRAPIError:
    message = format_error_message(payload)
    error_cls = (
        IBKRAuthError
        if _looks_unauthenticated(message, payload, status_code)
        else IBKRAPIError
    )
    return error_cls(
        message,
        raw_payload=payload,
        status_code=status_code,
        code=_error_code(payload),
    )


def _is_network_failure(exc: BaseException) -> bool:
    # Only failures where no response arrived are safe to repeat
    return isinstance(exc, TransportError) and not exc.has_response


class IbkrClient:
    """
    Dispatcher bound to one credentials record.

    Usage:
        client = IbkrClient(credentials)
        positions = client.request(
            RequestDescriptor(method="GET", endpoint="/portfolio/U1/positions/0")
        )

    There is no hidden state between calls: the same descriptor against the
    same server state yields the same result.
    """

    def __init__(
        self,
        credentials: IbkrCredentials,
        transport: HttpTransport | None = None,
        settings: Settings | None = None,
    ):
        self._credentials = credentials
        self._transport = transport or HttpxTransport()
        self._settings = settings or config

    @property
    def account_id(self) -> str:
        """Return the credentials' default account ID."""
        return self._credentials.account_id

    @property
    def credentials(self) -> IbkrCredentials:
        return self._credentials

    def build_url(self, endpoint: str) -> str:
        base_url = self._credentials.gateway_url.rstrip("/")
        return f"{base_url}{API_BASE_PATH}{endpoint}"

    def build_headers(self, descriptor: RequestDescriptor) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **descriptor.headers,
        }
        token = self._credentials.get_session_token()
        if token:
            headers["Cookie"] = f"sessionid={token}"
        return headers

    def _retrying(self, descriptor: RequestDescriptor) -> Retrying:
        attempts = (
            self._settings.request_retry_attempts if descriptor.is_idempotent else 1
        )
        return Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(
                multiplier=self._settings.request_retry_base_delay_seconds
            ),
            retry=retry_if_exception(_is_network_failure),
            before_sleep=lambda state: logger.warning(
                "ibkr_request_retry",
                endpoint=descriptor.endpoint,
                attempt=state.attempt_number,
                error=str(state.outcome.exception()) if state.outcome else "",
            ),
            reraise=True,
        )

    def request(self, descriptor: RequestDescriptor) -> dict | list:
        """
        Execute one gateway call.

        Raises:
            IBKRAuthError: the gateway session is not authenticated
            IBKRAPIError: logical error payload, HTTP error or network failure
        """
        url = self.build_url(descriptor.endpoint)
        headers = self.build_headers(descriptor)
        body = descriptor.body or None
        query = descriptor.query or None

        logger.debug(
            "ibkr_request",
            method=descriptor.method,
            endpoint=descriptor.endpoint,
            has_body=body is not None,
            has_query=query is not None,
        )

        try:
            response = self._retrying(descriptor)(
                self._transport.request,
                descriptor.method,
                url,
                headers=headers,
                body=body,
                query=query,
                verify_tls=not self._credentials.ignore_tls_errors,
                timeout=self._settings.request_timeout_seconds,
            )
        except TransportError as e:
            logger.warning(
                "ibkr_request_failed",
                method=descriptor.method,
                endpoint=descriptor.endpoint,
                status=e.status_code,
                error=str(e),
            )
            if isinstance(e.payload, dict) and e.payload:
                raise _api_error(e.payload, e.status_code) from e
            error_cls = (
                IBKRAuthError
                if _looks_unauthenticated(str(e), e.payload, e.status_code)
                else IBKRAPIError
            )
            raise error_cls(
                GENERIC_FAILURE_MESSAGE,
                raw_payload=e.payload if e.payload is not None else str(e),
                status_code=e.status_code,
            ) from e

        if is_logical_error(response):
            error = _api_error(response)
            logger.warning(
                "ibkr_logical_error",
                endpoint=descriptor.endpoint,
                code=error.code,
                message=error.message,
            )
            raise error

        return response

    def request_all_pages(
        self,
        descriptor: RequestDescriptor,
        page_param: str = "page",
        max_pages: int = 100,
    ) -> list:
        """
        Collect a paginated list endpoint page by page.

        Stops on an empty page, on a non-list response (kept as one item)
        or after `max_pages` pages.
        """
        items: list = []
        for page in range(max_pages):
            paged = descriptor.model_copy(
                update={"query": {**descriptor.query, page_param: page}}
            )
            response = self.request(paged)
            if not isinstance(response, list):
                items.append(response)
                break
            if not response:
                break
            items.extend(response)
        return items

    def tickle(self) -> dict:
        """Session keepalive; call periodically to keep the gateway session open."""
        return self.request(RequestDescriptor(method="POST", endpoint="/tickle"))

    def check_auth_status(self) -> dict:
        return self.request(
            RequestDescriptor(method="POST", endpoint="/iserver/auth/status")
        )
