"""
HTTP transports for the request dispatcher.

The dispatcher only needs "send this request and give me decoded JSON, or
raise TransportError". Hosts may plug in their own transport; HttpxTransport
is the default.
"""

from __future__ import annotations

from typing import Any, Protocol

import httpx
import structlog

from ibkr_portal.ibkr.exceptions import TransportError

logger = structlog.get_logger(__name__)


class HttpTransport(Protocol):
    def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        body: dict[str, Any] | None = None,
        query: dict[str, Any] | None = None,
        verify_tls: bool = True,
        timeout: float | None = None,
    ) -> Any: ...


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return None


class HttpxTransport:
    """
    Transport built on httpx.

    A short-lived client is opened per call because TLS verification is a
    per-credentials choice. Pass `mounts`/`transport` through `client_kwargs`
    to route calls elsewhere (httpx.MockTransport in tests).
    """

    def __init__(self, **client_kwargs: Any):
        self._client_kwargs = client_kwargs

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        body: dict[str, Any] | None = None,
        query: dict[str, Any] | None = None,
        verify_tls: bool = True,
        timeout: float | None = None,
    ) -> Any:
        try:
            with httpx.Client(
                verify=verify_tls, timeout=timeout, **self._client_kwargs
            ) as client:
                response = client.request(
                    method,
                    url,
                    headers=headers,
                    json=body,
                    params=query,
                )
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e
        except (httpx.InvalidURL, UnicodeEncodeError) as e:
            # Malformed gateway URL or header value; the request never left
            raise TransportError(f"Invalid request: {e}") from e

        payload = _decode(response)

        if response.is_error:
            logger.debug(
                "ibkr_http_error",
                status=response.status_code,
                url=url,
            )
            raise TransportError(
                f"HTTP {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )

        if payload is None:
            raise TransportError(
                "Gateway returned a non-JSON response",
                status_code=response.status_code,
            )
        return payload
