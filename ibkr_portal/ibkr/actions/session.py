"""Gateway session: brokerage login, status, keepalive and logout."""

from __future__ import annotations

from ibkr_portal.ibkr.actions.registry import operation
from ibkr_portal.ibkr.models import ActionParams, RequestDescriptor


@operation("session", "authenticate")
def authenticate(params: ActionParams, account_id: str) -> RequestDescriptor:
    """Open a brokerage session on an already logged-in gateway."""
    return RequestDescriptor(method="POST", endpoint="/iserver/auth/ssodh/init")


@operation("session", "getAuthStatus")
def get_auth_status(params: ActionParams, account_id: str) -> RequestDescriptor:
    """Get authentication status."""
    return RequestDescriptor(method="POST", endpoint="/iserver/auth/status")


@operation("session", "reauthenticate")
def reauthenticate(params: ActionParams, account_id: str) -> RequestDescriptor:
    """Re-authenticate the brokerage session."""
    return RequestDescriptor(method="POST", endpoint="/iserver/reauthenticate")


@operation("session", "logout")
def logout(params: ActionParams, account_id: str) -> RequestDescriptor:
    """End the gateway session."""
    return RequestDescriptor(method="POST", endpoint="/logout")


@operation("session", "tickle")
def tickle(params: ActionParams, account_id: str) -> RequestDescriptor:
    """Keep the session alive."""
    return RequestDescriptor(method="POST", endpoint="/tickle")


@operation("session", "validateSSO")
def validate_sso(params: ActionParams, account_id: str) -> RequestDescriptor:
    """Validate the SSO session."""
    return RequestDescriptor(method="GET", endpoint="/sso/validate")
