"""MTA (mobile trading assistant) price alerts."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from ibkr_portal.ibkr.actions.registry import operation
from ibkr_portal.ibkr.constants import ALERT_CONDITIONS, ALERT_OPERATORS
from ibkr_portal.ibkr.models import (
    AccountScopedParams,
    ActionParams,
    IdStr,
    RequestDescriptor,
)
from ibkr_portal.ibkr.utils import clean_object


class AlertOptions(ActionParams):
    i_tws_orders_only: bool = Field(default=False, alias="iTWSOrdersOnly")
    outside_rth: bool = False
    show_popup: bool = True
    play_audio: bool = False
    send_email: bool = False
    email: str = ""
    expire_time: str = ""


class AlertParams(AccountScopedParams):
    conid: int = Field(gt=0)
    alert_name: str = Field(min_length=1)
    condition_type: str = "price"
    operator: IdStr = "1"
    trigger_price: float
    alert_options: AlertOptions = Field(default_factory=AlertOptions)

    @field_validator("condition_type")
    @classmethod
    def _known_condition(cls, value: str) -> str:
        if value not in ALERT_CONDITIONS:
            raise ValueError(f"must be one of {', '.join(ALERT_CONDITIONS)}")
        return value

    @field_validator("operator")
    @classmethod
    def _known_operator(cls, value: str) -> str:
        if value not in ALERT_OPERATORS:
            raise ValueError("must be 1 (>=) or 2 (<=)")
        return value

    def to_body(self) -> dict[str, Any]:
        options = self.alert_options
        condition = {
            "type": 1,  # price alert
            "conidex": f"{self.conid}@SMART",
            "operator": self.operator,
            "triggerMethod": "0" if self.condition_type == "price" else "1",
            "value": _format_trigger(self.trigger_price),
        }
        return clean_object(
            {
                "alertName": self.alert_name,
                "alertMessage": self.alert_name,
                "alertRepeatable": 1 if options.i_tws_orders_only else 0,
                "outsideRth": 1 if options.outside_rth else 0,
                "showPopup": 1 if options.show_popup else 0,
                "playAudio": 1 if options.play_audio else 0,
                "sendMessage": 1 if options.send_email else 0,
                "email": options.email or None,
                "expireTime": options.expire_time or None,
                "conditions": [condition],
            }
        )


class ModifyAlertParams(AlertParams):
    alert_id: int


class AlertIdParams(AccountScopedParams):
    alert_id: int


class ActivateAlertParams(AlertIdParams):
    activate: bool = True


def _format_trigger(value: float) -> str:
    # 150.0 -> "150", 150.25 -> "150.25"
    return str(int(value)) if float(value).is_integer() else str(value)


def _alert_base(params: AccountScopedParams, account_id: str) -> str:
    return f"/iserver/account/{params.resolve_account_id(account_id)}"


@operation("alerts", "getAlerts", AccountScopedParams)
def get_alerts(params: AccountScopedParams, account_id: str) -> RequestDescriptor:
    """List alerts for the account."""
    return RequestDescriptor(method="GET", endpoint=f"{_alert_base(params, account_id)}/alerts")


@operation("alerts", "createAlert", AlertParams)
def create_alert(params: AlertParams, account_id: str) -> RequestDescriptor:
    """Create a price alert."""
    return RequestDescriptor(
        method="POST",
        endpoint=f"{_alert_base(params, account_id)}/alert",
        body=params.to_body(),
    )


@operation("alerts", "modifyAlert", ModifyAlertParams)
def modify_alert(params: ModifyAlertParams, account_id: str) -> RequestDescriptor:
    """Replace an existing alert's definition."""
    return RequestDescriptor(
        method="POST",
        endpoint=f"{_alert_base(params, account_id)}/alert/{params.alert_id}",
        body={"alertId": params.alert_id, **params.to_body()},
    )


@operation("alerts", "deleteAlert", AlertIdParams)
def delete_alert(params: AlertIdParams, account_id: str) -> RequestDescriptor:
    """Delete an alert."""
    return RequestDescriptor(
        method="DELETE",
        endpoint=f"{_alert_base(params, account_id)}/alert/{params.alert_id}",
    )


@operation("alerts", "getAlertDetails", AlertIdParams)
def get_alert_details(params: AlertIdParams, account_id: str) -> RequestDescriptor:
    """Get one alert."""
    return RequestDescriptor(
        method="GET",
        endpoint=f"{_alert_base(params, account_id)}/alert/{params.alert_id}",
    )


@operation("alerts", "activateAlert", ActivateAlertParams)
def activate_alert(params: ActivateAlertParams, account_id: str) -> RequestDescriptor:
    """Activate or deactivate an alert."""
    return RequestDescriptor(
        method="POST",
        endpoint=f"{_alert_base(params, account_id)}/alert/activate",
        body={"alertId": params.alert_id, "alertActive": 1 if params.activate else 0},
    )
