"""
Catalogue of resource/operation actions.

Each operation is a plain function that turns its validated parameter model
(plus the credentials' default account ID) into a RequestDescriptor. The
`operation` decorator registers it under (resource, operation name).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from ibkr_portal.ibkr.exceptions import IBKRValidationError
from ibkr_portal.ibkr.models import ActionParams, RequestDescriptor

BuildFn = Callable[[Any, str], RequestDescriptor]


@dataclass(frozen=True)
class Operation:
    resource: str
    name: str
    params_model: type[ActionParams]
    build: BuildFn
    description: str = ""


_REGISTRY: dict[tuple[str, str], Operation] = {}


def operation(
    resource: str,
    name: str,
    params: type[ActionParams] = ActionParams,
) -> Callable[[BuildFn], BuildFn]:
    """Register a request builder for `resource`/`name`."""

    def decorator(fn: BuildFn) -> BuildFn:
        key = (resource, name)
        if key in _REGISTRY:
            raise ValueError(f"Operation already registered: {resource}/{name}")
        doc = (fn.__doc__ or "").strip()
        _REGISTRY[key] = Operation(
            resource=resource,
            name=name,
            params_model=params,
            build=fn,
            description=doc.splitlines()[0] if doc else "",
        )
        return fn

    return decorator


def list_resources() -> list[str]:
    return sorted({resource for resource, _ in _REGISTRY})


def list_operations(resource: str | None = None) -> list[Operation]:
    return [
        op
        for (res, _), op in sorted(_REGISTRY.items())
        if resource is None or res == resource
    ]


def get_operation(resource: str, name: str) -> Operation:
    if resource not in list_resources():
        raise IBKRValidationError(f"Unknown resource: {resource}")
    op = _REGISTRY.get((resource, name))
    if op is None:
        raise IBKRValidationError(f"Unknown operation: {name}")
    return op


def _validation_messages(error: ValidationError) -> list[str]:
    messages = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"])
        messages.append(f"{location}: {err['msg']}" if location else err["msg"])
    return messages


def parse_params(op: Operation, raw_params: Mapping[str, Any]) -> ActionParams:
    """Validate the host's parameter bag against the operation's model."""
    try:
        return op.params_model.model_validate(dict(raw_params))
    except ValidationError as e:
        raise IBKRValidationError(_validation_messages(e)) from e


def build_request(
    resource: str,
    name: str,
    raw_params: Mapping[str, Any],
    default_account_id: str = "",
) -> RequestDescriptor:
    """Look up, validate and build the request for one action item."""
    op = get_operation(resource, name)
    params = parse_params(op, raw_params)
    return op.build(params, default_account_id)
