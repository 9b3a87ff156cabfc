"""WebSocket protocol bindings (``bindingVersion`` 0.1.0)."""

from __future__ import annotations

from typing import Any, Dict

from .base import BindingLevel, BindingValidation, ProtocolBinding, versioned
from .rules import validate_enum_value

WEBSOCKET_BINDING_VERSION = "0.1.0"
WEBSOCKET_METHODS = ("GET", "POST")


def build_channel_binding(config: Dict[str, Any]) -> Dict[str, Any]:
    return versioned(WEBSOCKET_BINDING_VERSION, config)


def build_message_binding(config: Dict[str, Any]) -> Dict[str, Any]:
    return versioned(WEBSOCKET_BINDING_VERSION, config)


def validate_channel_binding(binding: Dict[str, Any]) -> BindingValidation:
    result = BindingValidation()
    method = binding.get("method")
    result.errors.extend(validate_enum_value(method, "Method", WEBSOCKET_METHODS))
    if method == "POST":
        result.warnings.append("WebSocket handshakes are normally made with GET")
    for field_name in ("query", "headers"):
        value = binding.get(field_name)
        if value is not None and not isinstance(value, dict):
            result.errors.append(f"{field_name.capitalize()} must be a schema object")
    return result


WEBSOCKET = ProtocolBinding(
    key="ws",
    version=WEBSOCKET_BINDING_VERSION,
    builders={
        BindingLevel.CHANNEL: build_channel_binding,
        BindingLevel.MESSAGE: build_message_binding,
    },
    validators={
        BindingLevel.CHANNEL: validate_channel_binding,
    },
)

__all__ = ["WEBSOCKET", "WEBSOCKET_BINDING_VERSION", "WEBSOCKET_METHODS", "validate_channel_binding"]
