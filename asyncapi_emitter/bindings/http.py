"""HTTP protocol bindings (``bindingVersion`` 0.3.0)."""

from __future__ import annotations

from typing import Any, Dict

from .base import BindingLevel, BindingValidation, ProtocolBinding, versioned
from .rules import validate_enum_value, validate_http_status_code

HTTP_BINDING_VERSION = "0.3.0"
HTTP_OPERATION_TYPES = ("request", "response")
HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "CONNECT", "TRACE")


def build_operation_binding(config: Dict[str, Any]) -> Dict[str, Any]:
    return versioned(HTTP_BINDING_VERSION, config, type="request")


def build_message_binding(config: Dict[str, Any]) -> Dict[str, Any]:
    return versioned(HTTP_BINDING_VERSION, config)


def validate_operation_binding(binding: Dict[str, Any]) -> BindingValidation:
    result = BindingValidation()
    result.errors.extend(validate_enum_value(binding.get("type"), "Type", HTTP_OPERATION_TYPES))
    method = binding.get("method")
    if isinstance(method, str):
        method = method.upper()
    result.errors.extend(validate_enum_value(method, "Method", HTTP_METHODS))
    return result


def validate_message_binding(binding: Dict[str, Any]) -> BindingValidation:
    result = BindingValidation()
    result.errors.extend(validate_http_status_code(binding.get("statusCode"), "Status code"))
    return result


HTTP = ProtocolBinding(
    key="http",
    version=HTTP_BINDING_VERSION,
    builders={
        BindingLevel.OPERATION: build_operation_binding,
        BindingLevel.MESSAGE: build_message_binding,
    },
    validators={
        BindingLevel.OPERATION: validate_operation_binding,
        BindingLevel.MESSAGE: validate_message_binding,
    },
)

__all__ = [
    "HTTP",
    "HTTP_BINDING_VERSION",
    "HTTP_METHODS",
    "HTTP_OPERATION_TYPES",
    "validate_message_binding",
    "validate_operation_binding",
]
