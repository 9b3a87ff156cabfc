"""Protocol-specific binding builders and validators."""

from .base import (
    SUPPORTED_PROTOCOLS,
    BindingLevel,
    BindingValidation,
    Protocol,
    ProtocolBinding,
    is_valid_protocol,
    normalize_protocol,
)
from .detection import DEFAULT_PORTS, default_port, looks_like_kafka_topic, protocol_from_url
from .factory import (
    SUPPORT_MATRIX,
    BindingOutcome,
    BindingRegistry,
    ProtocolBindingFactory,
    default_registry,
)
from .http import HTTP, HTTP_BINDING_VERSION
from .kafka import KAFKA, KAFKA_BINDING_VERSION, generate_group_id, sanitize_topic_name
from .websocket import WEBSOCKET, WEBSOCKET_BINDING_VERSION

__all__ = [
    "BindingLevel",
    "BindingOutcome",
    "BindingRegistry",
    "BindingValidation",
    "DEFAULT_PORTS",
    "HTTP",
    "HTTP_BINDING_VERSION",
    "KAFKA",
    "KAFKA_BINDING_VERSION",
    "Protocol",
    "ProtocolBinding",
    "ProtocolBindingFactory",
    "SUPPORTED_PROTOCOLS",
    "SUPPORT_MATRIX",
    "WEBSOCKET",
    "WEBSOCKET_BINDING_VERSION",
    "default_port",
    "default_registry",
    "generate_group_id",
    "is_valid_protocol",
    "looks_like_kafka_topic",
    "normalize_protocol",
    "protocol_from_url",
    "sanitize_topic_name",
]
