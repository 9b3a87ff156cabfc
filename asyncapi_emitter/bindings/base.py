"""Core protocol binding abstractions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class Protocol(str, Enum):
    """Transport protocols recognized by the emitter."""

    KAFKA = "kafka"
    WEBSOCKET = "websocket"
    WS = "ws"
    WSS = "wss"
    HTTP = "http"
    HTTPS = "https"
    AMQP = "amqp"
    MQTT = "mqtt"
    REDIS = "redis"
    NATS = "nats"


class BindingLevel(str, Enum):
    SERVER = "server"
    CHANNEL = "channel"
    OPERATION = "operation"
    MESSAGE = "message"


# Binding object key per protocol family.
_BINDING_KEYS: Dict[str, str] = {
    "websocket": "ws",
    "ws": "ws",
    "wss": "ws",
    "https": "http",
}

SUPPORTED_PROTOCOLS: List[str] = [p.value for p in Protocol]


def normalize_protocol(protocol: Optional[str]) -> Optional[str]:
    """Return the binding key for ``protocol`` or ``None`` when unknown."""

    if not protocol:
        return None
    value = str(protocol).strip().lower()
    if value not in SUPPORTED_PROTOCOLS:
        return None
    return _BINDING_KEYS.get(value, value)


def is_valid_protocol(protocol: Optional[str]) -> bool:
    return normalize_protocol(protocol) is not None


@dataclass
class BindingValidation:
    """Errors and warnings from validating one binding."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def merge(self, other: "BindingValidation") -> "BindingValidation":
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        return self


Builder = Callable[[Dict[str, Any]], Dict[str, Any]]
Validator = Callable[[Dict[str, Any]], BindingValidation]


@dataclass(frozen=True)
class ProtocolBinding:
    """Builders and validators for one protocol, keyed by binding level."""

    key: str
    version: str
    builders: Dict[BindingLevel, Builder] = field(default_factory=dict)
    validators: Dict[BindingLevel, Validator] = field(default_factory=dict)

    def supports(self, level: BindingLevel) -> bool:
        return level in self.builders

    def build(self, level: BindingLevel, config: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        builder = self.builders.get(level)
        if builder is None:
            return None
        return builder(dict(config))

    def validate(self, level: BindingLevel, binding: Dict[str, Any]) -> BindingValidation:
        validator = self.validators.get(level)
        if validator is None:
            return BindingValidation()
        return validator(binding)


def versioned(version: str, config: Dict[str, Any], **defaults: Any) -> Dict[str, Any]:
    """Binding object with ``bindingVersion`` first and ``defaults`` filled in."""

    binding: Dict[str, Any] = {"bindingVersion": version}
    binding.update(defaults)
    binding.update({k: v for k, v in config.items() if k != "bindingVersion"})
    return binding


__all__ = [
    "BindingLevel",
    "BindingValidation",
    "Protocol",
    "ProtocolBinding",
    "SUPPORTED_PROTOCOLS",
    "is_valid_protocol",
    "normalize_protocol",
    "versioned",
]
