"""Protocol binding factory and registry."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional

from .base import (
    SUPPORTED_PROTOCOLS,
    BindingLevel,
    BindingValidation,
    ProtocolBinding,
    normalize_protocol,
)
from .http import HTTP
from .kafka import KAFKA
from .websocket import WEBSOCKET

logger = logging.getLogger(__name__)

_ALL = frozenset(BindingLevel)

# Which levels each protocol family can carry bindings for, whether or not a
# builder is registered for it.
SUPPORT_MATRIX: Dict[str, frozenset] = {
    "kafka": _ALL,
    "ws": frozenset({BindingLevel.CHANNEL, BindingLevel.MESSAGE}),
    "http": frozenset({BindingLevel.OPERATION, BindingLevel.MESSAGE}),
    "amqp": _ALL,
    "mqtt": _ALL,
    "nats": _ALL,
    "redis": frozenset({BindingLevel.SERVER, BindingLevel.CHANNEL}),
}


class BindingRegistry:
    """Maps a protocol binding key to its builder/validator set."""

    def __init__(self, bindings: Optional[Mapping[str, ProtocolBinding]] = None) -> None:
        self._bindings: Dict[str, ProtocolBinding] = dict(bindings or {})

    def register(self, binding: ProtocolBinding) -> None:
        if binding.key in self._bindings:
            raise ValueError(f"Protocol binding '{binding.key}' already registered")
        self._bindings[binding.key] = binding

    def get(self, protocol: str) -> Optional[ProtocolBinding]:
        key = normalize_protocol(protocol)
        if key is None:
            return None
        return self._bindings.get(key)

    def __contains__(self, protocol: str) -> bool:
        return self.get(protocol) is not None

    def __iter__(self) -> Iterator[ProtocolBinding]:
        return iter(self._bindings.values())


def default_registry() -> BindingRegistry:
    return BindingRegistry({b.key: b for b in (KAFKA, WEBSOCKET, HTTP)})


@dataclass
class BindingOutcome:
    """Result of building and validating one binding."""

    key: Optional[str]
    binding: Optional[Dict[str, Any]]
    validation: BindingValidation

    @property
    def attached(self) -> bool:
        return self.binding is not None and self.validation.is_valid

    def as_bindings_object(self) -> Optional[Dict[str, Any]]:
        if not self.attached or self.key is None:
            return None
        return {self.key: self.binding}


class ProtocolBindingFactory:
    """Builds and validates binding objects by dispatching on protocol tag."""

    def __init__(self, registry: Optional[BindingRegistry] = None) -> None:
        self.registry = registry or default_registry()

    def supports_binding(self, protocol: str, level: BindingLevel) -> bool:
        key = normalize_protocol(protocol)
        if key is None:
            return False
        return BindingLevel(level) in SUPPORT_MATRIX.get(key, frozenset())

    def create_binding(
        self, protocol: str, level: BindingLevel, config: Optional[Mapping[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """Build the binding object for ``protocol`` at ``level``.

        Returns ``None`` when the protocol has no builder for that level.
        """

        entry = self.registry.get(protocol)
        if entry is None:
            return None
        return entry.build(BindingLevel(level), dict(config or {}))

    def validate_binding(
        self, protocol: str, level: BindingLevel, config: Optional[Mapping[str, Any]] = None
    ) -> BindingValidation:
        """Validate ``config`` as it would be emitted, defaults included."""

        if normalize_protocol(protocol) is None:
            return BindingValidation(
                errors=[
                    f"Protocol '{protocol}' is not supported. Supported protocols: {', '.join(SUPPORTED_PROTOCOLS)}"
                ]
            )
        entry = self.registry.get(protocol)
        if entry is None:
            return BindingValidation()
        level = BindingLevel(level)
        binding = entry.build(level, dict(config or {}))
        if binding is None:
            return BindingValidation()
        return entry.validate(level, binding)

    def build(
        self, protocol: str, level: BindingLevel, config: Optional[Mapping[str, Any]] = None
    ) -> BindingOutcome:
        """Build, validate and decide attachment in one step."""

        entry = self.registry.get(protocol)
        level = BindingLevel(level)
        validation = self.validate_binding(protocol, level, config)
        binding = self.create_binding(protocol, level, config) if entry is not None else None
        if binding is not None and not validation.is_valid:
            logger.warning(
                "Rejected %s %s binding: %s", protocol, level.value, "; ".join(validation.errors)
            )
        return BindingOutcome(
            key=entry.key if entry is not None else None,
            binding=binding,
            validation=validation,
        )


__all__ = [
    "BindingOutcome",
    "BindingRegistry",
    "ProtocolBindingFactory",
    "SUPPORT_MATRIX",
    "default_registry",
]
