"""Extension contract and lifecycle states."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Protocol, runtime_checkable

EXTENSION_KIND_DOCUMENT = "document"
EXTENSION_KIND_VALIDATION = "validation"


@runtime_checkable
class Extension(Protocol):
    """Interface for emitter extensions."""

    name: str
    kind: str

    def initialize(self, config: Mapping[str, Any]) -> None:
        """Prepare the extension with its settings."""

    def execute(self, payload: Any) -> Any:
        """Run the extension against ``payload``."""

    def shutdown(self) -> None:
        """Release anything acquired in :meth:`initialize`."""


class ExtensionState(str, Enum):
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"
    INITIALIZED = "initialized"
    ACTIVE = "active"
    SHUTDOWN = "shutdown"


# Registered/initialized extensions may shut down without ever running.
ALLOWED_TRANSITIONS: Dict[ExtensionState, FrozenSet[ExtensionState]] = {
    ExtensionState.UNREGISTERED: frozenset({ExtensionState.REGISTERED}),
    ExtensionState.REGISTERED: frozenset({ExtensionState.INITIALIZED, ExtensionState.SHUTDOWN}),
    ExtensionState.INITIALIZED: frozenset({ExtensionState.ACTIVE, ExtensionState.SHUTDOWN}),
    ExtensionState.ACTIVE: frozenset({ExtensionState.SHUTDOWN}),
    ExtensionState.SHUTDOWN: frozenset(),
}


def can_transition(current: ExtensionState, target: ExtensionState) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


__all__ = [
    "ALLOWED_TRANSITIONS",
    "EXTENSION_KIND_DOCUMENT",
    "EXTENSION_KIND_VALIDATION",
    "Extension",
    "ExtensionState",
    "can_transition",
]
