"""Registry that drives extensions through their lifecycle."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional

from ..errors import ExtensionLifecycleError
from .base import Extension, ExtensionState, can_transition

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    extension: Extension
    state: ExtensionState = ExtensionState.UNREGISTERED


class ExtensionRegistry:
    """
    Holds extension instances and their lifecycle state.

    Every transition is checked against
    :data:`~asyncapi_emitter.extensions.base.ALLOWED_TRANSITIONS`; an illegal
    one raises :class:`ExtensionLifecycleError` and leaves the state as it was.
    Execution order is registration order.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, _Entry] = {}

    def register(self, extension: Extension) -> None:
        name = (getattr(extension, "name", "") or "").strip()
        if not name:
            raise ExtensionLifecycleError("<unnamed>", "Extension name must be provided")
        if name in self._entries:
            raise ExtensionLifecycleError(name, f"Extension '{name}' is already registered")
        entry = _Entry(extension)
        self._transition(name, entry, ExtensionState.REGISTERED)
        self._entries[name] = entry

    def initialize(self, name: str, config: Optional[Mapping[str, Any]] = None) -> None:
        entry = self._entry(name)
        self._require(name, entry, ExtensionState.INITIALIZED)
        entry.extension.initialize(dict(config or {}))
        self._transition(name, entry, ExtensionState.INITIALIZED)

    def activate(self, name: str) -> None:
        entry = self._entry(name)
        self._transition(name, entry, ExtensionState.ACTIVE)

    def start(self, name: str, config: Optional[Mapping[str, Any]] = None) -> None:
        """Initialize and activate ``name`` in one step."""

        self.initialize(name, config)
        self.activate(name)

    def execute_all(self, kind: str, payload: Any) -> List[Any]:
        """Run every active extension of ``kind`` against ``payload`` in order."""

        results: List[Any] = []
        for name, entry in self._entries.items():
            if entry.state != ExtensionState.ACTIVE or entry.extension.kind != kind:
                continue
            logger.debug("Executing extension %s", name)
            results.append(entry.extension.execute(payload))
        return results

    def shutdown(self, name: str) -> None:
        entry = self._entry(name)
        self._require(name, entry, ExtensionState.SHUTDOWN)
        try:
            entry.extension.shutdown()
        finally:
            self._transition(name, entry, ExtensionState.SHUTDOWN)

    def shutdown_all(self) -> None:
        for name, entry in reversed(list(self._entries.items())):
            if entry.state != ExtensionState.SHUTDOWN:
                self.shutdown(name)

    def state_of(self, name: str) -> ExtensionState:
        entry = self._entries.get(name)
        return entry.state if entry is not None else ExtensionState.UNREGISTERED

    def names(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[Extension]:
        return iter(entry.extension for entry in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def _entry(self, name: str) -> _Entry:
        entry = self._entries.get(name)
        if entry is None:
            raise ExtensionLifecycleError(name, f"Extension '{name}' is not registered")
        return entry

    @staticmethod
    def _require(name: str, entry: _Entry, target: ExtensionState) -> None:
        if not can_transition(entry.state, target):
            raise ExtensionLifecycleError(
                name,
                f"Extension '{name}' cannot move from {entry.state.value} to {target.value}",
            )

    def _transition(self, name: str, entry: _Entry, target: ExtensionState) -> None:
        self._require(name, entry, target)
        logger.debug("Extension %s: %s -> %s", name, entry.state.value, target.value)
        entry.state = target


__all__ = ["ExtensionRegistry"]
