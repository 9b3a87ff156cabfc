"""
Annotation state attached to program nodes by the front end.

The front end records decorator metadata (channel paths, publish/subscribe
roles, protocol and security configuration, message and server
configuration) out-of-band from the type graph. This module exposes that
metadata as an immutable :class:`AnnotationState` value which the walker
threads through every downstream call.

Example:
    ```python
    state = (
        AnnotationState.builder()
        .channel(op, "user.events")
        .subscribe(op)
        .protocol(op, ProtocolConfig("kafka", channel={"partitions": 3}))
        .build()
    )
    state.channel_path(op)      # "user.events"
    state.operation_roles(op)   # (OperationRole.SUBSCRIBE,)
    ```
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple


class StateKey(str, Enum):
    """Well-known annotation categories."""

    CHANNEL_PATHS = "channel_paths"
    OPERATION_TYPES = "operation_types"
    MESSAGE_CONFIGS = "message_configs"
    MESSAGE_HEADERS = "message_headers"
    PROTOCOL_CONFIGS = "protocol_configs"
    SECURITY_CONFIGS = "security_configs"
    SERVER_CONFIGS = "server_configs"
    TAGS = "tags"
    CORRELATION_IDS = "correlation_ids"


class OperationRole(str, Enum):
    PUBLISH = "publish"
    SUBSCRIBE = "subscribe"


@dataclass(frozen=True)
class ProtocolConfig:
    """Protocol selection plus per-level binding configuration."""

    protocol: str
    server: Mapping[str, Any] = field(default_factory=dict)
    channel: Mapping[str, Any] = field(default_factory=dict)
    operation: Mapping[str, Any] = field(default_factory=dict)
    message: Mapping[str, Any] = field(default_factory=dict)

    def for_level(self, level: str) -> Dict[str, Any]:
        return dict(getattr(self, level, None) or {})


@dataclass(frozen=True)
class SecurityConfig:
    name: str
    scheme: Mapping[str, Any] = field(default_factory=dict)
    scopes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MessageConfig:
    name: Optional[str] = None
    title: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    content_type: Optional[str] = None
    examples: Tuple[Mapping[str, Any], ...] = ()
    headers: Optional[str] = None
    correlation_id: Optional[str] = None
    bindings: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ServerConfig:
    name: str
    url: str
    protocol: str
    description: Optional[str] = None
    bindings: Mapping[str, Any] = field(default_factory=dict)


# Keys whose entries accumulate rather than replace.
_MULTI_VALUED = frozenset(
    {
        StateKey.OPERATION_TYPES,
        StateKey.SECURITY_CONFIGS,
        StateKey.SERVER_CONFIGS,
        StateKey.TAGS,
    }
)


class AnnotationState:
    """Immutable, identity-keyed view of decorator metadata."""

    __slots__ = ("_maps",)

    def __init__(self, entries: Optional[Mapping[StateKey, Mapping[int, Tuple[Any, Any]]]] = None) -> None:
        frozen: Dict[StateKey, Mapping[int, Tuple[Any, Any]]] = {}
        for key in StateKey:
            bucket = (entries or {}).get(key, {})
            # Keyed by id(); the node itself is kept alive alongside the value.
            frozen[key] = MappingProxyType(
                {node_id: (node, _freeze(key, value)) for node_id, (node, value) in bucket.items()}
            )
        object.__setattr__(self, "_maps", MappingProxyType(frozen))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("AnnotationState is immutable")

    @staticmethod
    def builder() -> "AnnotationStateBuilder":
        return AnnotationStateBuilder()

    @classmethod
    def empty(cls) -> "AnnotationState":
        return cls()

    def get(self, key: StateKey, node: Any, default: Any = None) -> Any:
        entry = self._maps[key].get(id(node))
        if entry is None or entry[0] is not node:
            return default
        return entry[1]

    def has(self, key: StateKey, node: Any) -> bool:
        entry = self._maps[key].get(id(node))
        return entry is not None and entry[0] is node

    def all(self, key: StateKey) -> Iterator[Tuple[Any, Any]]:
        """Iterate ``(node, value)`` pairs in insertion order."""
        return iter(self._maps[key].values())

    def channel_path(self, node: Any) -> Optional[str]:
        return self.get(StateKey.CHANNEL_PATHS, node)

    def operation_roles(self, node: Any) -> Tuple[OperationRole, ...]:
        return self.get(StateKey.OPERATION_TYPES, node, ())

    def protocol_config(self, node: Any) -> Optional[ProtocolConfig]:
        return self.get(StateKey.PROTOCOL_CONFIGS, node)

    def security_configs(self, node: Any) -> Tuple[SecurityConfig, ...]:
        return self.get(StateKey.SECURITY_CONFIGS, node, ())

    def message_config(self, node: Any) -> Optional[MessageConfig]:
        return self.get(StateKey.MESSAGE_CONFIGS, node)

    def server_configs(self, node: Any) -> Tuple[ServerConfig, ...]:
        return self.get(StateKey.SERVER_CONFIGS, node, ())

    def tags(self, node: Any) -> Tuple[str, ...]:
        return self.get(StateKey.TAGS, node, ())


def _freeze(key: StateKey, value: Any) -> Any:
    if key in _MULTI_VALUED:
        return tuple(value)
    if isinstance(value, dict):
        return MappingProxyType(dict(value))
    return value


class AnnotationStateBuilder:
    """Mutable accumulator used by the front end before freezing the state."""

    def __init__(self) -> None:
        self._entries: Dict[StateKey, Dict[int, Tuple[Any, Any]]] = {key: {} for key in StateKey}

    def set(self, key: StateKey, node: Any, value: Any) -> "AnnotationStateBuilder":
        bucket = self._entries[key]
        if key in _MULTI_VALUED:
            _, values = bucket.get(id(node), (node, []))
            value = [*values, value]
        bucket[id(node)] = (node, value)
        return self

    def channel(self, node: Any, path: str) -> "AnnotationStateBuilder":
        return self.set(StateKey.CHANNEL_PATHS, node, path)

    def publish(self, node: Any) -> "AnnotationStateBuilder":
        return self.set(StateKey.OPERATION_TYPES, node, OperationRole.PUBLISH)

    def subscribe(self, node: Any) -> "AnnotationStateBuilder":
        return self.set(StateKey.OPERATION_TYPES, node, OperationRole.SUBSCRIBE)

    def protocol(self, node: Any, config: ProtocolConfig) -> "AnnotationStateBuilder":
        return self.set(StateKey.PROTOCOL_CONFIGS, node, config)

    def security(self, node: Any, config: SecurityConfig) -> "AnnotationStateBuilder":
        return self.set(StateKey.SECURITY_CONFIGS, node, config)

    def message(self, node: Any, config: MessageConfig) -> "AnnotationStateBuilder":
        return self.set(StateKey.MESSAGE_CONFIGS, node, config)

    def server(self, node: Any, config: ServerConfig) -> "AnnotationStateBuilder":
        return self.set(StateKey.SERVER_CONFIGS, node, config)

    def tag(self, node: Any, tag: str) -> "AnnotationStateBuilder":
        return self.set(StateKey.TAGS, node, tag)

    def build(self) -> AnnotationState:
        return AnnotationState(self._entries)


__all__ = [
    "AnnotationState",
    "AnnotationStateBuilder",
    "MessageConfig",
    "OperationRole",
    "ProtocolConfig",
    "SecurityConfig",
    "ServerConfig",
    "StateKey",
]
